"""
Pytest fixtures for the invoice tax engine test suite.

Provides:
- Structured logging configuration and capture
- Classification tables / classifier / calculator fixtures
- Raw line item factories
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from invoice_config import get_active_tables
from invoice_engines.calculator import InvoiceTaxCalculator
from invoice_engines.tax_codes import TaxCodeClassifier
from invoice_kernel.domain.invoice import (
    DiscountType,
    RawInvoice,
    RawLineItem,
    RawReceiver,
    RawTax,
    TaxType,
)
from invoice_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Factories
# =============================================================================


def D(value) -> Decimal:
    return Decimal(str(value))


def make_item(
    quantity="1",
    unit_price="100",
    vat_rate="18",
    discount_rate=None,
    discount_amount=None,
    discount_type=DiscountType.DECREASE,
    taxes=(),
    name="Item",
    unit=None,
) -> RawLineItem:
    """Build a RawLineItem from string amounts (None stays absent)."""
    return RawLineItem(
        name=name,
        quantity=D(quantity) if quantity is not None else None,
        unit_price=D(unit_price) if unit_price is not None else None,
        unit=unit,
        discount_rate=D(discount_rate) if discount_rate is not None else None,
        discount_amount=D(discount_amount) if discount_amount is not None else None,
        discount_type=discount_type,
        vat_rate=D(vat_rate) if vat_rate is not None else None,
        taxes=tuple(taxes),
    )


def make_tax(tax_type=TaxType.OTHER, code="0003", rate=None, amount=None, is_rate_based=True) -> RawTax:
    return RawTax(
        type=tax_type,
        code=code,
        rate=D(rate) if rate is not None else None,
        amount=D(amount) if amount is not None else None,
        is_rate_based=is_rate_based,
    )


def make_invoice(items=(), tax_id="1234567890", invoice_type=None) -> RawInvoice:
    receiver = RawReceiver(tax_id=tax_id, title="ACME Ltd") if tax_id is not None else None
    return RawInvoice(receiver=receiver, items=tuple(items), invoice_type=invoice_type)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture invoice_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, calculator):
            calculator.calculate_totals()
            logs = captured_logs()
            assert any(r["message"] == "invoice_totals_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("invoice_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Engine fixtures
# =============================================================================


@pytest.fixture
def tables():
    return get_active_tables()


@pytest.fixture
def classifier(tables):
    return TaxCodeClassifier(tables)


@pytest.fixture
def calculator(classifier):
    return InvoiceTaxCalculator(classifier)
