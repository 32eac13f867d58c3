"""
Module: invoice_engines.validation
Responsibility:
    Strict, invoice-level checks for the data the engine cannot default:
    a resolvable receiver identity and at least one line item.

Architecture position:
    Engines -- pure checks, zero I/O.  Numeric leniency stays in
    ``invoice_kernel.domain.coercion``; these checks are opt-in.

Failure modes:
    - ``validate_invoice`` never raises; it returns the errors found.
    - ``require_valid_invoice`` raises the first error.
"""

from __future__ import annotations

from invoice_kernel.domain.invoice import RawInvoice
from invoice_kernel.exceptions import (
    EmptyInvoiceError,
    InvalidReceiverIdentityError,
    MissingReceiverIdentityError,
    ValidationError,
)
from invoice_kernel.logging_config import get_logger

logger = get_logger("engines.validation")

# VKN (companies) is 10 digits, TCKN (persons) is 11.
_TAX_ID_LENGTHS = (10, 11)


def validate_invoice(invoice: RawInvoice) -> tuple[ValidationError, ...]:
    """Return every invoice-level validation error (empty when valid)."""
    errors: list[ValidationError] = []

    tax_id = invoice.receiver.tax_id if invoice.receiver else None
    if not tax_id:
        errors.append(MissingReceiverIdentityError())
    elif not tax_id.isdigit() or len(tax_id) not in _TAX_ID_LENGTHS:
        errors.append(InvalidReceiverIdentityError(tax_id))

    if not invoice.items:
        errors.append(EmptyInvoiceError())

    if errors:
        logger.info("invoice_validation_failed", extra={
            "error_codes": [e.code for e in errors],
        })
    return tuple(errors)


def require_valid_invoice(invoice: RawInvoice) -> None:
    """Raise the first validation error, if any."""
    errors = validate_invoice(invoice)
    if errors:
        raise errors[0]
