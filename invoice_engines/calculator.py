"""
Module: invoice_engines.calculator
Responsibility:
    Per-invoice accumulator tying the engines together: lines are added
    one by one, then totals and grouped taxes are read from the
    accumulated list.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - The only state is the ordered list of computed lines.
    - Reading totals or grouped taxes never mutates stored lines and is
      idempotent; totals read before a later ``add_item`` are stale and
      must be recomputed.
    - One instance per invoice.  Instances share nothing mutable, so
      invoices can be computed concurrently with one instance each; a
      single instance is not meant for concurrent use.

Usage:
    from invoice_engines import InvoiceTaxCalculator

    calculator = InvoiceTaxCalculator()
    for raw in raw_items:
        calculator.add_item(raw)
    totals = calculator.calculate_totals()
    grouped = calculator.group_taxes()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from invoice_config.schema import TaxCodeTables
from invoice_engines.grouping import group_taxes
from invoice_engines.line_item import LineItemCalculator
from invoice_engines.summary import (
    InvoiceType,
    resolve_invoice_type,
    summarize_reverse_charge,
)
from invoice_engines.tax_codes import TaxCodeClassifier
from invoice_engines.totals import aggregate_totals
from invoice_engines.validation import require_valid_invoice
from invoice_kernel.domain.coercion import line_item_from_mapping
from invoice_kernel.domain.invoice import (
    ComputedLineItem,
    GroupedTax,
    InvoiceTotals,
    RawInvoice,
    RawLineItem,
    ReverseChargeSummary,
)
from invoice_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.calculator")


class InvoiceTaxCalculator:
    """
    Accumulates computed lines for one invoice.

    Args:
        classifier: Tax code classifier to use.
        tables: Classification tables, used when no classifier is given.
            Defaults to the active table set.
    """

    def __init__(
        self,
        classifier: TaxCodeClassifier | None = None,
        tables: TaxCodeTables | None = None,
    ):
        self.classifier = classifier or TaxCodeClassifier(tables)
        self._line_calculator = LineItemCalculator(self.classifier)
        self._items: list[ComputedLineItem] = []

    @property
    def items(self) -> tuple[ComputedLineItem, ...]:
        """Computed lines in the order they were added."""
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def add_item(self, raw: RawLineItem | Mapping[str, Any]) -> ComputedLineItem:
        """
        Price one line and append it to the invoice.

        Plain mappings are parsed permissively first.
        """
        if isinstance(raw, Mapping):
            raw = line_item_from_mapping(raw)
        item = self._line_calculator.calculate(raw)
        self._items.append(item)
        return item

    def add_items(
        self, raws: Iterable[RawLineItem | Mapping[str, Any]]
    ) -> list[ComputedLineItem]:
        return [self.add_item(raw) for raw in raws]

    def calculate_totals(self) -> InvoiceTotals:
        return aggregate_totals(self.items)

    def group_taxes(self) -> list[GroupedTax]:
        return group_taxes(self.items)

    def reverse_charge_summary(self) -> ReverseChargeSummary:
        return summarize_reverse_charge(self.items)


@dataclass(frozen=True)
class InvoiceCalculation:
    """Everything the submission payload builder needs for one invoice."""

    items: tuple[ComputedLineItem, ...]
    totals: InvoiceTotals
    grouped_taxes: tuple[GroupedTax, ...]
    reverse_charge: ReverseChargeSummary
    invoice_type: InvoiceType


def calculate_invoice(
    invoice: RawInvoice,
    strict: bool = False,
    classifier: TaxCodeClassifier | None = None,
) -> InvoiceCalculation:
    """
    Compute a whole invoice in one call.

    Log lines emitted while computing carry the invoice's ETTN as
    ``invoice_id``.

    Args:
        invoice: Parsed invoice.
        strict: Require a receiver identity and at least one line first.
        classifier: Tax code classifier; defaults to the active tables.

    Raises:
        ValidationError: strict mode only.
    """
    with LogContext.bind(invoice_id=invoice.invoice_id):
        if strict:
            require_valid_invoice(invoice)

        calculator = InvoiceTaxCalculator(classifier)
        calculator.add_items(invoice.items)
        totals = calculator.calculate_totals()
        invoice_type = resolve_invoice_type(invoice.invoice_type, totals)

        logger.info("invoice_calculated", extra={
            "item_count": len(calculator),
            "invoice_type": invoice_type.value,
            "payable_amount": str(totals.payable_amount),
            "strict": strict,
        })

        return InvoiceCalculation(
            items=calculator.items,
            totals=totals,
            grouped_taxes=tuple(calculator.group_taxes()),
            reverse_charge=calculator.reverse_charge_summary(),
            invoice_type=invoice_type,
        )
