"""
Pure domain layer.

Immutable invoice records, Decimal helpers and input coercion with NO
dependencies on I/O, clocks or configuration.
"""

from invoice_kernel.domain.coercion import (
    invoice_from_mapping,
    line_item_from_mapping,
    normalize_tax_code,
    parse_decimal,
    resolve_amount,
    resolve_quantity,
)
from invoice_kernel.domain.invoice import (
    ComputedLineItem,
    ComputedTax,
    DiscountType,
    GroupedTax,
    InvoiceTotals,
    RawInvoice,
    RawLineItem,
    RawReceiver,
    RawTax,
    ReverseChargeSummary,
    TaxType,
)
from invoice_kernel.domain.values import (
    MINIMUM_SUBMISSION_AMOUNT,
    TWO_PLACES,
    percentage,
    round_money,
)

__all__ = [
    "ComputedLineItem",
    "ComputedTax",
    "DiscountType",
    "GroupedTax",
    "InvoiceTotals",
    "MINIMUM_SUBMISSION_AMOUNT",
    "RawInvoice",
    "RawLineItem",
    "RawReceiver",
    "RawTax",
    "ReverseChargeSummary",
    "TWO_PLACES",
    "TaxType",
    "invoice_from_mapping",
    "line_item_from_mapping",
    "normalize_tax_code",
    "parse_decimal",
    "percentage",
    "resolve_amount",
    "resolve_quantity",
    "round_money",
]
