"""
Module: invoice_engines.grouping
Responsibility:
    Re-aggregate per-line computed taxes by tax code into the flat
    per-code summary list the submission payload carries.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Output order is the order in which each code first appears.
    - Codes whose summed amount is <= 0 are omitted.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from invoice_engines.tracer import traced_engine
from invoice_kernel.domain.invoice import ComputedLineItem, GroupedTax
from invoice_kernel.domain.values import ZERO, round_money
from invoice_kernel.logging_config import get_logger

logger = get_logger("engines.grouping")


@traced_engine("tax_grouping", "1.0", fingerprint_fields=("items",))
def group_taxes(items: Sequence[ComputedLineItem]) -> list[GroupedTax]:
    """Sum tax amounts per code across all lines."""
    totals: dict[str, Decimal] = {}
    for item in items:
        for tax in item.computed_taxes:
            totals[tax.code] = totals.get(tax.code, ZERO) + tax.amount

    grouped = [
        GroupedTax(code=code, total_amount=round_money(amount))
        for code, amount in totals.items()
        if amount > 0
    ]

    logger.debug("taxes_grouped", extra={
        "code_count": len(totals),
        "reported_codes": [g.code for g in grouped],
    })
    return grouped
