"""
Module: invoice_engines.totals
Responsibility:
    Aggregate computed line items into invoice-level totals: gross, net
    base, VAT, discount, taxes total, tax-inclusive total and payable
    amount.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Totals are sums of the already-rounded per-line fields, each sum
      rounded to 2dp; nothing is re-derived from unrounded values.
    - Stoppage or withholding taxes are excluded from the taxes total
      and deducted from the payable amount; all other taxes are included
      in the taxes total and not deducted.
    - Discount total is |sum(decrease) - sum(increase)|.
    - With at least one line, a net base <= 0 is replaced by 0.01 for
      submission and dependent totals are recomputed from it; a payable
      amount <= 0 is clamped to 0.01.
    - Idempotent: the same items always produce the same totals.

Failure modes:
    - None.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from invoice_engines.tracer import traced_engine
from invoice_kernel.domain.invoice import (
    ComputedLineItem,
    ComputedTax,
    DiscountType,
    InvoiceTotals,
)
from invoice_kernel.domain.values import (
    MINIMUM_SUBMISSION_AMOUNT,
    round_money,
    sum_money,
)
from invoice_kernel.logging_config import get_logger

logger = get_logger("engines.totals")


def flatten_taxes(items: Sequence[ComputedLineItem]) -> list[ComputedTax]:
    """All computed taxes across all lines, in line order."""
    return [tax for item in items for tax in item.computed_taxes]


def discount_total(items: Sequence[ComputedLineItem]) -> Decimal:
    """Absolute difference between discounts and surcharges."""
    decreases = sum_money(
        i.discount_amount for i in items if i.discount_type == DiscountType.DECREASE
    )
    increases = sum_money(
        i.discount_amount for i in items if i.discount_type == DiscountType.INCREASE
    )
    return round_money(abs(decreases - increases))


@traced_engine("invoice_totals", "1.0", fingerprint_fields=("items",))
def aggregate_totals(items: Sequence[ComputedLineItem]) -> InvoiceTotals:
    """
    Compute invoice totals from computed line items.

    Args:
        items: Computed lines in invoice order.

    Returns:
        InvoiceTotals; ``submission_net_base`` carries the guarded base.
    """
    gross_total = sum_money(i.gross_price for i in items)
    net_base = sum_money(i.net_base for i in items)
    vat_total = sum_money(i.vat_amount for i in items)
    reverse_charge_total = sum_money(i.reverse_charge_amount for i in items)

    all_taxes = flatten_taxes(items)
    non_stoppage_total = sum_money(t.amount for t in all_taxes if not t.is_stoppage)
    deducted_total = sum_money(t.amount for t in all_taxes if t.is_deducted)

    taxes_total = round_money(vat_total + non_stoppage_total)
    tax_inclusive_total = round_money(net_base + taxes_total)
    payable_amount = round_money(tax_inclusive_total - deducted_total)

    submission_net_base = net_base
    if items:
        if submission_net_base <= 0:
            submission_net_base = MINIMUM_SUBMISSION_AMOUNT
            tax_inclusive_total = round_money(submission_net_base + taxes_total)
            payable_amount = round_money(tax_inclusive_total - deducted_total)
            logger.info("submission_base_guard_applied", extra={
                "net_base": str(net_base),
                "submission_net_base": str(submission_net_base),
            })
        if payable_amount <= 0:
            logger.info("payable_amount_guard_applied", extra={
                "payable_amount": str(payable_amount),
            })
            payable_amount = MINIMUM_SUBMISSION_AMOUNT

    totals = InvoiceTotals(
        net_base=net_base,
        vat_total=vat_total,
        reverse_charge_total=reverse_charge_total,
        discount_total=discount_total(items),
        gross_total=gross_total,
        taxes_total=taxes_total,
        tax_inclusive_total=tax_inclusive_total,
        payable_amount=payable_amount,
        submission_net_base=submission_net_base,
    )

    logger.info("invoice_totals_calculated", extra={
        "item_count": len(items),
        "tax_count": len(all_taxes),
        "net_base": str(totals.net_base),
        "vat_total": str(totals.vat_total),
        "taxes_total": str(totals.taxes_total),
        "payable_amount": str(totals.payable_amount),
    })
    return totals
