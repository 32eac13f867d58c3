"""
Module: invoice_engines.line_item
Responsibility:
    Price a single raw invoice line: gross price, discount, net base
    ("matrah"), VAT, manually entered secondary taxes and the
    reverse-charge ("tevkifat") tax.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Strict stage order: price -> discount -> base VAT -> secondary
      taxes -> VAT-contribution fold -> reverse charge -> finalize.  Each
      stage takes and returns an immutable ``LineItemState``.
    - The reverse-charge amount is taken from the VAT amount *after* the
      hasVat contributions were folded in.
    - Net base is floored at zero.
    - Every monetary output is rounded to 2dp exactly once; secondary tax
      amounts and their VAT contributions are finalized when computed and
      are summed as rounded values.
    - At most one reverse-charge tax per line: the first one wins, later
      ones are logged and ignored.

Failure modes:
    - None.  Absent or malformed numbers resolve to defaults
      (quantity 1, everything else 0) before any arithmetic.

Usage:
    from invoice_engines.line_item import LineItemCalculator

    computed = LineItemCalculator().calculate(raw_item)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from invoice_engines.tax_codes import TaxCodeClassifier
from invoice_engines.tracer import traced_engine
from invoice_kernel.domain.coercion import (
    normalize_tax_code,
    resolve_amount,
    resolve_quantity,
)
from invoice_kernel.domain.invoice import (
    ComputedLineItem,
    ComputedTax,
    DiscountType,
    RawLineItem,
    RawTax,
    TaxType,
)
from invoice_kernel.domain.values import ONE, ZERO, percentage, round_money
from invoice_kernel.logging_config import get_logger

logger = get_logger("engines.line_item")


@dataclass(frozen=True)
class LineItemState:
    """
    Running values of one line as it moves through the stages.

    Amounts are unrounded except ``secondary_taxes`` and
    ``reverse_charge_tax``, whose amounts are already final.
    """

    raw: RawLineItem
    quantity: Decimal = ONE
    unit_price: Decimal = ZERO
    gross_price: Decimal = ZERO
    discount_rate: Decimal = ZERO
    discount_amount: Decimal = ZERO
    net_base: Decimal = ZERO
    vat_rate: Decimal = ZERO
    vat_amount: Decimal = ZERO
    secondary_taxes: tuple[ComputedTax, ...] = ()
    reverse_charge_code: str = ""
    reverse_charge_rate: Decimal = ZERO
    reverse_charge_tax: ComputedTax | None = None

    @property
    def reverse_charge_amount(self) -> Decimal:
        if self.reverse_charge_tax is None:
            return ZERO
        return self.reverse_charge_tax.amount


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


def apply_price(state: LineItemState) -> LineItemState:
    """gross = quantity * unit price."""
    quantity = resolve_quantity(state.raw.quantity)
    unit_price = resolve_amount(state.raw.unit_price)
    return replace(
        state,
        quantity=quantity,
        unit_price=unit_price,
        gross_price=quantity * unit_price,
    )


def apply_discount(state: LineItemState) -> LineItemState:
    """
    Resolve the discount and the net base.

    A non-zero discount rate wins over an entered discount amount.
    """
    raw = state.raw
    rate = resolve_amount(raw.discount_rate)
    if rate:
        amount = percentage(state.gross_price, rate)
    else:
        amount = resolve_amount(raw.discount_amount)

    if raw.discount_type == DiscountType.INCREASE:
        net_base = state.gross_price + amount
    else:
        net_base = state.gross_price - amount

    return replace(
        state,
        discount_rate=rate,
        discount_amount=amount,
        net_base=max(ZERO, net_base),
    )


def apply_base_vat(state: LineItemState) -> LineItemState:
    """VAT on the net base, before secondary-tax contributions."""
    vat_rate = resolve_amount(state.raw.vat_rate)
    return replace(
        state,
        vat_rate=vat_rate,
        vat_amount=percentage(state.net_base, vat_rate),
    )


def compute_secondary_tax(
    state: LineItemState,
    tax: RawTax,
    classifier: TaxCodeClassifier,
) -> ComputedTax:
    """Compute one withholding/other tax against the line's net base."""
    code = normalize_tax_code(tax.code)
    rate = resolve_amount(tax.rate)
    if tax.is_rate_based and rate > 0:
        amount = percentage(state.net_base, rate)
    else:
        amount = resolve_amount(tax.amount)

    if classifier.is_per_unit(code):
        amount *= state.quantity

    amount = round_money(amount)
    vat_contribution = ZERO
    if classifier.has_vat(code):
        vat_contribution = round_money(percentage(amount, state.vat_rate))

    return ComputedTax(
        code=code,
        rate=rate,
        amount=amount,
        vat_contribution=vat_contribution,
        is_stoppage=classifier.is_stoppage(code),
        is_withholding=classifier.is_withholding(code),
    )


def apply_secondary_taxes(
    state: LineItemState, classifier: TaxCodeClassifier
) -> LineItemState:
    """All withholding and other taxes, in input order."""
    computed = tuple(
        compute_secondary_tax(state, tax, classifier)
        for tax in state.raw.taxes
        if tax.type in (TaxType.WITHHOLDING, TaxType.OTHER)
    )
    return replace(state, secondary_taxes=computed)


def fold_tax_vat(state: LineItemState) -> LineItemState:
    """Add the VAT carried by hasVat secondary taxes to the line VAT."""
    contribution = sum((t.vat_contribution for t in state.secondary_taxes), ZERO)
    return replace(state, vat_amount=state.vat_amount + contribution)


def apply_reverse_charge(
    state: LineItemState, classifier: TaxCodeClassifier
) -> LineItemState:
    """
    Withhold a share of the (already folded) VAT amount.

    Only the first reverse-charge entry is honoured.
    """
    raw = state.raw
    entries = [t for t in raw.taxes if t.type == TaxType.REVERSE_CHARGE]
    if len(entries) > 1:
        logger.warning("reverse_charge_duplicate_ignored", extra={
            "item_name": raw.name,
            "used_code": entries[0].code,
            "ignored_codes": [t.code for t in entries[1:]],
        })

    if not entries:
        return replace(state, reverse_charge_code=raw.reverse_charge_code or "")

    entry = entries[0]
    rate = resolve_amount(entry.rate)
    code = str(entry.code or raw.reverse_charge_code or "").strip()
    state = replace(state, reverse_charge_code=code, reverse_charge_rate=rate)
    if rate <= 0:
        return state

    tax = ComputedTax(
        code=classifier.reverse_charge_tax_code,
        rate=rate,
        amount=round_money(percentage(state.vat_amount, rate)),
        vat_contribution=ZERO,
        is_stoppage=True,
        is_withholding=True,
    )
    return replace(state, reverse_charge_tax=tax)


def finalize(state: LineItemState, classifier: TaxCodeClassifier) -> ComputedLineItem:
    """Round monetary fields and build the output record."""
    raw = state.raw
    computed_taxes = state.secondary_taxes
    if state.reverse_charge_tax is not None:
        computed_taxes = computed_taxes + (state.reverse_charge_tax,)

    return ComputedLineItem(
        name=raw.name,
        quantity=state.quantity,
        unit_price=round_money(state.unit_price),
        gross_price=round_money(state.gross_price),
        unit_code=classifier.unit_code(raw.unit),
        discount_type=raw.discount_type,
        discount_rate=state.discount_rate,
        discount_amount=round_money(state.discount_amount),
        net_base=round_money(state.net_base),
        vat_rate=state.vat_rate,
        vat_amount=round_money(state.vat_amount),
        reverse_charge_code=state.reverse_charge_code,
        reverse_charge_rate=state.reverse_charge_rate,
        reverse_charge_amount=round_money(state.reverse_charge_amount),
        computed_taxes=computed_taxes,
        exemption_code=raw.exemption_code,
    )


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------


class LineItemCalculator:
    """
    Price invoice lines.

    Pure -- no I/O, no state beyond the injected classifier.
    """

    def __init__(self, classifier: TaxCodeClassifier | None = None):
        self.classifier = classifier or TaxCodeClassifier()

    @traced_engine("line_item", "1.0", fingerprint_fields=("raw",))
    def calculate(self, raw: RawLineItem) -> ComputedLineItem:
        """
        Run every stage for one line.

        Args:
            raw: The line as entered.

        Returns:
            ComputedLineItem with all monetary fields rounded to 2dp.
        """
        state = LineItemState(raw=raw)
        state = apply_price(state)
        state = apply_discount(state)
        state = apply_base_vat(state)
        state = apply_secondary_taxes(state, self.classifier)
        state = fold_tax_vat(state)
        state = apply_reverse_charge(state, self.classifier)
        item = finalize(state, self.classifier)

        logger.debug("line_item_calculated", extra={
            "item_name": item.name,
            "gross_price": str(item.gross_price),
            "net_base": str(item.net_base),
            "vat_amount": str(item.vat_amount),
            "reverse_charge_amount": str(item.reverse_charge_amount),
            "tax_count": len(item.computed_taxes),
        })
        return item
