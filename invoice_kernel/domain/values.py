"""
Values -- Decimal helpers for monetary arithmetic.

Responsibility:
    Single place that defines how invoice amounts are rounded and how
    percentage rates are applied.  Every monetary field is finalized with
    ``round_money`` exactly once.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic; floats never reach these helpers.
    - Rounding is ROUND_HALF_UP to two decimal places.
"""

from __future__ import annotations

from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, ROUND_HALF_UP, Context, Decimal

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

# Quantizing to cents never runs out of digits, whatever the magnitude.
_ROUNDING_CONTEXT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)

# Smallest amount the tax authority accepts for base and payable totals.
MINIMUM_SUBMISSION_AMOUNT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round a monetary value to two decimal places (half up)."""
    return value.quantize(
        TWO_PLACES, rounding=ROUND_HALF_UP, context=_ROUNDING_CONTEXT
    )


def percentage(amount: Decimal, rate_percent: Decimal) -> Decimal:
    """Apply a percentage rate (e.g. 18 for 18%) to an amount, unrounded."""
    return amount * rate_percent / HUNDRED


def sum_money(values) -> Decimal:
    """Sum already-rounded amounts and round the total."""
    return round_money(sum(values, ZERO))
