"""
Module: invoice_engines.summary
Responsibility:
    Header-level figures derived from computed lines: the reverse-charge
    summary and the resolved invoice type.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from invoice_kernel.domain.invoice import (
    ComputedLineItem,
    InvoiceTotals,
    ReverseChargeSummary,
)
from invoice_kernel.domain.values import sum_money


class InvoiceType(str, Enum):
    """Invoice types accepted by the e-Arşiv portal."""

    SATIS = "SATIS"  # Sale
    IADE = "IADE"  # Return
    TEVKIFAT = "TEVKIFAT"  # Reverse charge
    ISTISNA = "ISTISNA"  # VAT exempt
    OZELMATRAH = "OZELMATRAH"  # Special base


def summarize_reverse_charge(items: Sequence[ComputedLineItem]) -> ReverseChargeSummary:
    """
    Reverse-charge totals for the submission header.

    ``subject_base`` and ``subject_vat`` only count lines that carry a
    positive reverse-charge rate.
    """
    subject = [i for i in items if i.has_reverse_charge]
    return ReverseChargeSummary(
        withheld_vat=sum_money(i.reverse_charge_amount for i in items),
        subject_base=sum_money(i.net_base for i in subject),
        subject_vat=sum_money(i.vat_amount for i in subject),
    )


def resolve_invoice_type(requested: str | None, totals: InvoiceTotals) -> InvoiceType:
    """
    Any withheld VAT forces TEVKIFAT; otherwise the requested type is
    kept when recognised, falling back to SATIS.
    """
    if totals.reverse_charge_total > 0:
        return InvoiceType.TEVKIFAT
    try:
        return InvoiceType((requested or "").strip().upper())
    except ValueError:
        return InvoiceType.SATIS
