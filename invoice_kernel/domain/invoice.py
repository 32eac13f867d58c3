"""
Invoice records -- raw inputs and computed outputs of the tax engine.

Responsibility:
    Immutable value objects exchanged between the caller and the
    calculation engines.  Raw records hold already-parsed but not yet
    defaulted values (``None`` means "absent"); computed records hold
    finalized, 2dp-rounded amounts.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - All records are frozen dataclasses; collections are tuples.
    - Computed monetary fields are Decimal with at most two decimals.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class DiscountType(str, Enum):
    """Whether the line adjustment lowers or raises the price."""

    DECREASE = "İskonto"  # Discount
    INCREASE = "Arttırım"  # Surcharge


class TaxType(str, Enum):
    """Kind of manually attached tax on a line item."""

    WITHHOLDING = "STOPAJ"
    OTHER = "OTHER"
    REVERSE_CHARGE = "TEVKIFAT"


@dataclass(frozen=True)
class RawTax:
    """A tax entered by the user on one line item."""

    type: TaxType
    code: str
    rate: Decimal | None = None
    amount: Decimal | None = None
    is_rate_based: bool = True


@dataclass(frozen=True)
class RawLineItem:
    """
    One invoice line as entered by the user.

    Numeric fields may be ``None`` (absent); default resolution happens
    inside the line item calculator.
    """

    name: str = ""
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    unit: str | None = None
    discount_rate: Decimal | None = None
    discount_amount: Decimal | None = None
    discount_type: DiscountType = DiscountType.DECREASE
    vat_rate: Decimal | None = None
    taxes: tuple[RawTax, ...] = ()
    exemption_code: str | None = None
    # Fallback when the reverse-charge tax entry carries no code
    reverse_charge_code: str | None = None


@dataclass(frozen=True)
class RawReceiver:
    """Buyer identity. ``tax_id`` is a 10-digit VKN or an 11-digit TCKN."""

    tax_id: str | None = None
    title: str = ""
    name: str = ""
    surname: str = ""

    @property
    def is_company(self) -> bool:
        return self.tax_id is not None and len(self.tax_id) == 10

    @property
    def is_person(self) -> bool:
        return self.tax_id is not None and len(self.tax_id) == 11


@dataclass(frozen=True)
class RawInvoice:
    """Invoice-level input: receiver plus ordered line items."""

    receiver: RawReceiver | None = None
    items: tuple[RawLineItem, ...] = ()
    invoice_type: str | None = None
    invoice_id: str | None = None  # ETTN (invoice UUID)


@dataclass(frozen=True)
class ComputedTax:
    """A secondary tax computed for one line item."""

    code: str
    rate: Decimal
    amount: Decimal
    vat_contribution: Decimal
    is_stoppage: bool
    is_withholding: bool

    @property
    def is_deducted(self) -> bool:
        """True if the amount is subtracted from the payable amount."""
        return self.is_stoppage or self.is_withholding


@dataclass(frozen=True)
class ComputedLineItem:
    """A fully priced line item."""

    name: str
    quantity: Decimal
    unit_price: Decimal
    gross_price: Decimal
    unit_code: str
    discount_type: DiscountType
    discount_rate: Decimal
    discount_amount: Decimal
    net_base: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    reverse_charge_code: str
    reverse_charge_rate: Decimal
    reverse_charge_amount: Decimal
    computed_taxes: tuple[ComputedTax, ...] = ()
    exemption_code: str | None = None

    @property
    def has_reverse_charge(self) -> bool:
        return self.reverse_charge_rate > 0


@dataclass(frozen=True)
class InvoiceTotals:
    """
    Invoice-level aggregates.

    ``net_base`` is the plain sum of line bases; ``submission_net_base``
    is the same value with the minimum-base floor applied and is the one
    to report to the tax authority.
    """

    net_base: Decimal
    vat_total: Decimal
    reverse_charge_total: Decimal
    discount_total: Decimal
    gross_total: Decimal
    taxes_total: Decimal
    tax_inclusive_total: Decimal
    payable_amount: Decimal
    submission_net_base: Decimal


@dataclass(frozen=True)
class GroupedTax:
    """Total of one tax code across all line items."""

    code: str
    total_amount: Decimal


@dataclass(frozen=True)
class ReverseChargeSummary:
    """Reverse-charge figures reported in the submission header."""

    withheld_vat: Decimal
    subject_base: Decimal
    subject_vat: Decimal
