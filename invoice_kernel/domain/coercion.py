"""
Coercion -- turn user-entered invoice data into raw domain records.

Responsibility:
    Parses plain mappings (form/JSON data using the source field names)
    into ``RawLineItem`` / ``RawInvoice`` records, and resolves absent or
    malformed numbers to safe defaults.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Permissive mode never raises: malformed numbers resolve to defaults
      (quantity 1, everything else 0).
    - Strict mode raises ``InvalidFieldError`` listing every malformed
      field at once; absent fields still resolve to defaults.
    - Floats are converted through ``str`` so binary artefacts never
      reach Decimal arithmetic.

Failure modes:
    - InvalidFieldError (strict mode only).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from invoice_kernel.domain.invoice import (
    DiscountType,
    RawInvoice,
    RawLineItem,
    RawReceiver,
    RawTax,
    TaxType,
)
from invoice_kernel.domain.values import ONE, ZERO
from invoice_kernel.exceptions import InvalidFieldError
from invoice_kernel.logging_config import get_logger

logger = get_logger("domain.coercion")

_MISSING = object()

# Values at or above 10**15 are rejected as malformed.
MAX_MAGNITUDE_DIGITS = 15


def parse_decimal(value: Any, default: Decimal | None = None) -> Decimal | None:
    """
    Convert a loosely typed value to Decimal.

    Accepts Decimal, int, float and numeric strings (a lone decimal comma
    is read as a decimal point).  Returns ``default`` for None, empty
    strings, booleans, non-numeric strings, NaN, infinities and
    magnitudes of 10**15 or more.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            result = Decimal(text)
        except InvalidOperation:
            return default
    else:
        return default
    if not result.is_finite() or result.adjusted() >= MAX_MAGNITUDE_DIGITS:
        return default
    return result


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def resolve_quantity(value: Any) -> Decimal:
    """Quantity defaults to 1 when absent, malformed or zero."""
    quantity = parse_decimal(value)
    if quantity is None or quantity == 0:
        return ONE
    return quantity


def resolve_amount(value: Any) -> Decimal:
    """Prices, rates and amounts default to 0."""
    return parse_decimal(value, ZERO)


def normalize_tax_code(code: Any) -> str:
    """Tax codes are zero-padded to four digits (``3`` -> ``"0003"``)."""
    return str(code if code is not None else "").strip().zfill(4)


def parse_discount_type(value: Any) -> DiscountType | None:
    """Map a discount type label to ``DiscountType``; None if unrecognised."""
    if isinstance(value, DiscountType):
        return value
    if _is_blank(value):
        return DiscountType.DECREASE
    key = str(value).strip().casefold()
    for member in DiscountType:
        if key in (member.value.casefold(), member.name.casefold()):
            return member
    if key == "discount":
        return DiscountType.DECREASE
    if key == "surcharge":
        return DiscountType.INCREASE
    return None


def parse_tax_type(value: Any) -> TaxType | None:
    """Map a tax type label to ``TaxType``; None if unrecognised."""
    if isinstance(value, TaxType):
        return value
    if _is_blank(value):
        return None
    key = str(value).strip().upper()
    for member in TaxType:
        if key in (member.value, member.name):
            return member
    return None


class _FieldReader:
    """Reads numeric fields, collecting the ones that fail to parse."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix
        self.errors: list[dict] = []

    def decimal(self, data: Mapping[str, Any], *names: str) -> Decimal | None:
        raw = _first(data, names)
        if raw is _MISSING or _is_blank(raw):
            return None
        value = parse_decimal(raw)
        if value is None:
            self.reject(names[0], raw)
        return value

    def reject(self, name: str, raw: Any) -> None:
        self.errors.append({"field": f"{self.prefix}{name}", "value": repr(raw)})


def _first(data: Mapping[str, Any], names: Sequence[str]) -> Any:
    """First present, non-blank value among alternative field names."""
    found: Any = _MISSING
    for name in names:
        if name in data:
            value = data[name]
            if not _is_blank(value):
                return value
            found = value
    return found


def _optional_str(value: Any) -> str | None:
    if _is_blank(value):
        return None
    return str(value).strip()


def _entries(value: Any) -> list | None:
    """List-valued field as a list; None when present but not a list."""
    if _is_blank(value):
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def tax_from_mapping(
    data: Mapping[str, Any], reader: _FieldReader
) -> RawTax | None:
    """Parse one tax entry; unknown tax types are skipped (None)."""
    tax_type = parse_tax_type(data.get("type"))
    if tax_type is None:
        reader.reject("type", data.get("type"))
        return None
    return RawTax(
        type=tax_type,
        code=_optional_str(data.get("code")) or "",
        rate=reader.decimal(data, "rate"),
        amount=reader.decimal(data, "amount"),
        is_rate_based=_first(data, ("isRate", "isRateBased")) is not False,
    )


def line_item_from_mapping(
    data: Mapping[str, Any],
    strict: bool = False,
    index: int | None = None,
) -> RawLineItem:
    """
    Build a RawLineItem from user-entered data.

    Args:
        data: Mapping with ``quantity``, ``unitPrice``/``price``,
            ``vatRate``/``kdvRate``, ``discountRate``, ``discountAmount``,
            ``discountType``, ``unit``, ``name`` and ``taxes``.
        strict: Raise instead of dropping malformed values.
        index: Line position, used to prefix field names in errors.

    Raises:
        InvalidFieldError: strict mode only.
    """
    prefix = f"items[{index}]." if index is not None else ""
    reader = _FieldReader(prefix)

    quantity = reader.decimal(data, "quantity")
    unit_price = reader.decimal(data, "unitPrice", "price")
    vat_rate = reader.decimal(data, "vatRate", "kdvRate")
    discount_rate = reader.decimal(data, "discountRate")
    discount_amount = reader.decimal(data, "discountAmount")

    discount_type = parse_discount_type(data.get("discountType"))
    if discount_type is None:
        reader.reject("discountType", data.get("discountType"))
        discount_type = DiscountType.DECREASE

    taxes: list[RawTax] = []
    tax_entries = _entries(data.get("taxes"))
    if tax_entries is None:
        reader.reject("taxes", data.get("taxes"))
        tax_entries = []
    for i, tax_data in enumerate(tax_entries):
        if not isinstance(tax_data, Mapping):
            reader.reject(f"taxes[{i}]", tax_data)
            continue
        reader.prefix = f"{prefix}taxes[{i}]."
        tax = tax_from_mapping(tax_data, reader)
        reader.prefix = prefix
        if tax is not None:
            taxes.append(tax)

    if reader.errors:
        if strict:
            raise InvalidFieldError(reader.errors)
        logger.debug("line_item_fields_defaulted", extra={
            "field_errors": reader.errors,
        })

    return RawLineItem(
        name=str(data.get("name") or ""),
        quantity=quantity,
        unit_price=unit_price,
        unit=_optional_str(data.get("unit")),
        discount_rate=discount_rate,
        discount_amount=discount_amount,
        discount_type=discount_type,
        vat_rate=vat_rate,
        taxes=tuple(taxes),
        exemption_code=_optional_str(data.get("exemptionCode")),
        reverse_charge_code=_optional_str(data.get("tevkifatCode")),
    )


def receiver_from_mapping(data: Mapping[str, Any] | None) -> RawReceiver | None:
    """Build a RawReceiver; None when no receiver block was given."""
    if not data or not isinstance(data, Mapping):
        return None
    return RawReceiver(
        tax_id=_optional_str(data.get("vknTckn") or data.get("taxId")),
        title=str(data.get("title") or ""),
        name=str(data.get("name") or ""),
        surname=str(data.get("surname") or ""),
    )


def invoice_from_mapping(data: Mapping[str, Any], strict: bool = False) -> RawInvoice:
    """
    Build a RawInvoice from user-entered data.

    In strict mode every malformed field across all lines is reported in
    a single ``InvalidFieldError``.
    """
    items: list[RawLineItem] = []
    field_errors: list[dict] = []
    item_entries = _entries(data.get("items"))
    if item_entries is None:
        field_errors.append({"field": "items", "value": repr(data.get("items"))})
        item_entries = []
    for i, item_data in enumerate(item_entries):
        if not isinstance(item_data, Mapping):
            field_errors.append({"field": f"items[{i}]", "value": repr(item_data)})
            continue
        try:
            items.append(line_item_from_mapping(item_data, strict=strict, index=i))
        except InvalidFieldError as exc:
            field_errors.extend(exc.field_errors)
    if field_errors:
        if strict:
            raise InvalidFieldError(field_errors)
        logger.debug("invoice_entries_skipped", extra={
            "field_errors": field_errors,
        })

    return RawInvoice(
        receiver=receiver_from_mapping(data.get("receiver")),
        items=tuple(items),
        invoice_type=_optional_str(data.get("type")),
        invoice_id=_optional_str(data.get("uuid") or data.get("ettn")),
    )
