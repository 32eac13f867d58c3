"""
TaxCodeTables schema.

The classification tables are human-authored YAML (one file per
jurisdiction variant under ``invoice_config/sets``); the loader parses
them into the frozen dataclass below, which is what the engines consume.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TaxCodeTables:
    """
    Classification of secondary tax codes plus unit-code mapping.

    All tax codes are four-digit strings.
    """

    name: str
    stoppage_codes: frozenset[str]
    withholding_codes: frozenset[str]
    has_vat_codes: frozenset[str]
    reverse_charge_tax_code: str
    per_unit_codes: frozenset[str] = frozenset()
    unit_codes: tuple[tuple[str, str], ...] = ()  # (unit symbol, authority code)
    default_unit_code: str = "C62"
    version: int = 1
    jurisdiction: str = ""
    _unit_index: dict[str, str] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_unit_index", dict(self.unit_codes))

    def unit_code_for(self, unit: str | None) -> str:
        """Authority unit code for a unit symbol (case-insensitive)."""
        symbol = (unit or "ADET").strip().upper()
        return self._unit_index.get(symbol, self.default_unit_code)

    def to_dict(self) -> dict:
        """Canonical plain-data form, used for checksums."""
        return {
            "name": self.name,
            "version": self.version,
            "jurisdiction": self.jurisdiction,
            "stoppage_codes": sorted(self.stoppage_codes),
            "withholding_codes": sorted(self.withholding_codes),
            "has_vat_codes": sorted(self.has_vat_codes),
            "per_unit_codes": sorted(self.per_unit_codes),
            "reverse_charge_tax_code": self.reverse_charge_tax_code,
            "unit_codes": dict(self.unit_codes),
            "default_unit_code": self.default_unit_code,
        }
