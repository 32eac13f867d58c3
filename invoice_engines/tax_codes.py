"""
Module: invoice_engines.tax_codes
Responsibility:
    Classify secondary tax codes: does the code contribute to the VAT
    base (hasVat), is it a stoppage, is it a withholding.  Also maps unit
    symbols to authority unit codes.

Architecture position:
    Engines -- pure lookup over immutable ``TaxCodeTables``.

Invariants enforced:
    - Total functions: unknown codes classify as False everywhere.
    - Codes are normalized to four digits before lookup, so ``"3"`` and
      ``"0003"`` classify the same.
"""

from __future__ import annotations

from invoice_config import get_active_tables
from invoice_config.schema import TaxCodeTables
from invoice_kernel.domain.coercion import normalize_tax_code


class TaxCodeClassifier:
    """
    Answers classification questions about tax codes.

    Contract:
        Built from a ``TaxCodeTables`` instance; holds no other state and
        may be shared freely between calculators.
    """

    def __init__(self, tables: TaxCodeTables | None = None):
        self.tables = tables or get_active_tables()

    def is_stoppage(self, code: str) -> bool:
        """Excluded from the taxes total, deducted from the payable amount."""
        return normalize_tax_code(code) in self.tables.stoppage_codes

    def is_withholding(self, code: str) -> bool:
        """Deducted from the payable amount."""
        return normalize_tax_code(code) in self.tables.withholding_codes

    def has_vat(self, code: str) -> bool:
        """The tax amount itself carries VAT at the line's VAT rate."""
        return normalize_tax_code(code) in self.tables.has_vat_codes

    def is_per_unit(self, code: str) -> bool:
        """The entered amount is per unit and scales with quantity."""
        return normalize_tax_code(code) in self.tables.per_unit_codes

    @property
    def reverse_charge_tax_code(self) -> str:
        return self.tables.reverse_charge_tax_code

    def unit_code(self, unit: str | None) -> str:
        return self.tables.unit_code_for(unit)
