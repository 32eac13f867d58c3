"""
Module: invoice_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    invoice tax calculation engines.  This is the canonical import
    surface for the submission payload builder.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invoice_kernel and invoice_config.

Invariants enforced:
    - Decimal-only arithmetic; floats are converted at the coercion
      boundary and never reach the engines.
    - Determinism: identical inputs always produce identical outputs.
    - Classification tables are injected, never mutated.

Audit relevance:
    Every engine invocation is traced via the ``@traced_engine`` decorator
    (see ``invoice_engines.tracer``), emitting INVOICE_ENGINE_TRACE log
    records that include engine name, version, input fingerprint, and
    duration.

Usage:
    from invoice_engines import InvoiceTaxCalculator, calculate_invoice
    from invoice_engines.line_item import LineItemCalculator
    from invoice_engines.tax_codes import TaxCodeClassifier
"""

from invoice_kernel.logging_config import get_logger

logger = get_logger("engines")

from invoice_engines.calculator import (
    InvoiceCalculation,
    InvoiceTaxCalculator,
    calculate_invoice,
)
from invoice_engines.grouping import group_taxes
from invoice_engines.line_item import LineItemCalculator, LineItemState
from invoice_engines.summary import (
    InvoiceType,
    resolve_invoice_type,
    summarize_reverse_charge,
)
from invoice_engines.tax_codes import TaxCodeClassifier
from invoice_engines.totals import aggregate_totals
from invoice_engines.tracer import traced_engine
from invoice_engines.validation import require_valid_invoice, validate_invoice

__all__ = [
    "InvoiceCalculation",
    "InvoiceTaxCalculator",
    "InvoiceType",
    "LineItemCalculator",
    "LineItemState",
    "TaxCodeClassifier",
    "aggregate_totals",
    "calculate_invoice",
    "group_taxes",
    "require_valid_invoice",
    "resolve_invoice_type",
    "summarize_reverse_charge",
    "traced_engine",
    "validate_invoice",
]
