"""
invoice_config -- public entrypoint for tax code classification tables.

Responsibility:
    Provides ``get_active_tables()``, the way engines obtain the
    stoppage / withholding / hasVat code sets and the unit-code map.
    Tables are immutable data injected into the calculator, so a
    jurisdiction variant is a new YAML file rather than a code change.

Architecture position:
    Configuration -- sits above ``invoice_kernel`` and below
    ``invoice_engines``.  The kernel MUST NEVER import from here.

Failure modes:
    - ``FileNotFoundError`` -- no table set with the requested name.
    - ``TaxCodeTableError`` -- malformed table set.

Audit relevance:
    Every load emits an ``INVOICE_CONFIG_TRACE`` log entry with the set
    name, version and checksum, tying computed invoices to the exact
    classification that produced them.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from invoice_config.loader import (
    CodePreservingLoader,
    compute_checksum,
    load_tax_code_tables,
    load_yaml_file,
    parse_tables,
)
from invoice_config.schema import TaxCodeTables

_logger = logging.getLogger("invoice_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DEFAULT_TABLE_SET = "tr_gib"

__all__ = [
    "CodePreservingLoader",
    "DEFAULT_TABLE_SET",
    "TaxCodeTables",
    "compute_checksum",
    "get_active_tables",
    "load_tax_code_tables",
    "load_yaml_file",
    "parse_tables",
]


@lru_cache(maxsize=None)
def get_active_tables(
    name: str = DEFAULT_TABLE_SET,
    config_dir: Path | None = None,
) -> TaxCodeTables:
    """
    Load a named classification set.

    Results are cached per (name, config_dir); the returned tables are
    frozen and safe to share between calculator instances and threads.

    Args:
        name: Set name, i.e. the YAML file stem under the sets directory.
        config_dir: Override path to the sets directory.

    Raises:
        FileNotFoundError: If the set does not exist.
        TaxCodeTableError: If the set is malformed.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"Tax code table set not found: {path}")

    tables = load_tax_code_tables(path)

    _logger.info(
        "INVOICE_CONFIG_TRACE",
        extra={
            "trace_type": "INVOICE_CONFIG_TRACE",
            "table_set": tables.name,
            "table_version": tables.version,
            "jurisdiction": tables.jurisdiction,
            "checksum": compute_checksum(tables),
        },
    )
    return tables
