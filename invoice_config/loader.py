"""
Configuration Loader (``invoice_config.loader``).

Responsibility
--------------
Loads tax code classification YAML files and parses them into the
frozen ``TaxCodeTables`` dataclass.  Runtime callers go through
``invoice_config.get_active_tables()``.

Invariants enforced
-------------------
* Every tax code is normalized to a four-digit string.
* Zero-padded scalars (``0071``) load as strings, never as YAML 1.1
  octal integers.
* Required keys must be present; no silent defaults for classification
  sets.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing keys or non-numeric codes  -> ``TaxCodeTableError``.
"""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path
from typing import Any

import yaml

from invoice_config.schema import TaxCodeTables
from invoice_kernel.exceptions import TaxCodeTableError

_REQUIRED_KEYS = (
    "name",
    "stoppage_codes",
    "withholding_codes",
    "has_vat_codes",
    "reverse_charge_tax_code",
)

_INT_TAG = "tag:yaml.org,2002:int"


class CodePreservingLoader(yaml.SafeLoader):
    """
    SafeLoader that only resolves plain decimal integers.

    Tax codes are written unquoted (``code: 0071``); the stock resolver
    would read them as octal (57).  Octal, hex and sexagesimal forms stay
    strings here.
    """


CodePreservingLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _INT_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
CodePreservingLoader.add_implicit_resolver(
    _INT_TAG,
    re.compile(r"^[-+]?(?:0|[1-9][0-9_]*)$"),
    list("-+0123456789"),
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.load(f, Loader=CodePreservingLoader) or {}


def parse_code(value: Any, source: str) -> str:
    """Normalize one tax code to four digits."""
    code = str(value).strip()
    if not code.isdigit() or len(code) > 4:
        raise TaxCodeTableError(source, f"tax code {value!r} is not a 1-4 digit number")
    return code.zfill(4)


def parse_code_set(values: Any, source: str, key: str) -> frozenset[str]:
    if values is None:
        return frozenset()
    if not isinstance(values, list):
        raise TaxCodeTableError(source, f"{key} must be a list")
    return frozenset(parse_code(v, source) for v in values)


def parse_tables(data: dict[str, Any], source: str = "<dict>") -> TaxCodeTables:
    """
    Parse a ``TaxCodeTables`` from a dict.

    Raises:
        TaxCodeTableError: if required keys are missing or codes are malformed.
    """
    missing = [k for k in _REQUIRED_KEYS if k not in data]
    if missing:
        raise TaxCodeTableError(source, f"missing keys: {', '.join(missing)}")

    unit_codes = data.get("unit_codes") or {}
    if not isinstance(unit_codes, dict):
        raise TaxCodeTableError(source, "unit_codes must be a mapping")

    return TaxCodeTables(
        name=str(data["name"]),
        version=int(data.get("version", 1)),
        jurisdiction=str(data.get("jurisdiction", "")),
        stoppage_codes=parse_code_set(data["stoppage_codes"], source, "stoppage_codes"),
        withholding_codes=parse_code_set(data["withholding_codes"], source, "withholding_codes"),
        has_vat_codes=parse_code_set(data["has_vat_codes"], source, "has_vat_codes"),
        per_unit_codes=parse_code_set(data.get("per_unit_codes"), source, "per_unit_codes"),
        reverse_charge_tax_code=parse_code(data["reverse_charge_tax_code"], source),
        unit_codes=tuple(
            (str(symbol).strip().upper(), str(code).strip())
            for symbol, code in unit_codes.items()
        ),
        default_unit_code=str(data.get("default_unit_code", "C62")),
    )


def load_tax_code_tables(path: Path) -> TaxCodeTables:
    """Load and parse one classification file."""
    return parse_tables(load_yaml_file(path), source=str(path))


def compute_checksum(tables: TaxCodeTables) -> str:
    """
    Compute SHA-256 checksum of the canonical JSON serialization.

    Identical tables always produce identical checksums, regardless of
    the order codes were listed in the YAML file.
    """
    canonical = json.dumps(tables.to_dict(), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
