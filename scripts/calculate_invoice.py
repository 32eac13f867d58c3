#!/usr/bin/env python3
"""
Compute line items, totals and grouped taxes for an invoice document.

Reads an invoice as YAML or JSON (the same field names the invoice form
posts: ``receiver.vknTckn``, ``items[].quantity``, ``items[].unitPrice``,
``items[].taxes[]`` ...) and prints the computation.

Usage:
    python3 scripts/calculate_invoice.py invoice.yaml
    python3 scripts/calculate_invoice.py invoice.json --json
    python3 scripts/calculate_invoice.py invoice.yaml --strict
    python3 scripts/calculate_invoice.py invoice.yaml --tables path/to/tables.yaml
    python3 scripts/calculate_invoice.py invoice.yaml --verbose
"""

import argparse
import json
import logging
import sys
from collections.abc import Mapping
from dataclasses import asdict
from pathlib import Path
from uuid import uuid4

import yaml

from invoice_config import get_active_tables, load_tax_code_tables, load_yaml_file
from invoice_engines import TaxCodeClassifier, calculate_invoice
from invoice_kernel.domain.coercion import invoice_from_mapping
from invoice_kernel.exceptions import InvoiceKernelError
from invoice_kernel.logging_config import LogContext, configure_logging

W = 72


# =============================================================================
# Formatting helpers
# =============================================================================


def banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)


def field(label: str, value, indent: int = 2) -> None:
    print(f"{' ' * indent}{label:<24} {value}")


def print_items(items) -> None:
    banner("LINE ITEMS")
    for n, item in enumerate(items, 1):
        print()
        print(f"  [{n}] {item.name or '(unnamed)'}  {item.quantity} x {item.unit_price} {item.unit_code}")
        field("gross_price", item.gross_price, indent=6)
        field("discount_amount", f"{item.discount_amount} ({item.discount_type.name})", indent=6)
        field("net_base", item.net_base, indent=6)
        field("vat", f"{item.vat_amount} @ {item.vat_rate}%", indent=6)
        if item.has_reverse_charge:
            field(
                "reverse_charge",
                f"{item.reverse_charge_amount} @ {item.reverse_charge_rate}% ({item.reverse_charge_code})",
                indent=6,
            )
        for tax in item.computed_taxes:
            flags = "".join(
                flag for flag, on in (("S", tax.is_stoppage), ("W", tax.is_withholding)) if on
            )
            field(f"tax {tax.code} {flags}".rstrip(), tax.amount, indent=6)


def print_totals(calculation) -> None:
    banner("TOTALS")
    totals = calculation.totals
    field("invoice_type", calculation.invoice_type.value)
    field("gross_total", totals.gross_total)
    field("discount_total", totals.discount_total)
    field("net_base", totals.net_base)
    field("submission_net_base", totals.submission_net_base)
    field("vat_total", totals.vat_total)
    field("reverse_charge_total", totals.reverse_charge_total)
    field("taxes_total", totals.taxes_total)
    field("tax_inclusive_total", totals.tax_inclusive_total)
    field("payable_amount", totals.payable_amount)

    banner("TAXES BY CODE")
    for grouped in calculation.grouped_taxes:
        field(grouped.code, grouped.total_amount)


# =============================================================================
# Main
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compute invoice taxes and totals.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python3 scripts/calculate_invoice.py invoice.yaml\n"
            "  python3 scripts/calculate_invoice.py invoice.json --json --strict\n"
        ),
    )
    parser.add_argument("invoice", type=Path, help="Invoice document (YAML or JSON)")
    parser.add_argument(
        "--json", action="store_true",
        help="Output JSON instead of formatted text",
    )
    parser.add_argument(
        "--strict", action="store_true",
        help="Reject malformed numbers, missing receiver or empty invoices",
    )
    parser.add_argument(
        "--tables", type=Path, default=None,
        help="Tax code table YAML (default: bundled tr_gib set)",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Write structured JSON logs to stderr",
    )
    args = parser.parse_args(argv)

    if args.verbose:
        configure_logging(level=logging.DEBUG)
    else:
        # Suppress library logging
        logging.disable(logging.CRITICAL)

    try:
        with LogContext.bind(correlation_id=str(uuid4())):
            data = load_yaml_file(args.invoice)
            if not isinstance(data, Mapping):
                raise yaml.YAMLError("top-level document must be a mapping")
            tables = load_tax_code_tables(args.tables) if args.tables else get_active_tables()
            invoice = invoice_from_mapping(data, strict=args.strict)
            calculation = calculate_invoice(
                invoice, strict=args.strict, classifier=TaxCodeClassifier(tables)
            )
    except (OSError, yaml.YAMLError) as exc:
        print(f"  ERROR: Cannot read {args.invoice}: {exc}", file=sys.stderr)
        return 1
    except InvoiceKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 2
    finally:
        logging.disable(logging.NOTSET)

    if args.json:
        print(json.dumps(asdict(calculation), indent=2, default=str, ensure_ascii=False))
        return 0

    print_items(calculation.items)
    print_totals(calculation)
    return 0


if __name__ == "__main__":
    sys.exit(main())
