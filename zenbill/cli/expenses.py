"""Expense CSV commands."""

from __future__ import annotations

import argparse
from pathlib import Path

from zenbill.domain.expense_csv import (
    RowError,
    apply_column_mapping,
    detect_column_mapping,
    generate_csv_template,
    generate_error_csv,
    parse_csv_text,
    validate_expense_row,
)
from zenbill.runtime import get_logger

logger = get_logger(__name__)


def cmd_template(args: argparse.Namespace) -> int:
    print(generate_csv_template())
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Validate an expense CSV and optionally write the rejected rows out."""
    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    rows = parse_csv_text(csv_path.read_text(encoding=args.encoding))
    headers = list(rows[0].keys()) if rows else []
    mapping = detect_column_mapping(headers)
    if not mapping:
        print(f"No known expense columns in {csv_path.name}")
        return 1

    unmapped = [header for index, header in enumerate(headers) if index not in mapping]
    if unmapped:
        logger.info("Ignoring unmapped columns: %s", ", ".join(unmapped))

    rejected: list[RowError] = []
    # Row 1 is the header.
    for row_number, row in enumerate(rows, start=2):
        result = validate_expense_row(apply_column_mapping(row, mapping))
        if not result.valid:
            rejected.append(RowError(row=row, errors=result.errors))
            print(f"  row {row_number}: {'; '.join(result.errors)}")

    print(f"{len(rows) - len(rejected)} valid, {len(rejected)} invalid of {len(rows)} rows")

    if rejected and args.errors_out:
        Path(args.errors_out).write_text(generate_error_csv(rejected, headers) + "\n", encoding="utf-8")
        print(f"Wrote rejected rows to {args.errors_out}")

    return 1 if rejected else 0
