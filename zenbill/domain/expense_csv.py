"""Expense CSV import and export.

Works on CSV text; reading and writing files is left to the caller.
"""

from __future__ import annotations

import csv
import datetime as dt
import io
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from zenbill.domain.numeric import parse_numeric_or_zero

# Normalized (lower-case, trimmed) header -> expense field.
COLUMN_ALIASES: dict[str, str] = {
    "date": "expense_date",
    "expense date": "expense_date",
    "expense_date": "expense_date",
    "amount": "amount",
    "total": "amount",
    "price": "amount",
    "currency": "currency",
    "currency code": "currency",
    "description": "description",
    "note": "description",
    "memo": "description",
    "category": "category",
    "expense category": "category",
    "vendor": "vendor",
    "supplier": "vendor",
    "merchant": "vendor",
    "payment method": "payment_method",
    "payment_method": "payment_method",
    "method": "payment_method",
    "reference": "reference_number",
    "reference number": "reference_number",
    "reference_number": "reference_number",
    "invoice number": "reference_number",
    "receipt": "reference_number",
    "notes": "notes",
    "additional notes": "notes",
}

PAYMENT_METHODS = ("credit_card", "bank_transfer", "cash", "check")

TEMPLATE_HEADERS = (
    "expense_date",
    "amount",
    "currency",
    "description",
    "category",
    "vendor",
    "payment_method",
    "reference_number",
    "notes",
)

TEMPLATE_EXAMPLE_ROW = (
    "2024-01-15",
    "150.00",
    "USD",
    "Office Supplies",
    "Office Expenses",
    "Office Depot",
    "credit_card",
    "INV-12345",
    "Monthly office supplies order",
)


@dataclass(frozen=True)
class ColumnMatch:
    csv_column: str
    expense_field: str


@dataclass(frozen=True)
class RowValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RowError:
    """A CSV row that failed validation, with its messages."""

    row: Mapping[str, str]
    errors: list[str]


def _csv_text(rows: Iterable[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue().removesuffix("\n")


def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line, honouring quotes and doubled quotes."""
    return next(csv.reader([line]), None) or [""]


def _is_blank_line(record: Sequence[str]) -> bool:
    # ",,," is a real (empty) row; only lines with no text at all are skipped.
    return not record or (len(record) == 1 and not record[0].strip())


def parse_csv_text(text: str) -> list[dict[str, str]]:
    """Parse CSV text into rows keyed by the (trimmed) header names.

    Blank lines are skipped, but a line of bare separators stays as an empty
    row. Short rows are padded with empty strings.

    Raises:
        ValueError: if the text holds no header row.
    """
    records = [record for record in csv.reader(io.StringIO(text)) if not _is_blank_line(record)]
    if not records:
        raise ValueError("CSV file is empty")

    headers = [header.strip() for header in records[0]]
    rows: list[dict[str, str]] = []
    for record in records[1:]:
        rows.append(
            {header: (record[index].strip() if index < len(record) else "") for index, header in enumerate(headers)}
        )
    return rows


def detect_column_mapping(headers: Sequence[str]) -> dict[int, ColumnMatch]:
    """Guess which expense field each CSV column holds, by column index."""
    mapping: dict[int, ColumnMatch] = {}
    for index, header in enumerate(headers):
        expense_field = COLUMN_ALIASES.get(header.lower().strip())
        if expense_field:
            mapping[index] = ColumnMatch(csv_column=header, expense_field=expense_field)
    return mapping


def apply_column_mapping(row: Mapping[str, str], mapping: Mapping[int, ColumnMatch]) -> dict[str, str]:
    """Rename a parsed row's keys from CSV columns to expense fields."""
    mapped: dict[str, str] = {}
    for match in mapping.values():
        value = row.get(match.csv_column.strip(), "")
        if match.expense_field not in mapped or not mapped[match.expense_field]:
            mapped[match.expense_field] = value
    return mapped


def _normalize_payment_method(value: str) -> str:
    return "_".join(value.lower().split())


def _is_valid_date(value: str) -> bool:
    text = value.strip()
    try:
        dt.date.fromisoformat(text)
        return True
    except ValueError:
        pass
    try:
        dt.datetime.fromisoformat(text)
        return True
    except ValueError:
        return False


def _names(entries: Iterable[Mapping[str, Any]]) -> set[str]:
    return {str(entry.get("name") or "").lower() for entry in entries if entry}


def validate_expense_row(
    row: Mapping[str, str],
    categories: Sequence[Mapping[str, Any]] = (),
    vendors: Sequence[Mapping[str, Any]] = (),
) -> RowValidation:
    """Check one mapped expense row.

    Amount and date are required. Category and vendor are only checked when a
    list of known ones is supplied.
    """
    errors: list[str] = []

    if parse_numeric_or_zero(row.get("amount")) <= 0:
        errors.append("Amount is required and must be a positive number")

    expense_date = row.get("expense_date")
    if not expense_date:
        errors.append("Expense date is required")
    elif not _is_valid_date(expense_date):
        errors.append("Invalid date format. Use YYYY-MM-DD")

    category = row.get("category")
    if category and categories and category.lower() not in _names(categories):
        errors.append(f'Category "{category}" not found')

    vendor = row.get("vendor")
    if vendor and vendors and vendor.lower() not in _names(vendors):
        errors.append(f'Vendor "{vendor}" not found')

    payment_method = row.get("payment_method")
    if payment_method and _normalize_payment_method(payment_method) not in PAYMENT_METHODS:
        errors.append(f"Invalid payment method. Use: {', '.join(PAYMENT_METHODS)}")

    return RowValidation(valid=not errors, errors=errors)


def _find_by_name(entries: Iterable[Mapping[str, Any]], name: str) -> Mapping[str, Any] | None:
    wanted = name.lower()
    for entry in entries:
        if entry and str(entry.get("name") or "").lower() == wanted:
            return entry
    return None


def convert_to_expense_format(
    row: Mapping[str, str],
    categories: Sequence[Mapping[str, Any]] = (),
    vendors: Sequence[Mapping[str, Any]] = (),
    currencies: Sequence[Mapping[str, Any]] = (),
) -> dict[str, Any]:
    """Turn a validated row into the payload the expenses API expects.

    Category, vendor and currency names are resolved to ids when known; unknown
    names are left out rather than created.
    """
    expense: dict[str, Any] = {
        "amount": parse_numeric_or_zero(row.get("amount")),
        "expense_date": row.get("expense_date"),
    }
    for key in ("description", "notes", "reference_number"):
        if row.get(key):
            expense[key] = row[key]

    currency_code = row.get("currency")
    if currency_code:
        for entry in currencies:
            currency = (entry or {}).get("currency") or {}
            if str(currency.get("code") or "").lower() == currency_code.lower():
                expense["currency_id"] = currency.get("id")
                break

    if row.get("category"):
        category = _find_by_name(categories, row["category"])
        if category is not None:
            expense["category_id"] = category.get("id")

    if row.get("vendor"):
        vendor = _find_by_name(vendors, row["vendor"])
        if vendor is not None:
            expense["vendor_id"] = vendor.get("id")

    if row.get("payment_method"):
        expense["payment_method"] = _normalize_payment_method(row["payment_method"])

    return expense


def generate_csv_template() -> str:
    return _csv_text([TEMPLATE_HEADERS, TEMPLATE_EXAMPLE_ROW])


def generate_error_csv(errors: Iterable[RowError], headers: Sequence[str] = ()) -> str:
    """The rejected rows plus an ``Error`` column, for the user to fix and re-upload."""
    rows: list[list[str]] = [[*headers, "Error"]]
    for error in errors:
        values = [str(error.row.get(header) or "") for header in headers]
        values.append("; ".join(error.errors))
        rows.append(values)
    return _csv_text(rows)


def _lookup(row: Mapping[str, Any], header: str) -> Any:
    if "." not in header:
        return row.get(header)
    value: Any = row
    for key in header.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def convert_to_csv(rows: Sequence[Mapping[str, Any]] | None, fields: Sequence[str] | None = None) -> str:
    """Export rows as CSV text.

    ``fields`` defaults to the keys of the first row; dotted fields such as
    ``category.name`` read nested objects.
    """
    if not rows:
        return ""

    headers = list(fields or rows[0].keys())
    out: list[list[str]] = [headers]
    for row in rows:
        values = []
        for header in headers:
            value = _lookup(row, header)
            values.append("" if value is None else str(value))
        out.append(values)
    return _csv_text(out)
