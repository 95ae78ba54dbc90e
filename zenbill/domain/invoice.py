"""Data models for invoice and quote calculations."""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

NumericInput = Union[Decimal, int, float, str, None]


@dataclass(frozen=True)
class LineItemTax:
    """A named tax on one line item, with an amount computed by the caller."""

    tax_name: str | None
    tax_rate: NumericInput
    tax_amount: NumericInput


@dataclass(frozen=True)
class LineItem:
    """One billable row of an invoice or quote.

    Either ``tax_rate`` (legacy single rate) or ``taxes`` (named per-item
    taxes) may be set. Raw values are kept as entered; calculations parse them.
    """

    quantity: NumericInput
    price: NumericInput
    tax_rate: NumericInput = None
    taxes: tuple[LineItemTax, ...] | None = None


@dataclass(frozen=True)
class DocumentTax:
    """A tax applied to the whole document after the discount."""

    tax_name: str | None
    tax_rate: NumericInput


@dataclass(frozen=True)
class LegacyTaxRate:
    """Older documents store one bare percentage instead of a list of taxes."""

    rate: NumericInput


DocumentTaxInput = Union[Sequence[DocumentTax], LegacyTaxRate]


@dataclass(frozen=True)
class TaxBreakdownEntry:
    tax_name: str
    tax_rate: Decimal
    tax_amount: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "tax_name": self.tax_name,
            "tax_rate": str(self.tax_rate),
            "tax_amount": str(self.tax_amount),
        }


@dataclass(frozen=True)
class InvoiceTotals:
    """Totals for one document. Every amount is rounded to cents."""

    subtotal: Decimal
    discount: Decimal
    subtotal_after_discount: Decimal
    item_level_tax: Decimal
    document_tax: Decimal
    document_tax_breakdown: tuple[TaxBreakdownEntry, ...]
    tax: Decimal
    tax_breakdown: tuple[TaxBreakdownEntry, ...]
    total: Decimal

    @property
    def tax_total(self) -> Decimal:
        # Older screens read `tax_total`; same value as `tax`.
        return self.tax

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": str(self.subtotal),
            "discount": str(self.discount),
            "subtotal_after_discount": str(self.subtotal_after_discount),
            "item_level_tax": str(self.item_level_tax),
            "document_tax": str(self.document_tax),
            "document_tax_breakdown": [entry.to_dict() for entry in self.document_tax_breakdown],
            "tax": str(self.tax),
            "tax_total": str(self.tax_total),
            "tax_breakdown": [entry.to_dict() for entry in self.tax_breakdown],
            "total": str(self.total),
        }


@dataclass(frozen=True)
class Invoice:
    """A whole invoice or quote document as stored by the UI."""

    line_items: tuple[LineItem, ...] = ()
    taxes: DocumentTaxInput | None = None
    discount_type: str = "percentage"
    discount_value: NumericInput = 0
    currency: str = ""
    number: str = ""
    client: str = ""
    issue_date: dt.date | None = None


def line_item_from_mapping(data: Mapping[str, Any]) -> LineItem:
    """Build a LineItem from the JSON shape used by invoice forms.

    ``tax`` is accepted as an older spelling of ``tax_rate``.
    """
    taxes_raw = data.get("taxes")
    taxes: tuple[LineItemTax, ...] | None = None
    if isinstance(taxes_raw, list):
        taxes = tuple(
            LineItemTax(
                tax_name=tax.get("tax_name"),
                tax_rate=tax.get("tax_rate"),
                tax_amount=tax.get("tax_amount"),
            )
            for tax in taxes_raw
            if isinstance(tax, Mapping)
        )

    tax_rate = data.get("tax_rate")
    if not tax_rate:
        tax_rate = data.get("tax")

    return LineItem(
        quantity=data.get("quantity"),
        price=data.get("price"),
        tax_rate=tax_rate,
        taxes=taxes,
    )


def document_taxes_from_value(value: Any) -> DocumentTaxInput | None:
    """Map the stored ``taxes`` field to its typed form.

    A list of ``{tax_name, tax_rate}`` objects is the current form; a bare number
    is the legacy single-rate form. Anything else means no document tax.
    """
    if isinstance(value, (LegacyTaxRate, tuple)):
        return value
    if isinstance(value, list):
        return tuple(
            DocumentTax(tax_name=tax.get("tax_name"), tax_rate=tax.get("tax_rate"))
            for tax in value
            if isinstance(tax, Mapping)
        )
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return LegacyTaxRate(value)
    return None


def _parse_issue_date(value: Any) -> dt.date | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid issue date {value!r}, expected YYYY-MM-DD") from exc


def invoice_from_mapping(data: Any) -> Invoice:
    """Build an Invoice from a decoded JSON document.

    Raises:
        ValueError: if the document is not an object or line_items is not a list.
    """
    if not isinstance(data, Mapping):
        raise ValueError("Invoice document must be a JSON object")

    items_raw = data.get("line_items", [])
    if not isinstance(items_raw, list):
        raise ValueError("Invoice 'line_items' must be a list")

    return Invoice(
        line_items=tuple(line_item_from_mapping(item) for item in items_raw if isinstance(item, Mapping)),
        taxes=document_taxes_from_value(data.get("taxes")),
        discount_type=str(data.get("discount_type") or "percentage"),
        discount_value=data.get("discount_value", 0),
        currency=str(data.get("currency") or "").upper(),
        number=str(data.get("number") or ""),
        client=str(data.get("client") or ""),
        issue_date=_parse_issue_date(data.get("issue_date")),
    )
