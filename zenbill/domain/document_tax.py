"""Invoice totals: discount, document-level taxes and the final total."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any

from zenbill.domain.invoice import (
    DocumentTax,
    InvoiceTotals,
    LegacyTaxRate,
    NumericInput,
    TaxBreakdownEntry,
)
from zenbill.domain.line_items import (
    LineItemLike,
    calculate_item_level_taxes,
    calculate_subtotal,
    get_tax_breakdown,
)
from zenbill.domain.numeric import ZERO, parse_numeric_or_zero, percent_of, round_money

logger = logging.getLogger(__name__)

DEFAULT_TAX_NAME = "Tax"


def normalize_document_taxes(document_taxes: Any) -> tuple[DocumentTax, ...]:
    """Flatten every accepted document-tax shape into a tuple of DocumentTax.

    - a non-empty sequence of DocumentTax (or ``{tax_name, tax_rate}`` mappings)
    - ``LegacyTaxRate`` or a bare positive number: one tax named "Tax"
    - anything else (None, empty, zero, garbage): no document tax
    """
    if isinstance(document_taxes, bool):
        return ()

    if isinstance(document_taxes, (int, float, Decimal)):
        document_taxes = LegacyTaxRate(document_taxes)

    if isinstance(document_taxes, LegacyTaxRate):
        rate = parse_numeric_or_zero(document_taxes.rate)
        if rate > 0:
            return (DocumentTax(tax_name=DEFAULT_TAX_NAME, tax_rate=rate),)
        return ()

    if isinstance(document_taxes, Sequence) and not isinstance(document_taxes, (str, bytes)):
        taxes: list[DocumentTax] = []
        for tax in document_taxes:
            if isinstance(tax, DocumentTax):
                taxes.append(tax)
            elif isinstance(tax, Mapping):
                taxes.append(DocumentTax(tax_name=tax.get("tax_name"), tax_rate=tax.get("tax_rate")))
        return tuple(taxes)

    if document_taxes is not None:
        logger.debug("Ignoring unsupported document taxes value: %r", document_taxes)
    return ()


def calculate_document_tax_breakdown(
    subtotal_after_discount: Decimal,
    document_taxes: Iterable[DocumentTax],
) -> list[TaxBreakdownEntry]:
    """Amount of each document tax on the discounted subtotal, rounded per entry."""
    breakdown: list[TaxBreakdownEntry] = []
    for tax in document_taxes:
        rate = parse_numeric_or_zero(tax.tax_rate)
        breakdown.append(
            TaxBreakdownEntry(
                tax_name=tax.tax_name or DEFAULT_TAX_NAME,
                tax_rate=rate,
                tax_amount=round_money(percent_of(subtotal_after_discount, rate)),
            )
        )
    return breakdown


def calculate_discount(subtotal: Decimal, discount_type: str, discount_value: NumericInput) -> Decimal:
    """Discount for the whole document. Zero or negative values mean no discount."""
    value = parse_numeric_or_zero(discount_value)
    if value <= 0:
        return ZERO
    if discount_type == "percentage":
        return percent_of(subtotal, value)
    return value


def calculate_invoice_total(
    line_items: Iterable[LineItemLike] | None = None,
    document_taxes: Any = (),
    discount_type: str = "percentage",
    discount_value: NumericInput = 0,
) -> InvoiceTotals:
    """Compute every total shown on an invoice or quote.

    Order of operations:
    1. subtotal and item-level tax from the line items
    2. discount, then the discounted subtotal (never below zero)
    3. document taxes on the discounted subtotal
    4. tax = item-level + document tax; total = discounted subtotal + tax

    Document tax entries are rounded before they are summed, so ``document_tax``
    always equals the sum of the displayed breakdown amounts.
    """
    items = list(line_items or ())

    subtotal = calculate_subtotal(items)
    item_level_tax = calculate_item_level_taxes(items)

    discount = calculate_discount(subtotal, discount_type, discount_value)
    subtotal_after_discount = max(ZERO, subtotal - discount)

    document_tax_breakdown = calculate_document_tax_breakdown(
        subtotal_after_discount,
        normalize_document_taxes(document_taxes),
    )
    document_tax = sum((entry.tax_amount for entry in document_tax_breakdown), ZERO)

    tax = item_level_tax + document_tax
    total = subtotal_after_discount + tax

    return InvoiceTotals(
        subtotal=round_money(subtotal),
        discount=round_money(discount),
        subtotal_after_discount=round_money(subtotal_after_discount),
        item_level_tax=round_money(item_level_tax),
        document_tax=round_money(document_tax),
        document_tax_breakdown=tuple(document_tax_breakdown),
        tax=round_money(tax),
        tax_breakdown=tuple(get_tax_breakdown(items)),
        total=round_money(total),
    )
