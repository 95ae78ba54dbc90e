"""Line item aggregation: subtotals, item-level taxes and discounts."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Union

from zenbill.domain.invoice import LineItem, NumericInput, TaxBreakdownEntry, line_item_from_mapping
from zenbill.domain.numeric import ZERO, parse_numeric_or_zero, percent_of, round_money

LineItemLike = Union[LineItem, Mapping[str, Any]]


def _as_line_item(item: LineItemLike) -> LineItem:
    if isinstance(item, LineItem):
        return item
    return line_item_from_mapping(item)


def _iter_items(line_items: Iterable[LineItemLike] | None) -> Iterable[LineItem]:
    for item in line_items or ():
        yield _as_line_item(item)


def calculate_line_item_amount(quantity: NumericInput, price: NumericInput) -> Decimal:
    return parse_numeric_or_zero(quantity) * parse_numeric_or_zero(price)


def calculate_line_item_tax(amount: NumericInput, tax_rate: NumericInput) -> Decimal:
    return percent_of(parse_numeric_or_zero(amount), parse_numeric_or_zero(tax_rate))


def calculate_subtotal(line_items: Iterable[LineItemLike] | None = None) -> Decimal:
    """Sum of quantity * price over all items, before tax and discount."""
    return sum(
        (calculate_line_item_amount(item.quantity, item.price) for item in _iter_items(line_items)),
        ZERO,
    )


def calculate_total_tax(line_items: Iterable[LineItemLike] | None = None) -> Decimal:
    """Tax from each item's legacy single ``tax_rate``."""
    total = ZERO
    for item in _iter_items(line_items):
        amount = calculate_line_item_amount(item.quantity, item.price)
        total += calculate_line_item_tax(amount, item.tax_rate)
    return total


def calculate_item_level_taxes(line_items: Iterable[LineItemLike] | None = None) -> Decimal:
    """Sum of the precomputed ``tax_amount`` values in every item's ``taxes``.

    Amounts are taken as given; they are not recomputed from the rates.
    """
    total = ZERO
    for item in _iter_items(line_items):
        if not item.taxes:
            continue
        for tax in item.taxes:
            total += parse_numeric_or_zero(tax.tax_amount)
    return total


def get_tax_breakdown(line_items: Iterable[LineItemLike] | None = None) -> list[TaxBreakdownEntry]:
    """Group item-level taxes by (name, rate).

    Entries come out in first-seen order; each group is rounded once, after
    all of its amounts have been added.
    """
    groups: dict[tuple[str, Decimal], Decimal] = {}
    for item in _iter_items(line_items):
        if not item.taxes:
            continue
        for tax in item.taxes:
            key = (tax.tax_name or "", parse_numeric_or_zero(tax.tax_rate))
            groups[key] = groups.get(key, ZERO) + parse_numeric_or_zero(tax.tax_amount)

    return [
        TaxBreakdownEntry(tax_name=name, tax_rate=rate, tax_amount=round_money(amount))
        for (name, rate), amount in groups.items()
    ]


def _fixed_or_percentage(
    base: NumericInput,
    percentage: NumericInput,
    fixed_amount: NumericInput,
) -> Decimal:
    # A supplied fixed amount wins, whatever the percentage says.
    if fixed_amount is not None:
        return parse_numeric_or_zero(fixed_amount)
    return percent_of(parse_numeric_or_zero(base), parse_numeric_or_zero(percentage))


def calculate_discount_amount(
    subtotal: NumericInput,
    discount_percentage: NumericInput = 0,
    discount_amount: NumericInput = None,
) -> Decimal:
    """Discount from either a fixed amount or a percentage of the subtotal.

    The form keeps both fields around while the user toggles between them, so a
    non-None ``discount_amount`` takes precedence over ``discount_percentage``.
    """
    return _fixed_or_percentage(subtotal, discount_percentage, discount_amount)


def calculate_deposit_amount(
    total: NumericInput,
    deposit_percentage: NumericInput = 0,
    deposit_amount: NumericInput = None,
) -> Decimal:
    """Deposit requested up front; same precedence as discounts."""
    return _fixed_or_percentage(total, deposit_percentage, deposit_amount)
