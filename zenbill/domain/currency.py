"""Currency formatting, conversion and multi-currency aggregation.

Exchange rates are USD based: ``rates["EUR"]`` is the number of euros for one
US dollar. A missing or zero rate counts as 1.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal
from typing import Any

from zenbill.domain.invoice import NumericInput
from zenbill.domain.numeric import ZERO, parse_int_or_default, parse_numeric_or_zero, quantize_half_up

BASE_CURRENCY = "USD"

CURRENCY_SYMBOLS: dict[str, str] = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€",
    "JPY": "¥",
    "CNY": "¥",
    "INR": "₹",
    "AUD": "A$",
    "CAD": "C$",
    "CHF": "Fr",
    "SEK": "kr",
    "NZD": "NZ$",
    "ZAR": "R",
    "BRL": "R$",
    "MXN": "$",
    "SGD": "S$",
    "HKD": "HK$",
    "KRW": "₩",
    "TRY": "₺",
    "RUB": "₽",
    "PLN": "zł",
    "THB": "฿",
    "IDR": "Rp",
    "MYR": "RM",
    "PHP": "₱",
    "DKK": "kr",
    "NOK": "kr",
}

CURRENCY_NAMES: dict[str, str] = {
    "USD": "US Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "JPY": "Japanese Yen",
    "CAD": "Canadian Dollar",
    "AUD": "Australian Dollar",
    "CHF": "Swiss Franc",
    "CNY": "Chinese Yuan",
    "INR": "Indian Rupee",
    "SEK": "Swedish Krona",
    "NZD": "New Zealand Dollar",
    "ZAR": "South African Rand",
    "BRL": "Brazilian Real",
    "MXN": "Mexican Peso",
    "SGD": "Singapore Dollar",
    "HKD": "Hong Kong Dollar",
    "KRW": "South Korean Won",
    "TRY": "Turkish Lira",
    "RUB": "Russian Ruble",
    "PLN": "Polish Zloty",
    "THB": "Thai Baht",
    "IDR": "Indonesian Rupiah",
    "MYR": "Malaysian Ringgit",
    "PHP": "Philippine Peso",
    "DKK": "Danish Krone",
    "NOK": "Norwegian Krone",
}

# Currencies whose smallest unit is the whole unit.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {"JPY", "KRW", "VND", "CLP", "BIF", "DJF", "GNF", "ISK", "KMF", "PYG", "RWF", "UGX", "XAF", "XOF", "XPF"}
)

ANNUAL_MULTIPLIERS: dict[str, int] = {
    "monthly": 12,
    "quarterly": 4,
    "annual": 1,
    "one_time": 1,
}

_SYMBOL_RE = re.compile(r"[£$€¥₹]")
_CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")

ExchangeRates = Mapping[str, NumericInput]


@dataclass(frozen=True)
class NumberFormat:
    """Separators a business picked for displaying amounts."""

    decimal_separator: str = "."
    thousands_separator: str = ","

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> NumberFormat:
        data = data or {}
        return cls(
            decimal_separator=str(data.get("decimal_separator") or "."),
            thousands_separator=str(data.get("thousands_separator") or ","),
        )


@dataclass(frozen=True)
class CurrencyTotal:
    currency: str
    total: Decimal
    count: int
    converted_total: Decimal = ZERO


@dataclass(frozen=True)
class ServiceTotal:
    total: Decimal
    has_mixed_currencies: bool


@dataclass(frozen=True)
class MultiCurrencyTotal:
    total: Decimal
    currency: str
    breakdown: list[CurrencyTotal] = field(default_factory=list)
    has_mixed_currencies: bool = False


def _round_half_up_integral(value: Decimal) -> Decimal:
    # Halves round towards positive infinity: 2.5 -> 3, -2.5 -> -2.
    return (value + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR)


def _fixed(value: Decimal, decimals: int) -> Decimal:
    return quantize_half_up(value, Decimal(1).scaleb(-decimals))


def _group_digits(value: Decimal, decimals: int, number_format: NumberFormat | None) -> str:
    grouped = f"{_fixed(value, decimals):,.{decimals}f}"
    if number_format is None:
        return grouped

    integer_part, _, fraction = grouped.partition(".")
    integer_part = integer_part.replace(",", number_format.thousands_separator)
    if decimals == 0:
        return integer_part
    return f"{integer_part}{number_format.decimal_separator}{fraction}"


def get_currency_symbol(code: str | None) -> str:
    if not code:
        return ""
    return CURRENCY_SYMBOLS.get(code.upper(), code)


def get_currency_name(code: str | None) -> str:
    if not code:
        return ""
    return CURRENCY_NAMES.get(code.upper(), code)


def is_valid_currency_code(code: object) -> bool:
    if not code or not isinstance(code, str):
        return False
    return bool(_CURRENCY_CODE_RE.match(code.upper()))


def needs_currency_conversion(from_currency: str | None, to_currency: str | None) -> bool:
    if not from_currency or not to_currency:
        return False
    return from_currency.upper() != to_currency.upper()


def format_currency(
    amount: NumericInput,
    currency: str | None,
    number_format: NumberFormat | None = None,
) -> str:
    """Format an amount with its currency symbol, e.g. ``$1,234.50``.

    Without a currency the bare two-decimal amount is returned; ``None`` gives
    an empty string.
    """
    if amount is None:
        return ""

    value = parse_numeric_or_zero(amount)
    if not currency:
        return f"{_fixed(value, 2):.2f}"

    return f"{get_currency_symbol(currency)}{_group_digits(value, 2, number_format)}"


def format_amount(
    amount: NumericInput,
    decimals: int = 2,
    number_format: NumberFormat | None = None,
) -> str:
    """Group thousands without a currency symbol."""
    return _group_digits(parse_numeric_or_zero(amount), decimals, number_format)


def parse_formatted_currency(formatted: str | None, number_format: NumberFormat | None = None) -> Decimal:
    """Inverse of ``format_currency`` for user-entered text. Never raises."""
    if not formatted:
        return ZERO

    cleaned = _SYMBOL_RE.sub("", formatted).strip()

    if number_format is None:
        return parse_numeric_or_zero(cleaned.replace(",", ""))

    cleaned = cleaned.replace(number_format.thousands_separator, "")
    cleaned = cleaned.replace(number_format.decimal_separator, ".", 1)
    return parse_numeric_or_zero(cleaned)


def _rate(rates: ExchangeRates, code: str) -> Decimal:
    return parse_numeric_or_zero(rates.get(code)) or Decimal(1)


def get_exchange_rate(from_currency: str, to_currency: str, rates: ExchangeRates) -> Decimal:
    """Units of ``to_currency`` for one unit of ``from_currency``."""
    if from_currency == to_currency:
        return Decimal(1)

    source = from_currency.upper()
    target = to_currency.upper()

    if source == BASE_CURRENCY:
        return _rate(rates, target)
    if target == BASE_CURRENCY:
        return Decimal(1) / _rate(rates, source)
    return Decimal(1) / _rate(rates, source) * _rate(rates, target)


def convert_currency(
    amount: NumericInput,
    from_currency: str,
    to_currency: str,
    rates: ExchangeRates,
) -> Decimal:
    """Convert through USD when neither side is USD."""
    value = parse_numeric_or_zero(amount)
    if not value or from_currency == to_currency:
        return value

    source = from_currency.upper()
    target = to_currency.upper()

    if source == BASE_CURRENCY:
        return value * _rate(rates, target)
    if target == BASE_CURRENCY:
        return value / _rate(rates, source)
    return value / _rate(rates, source) * _rate(rates, target)


def format_exchange_rate(from_currency: str, to_currency: str, rate: NumericInput) -> str:
    return f"1 {from_currency} = {_fixed(parse_numeric_or_zero(rate), 4):.4f} {to_currency}"


def round_to_smallest_unit(amount: NumericInput) -> Decimal:
    value = parse_numeric_or_zero(amount)
    return _round_half_up_integral(value * 100) / 100


def to_smallest_unit(amount: NumericInput, currency_code: str | None) -> int:
    """Amount in minor units (cents), or whole units for zero-decimal currencies."""
    value = parse_numeric_or_zero(amount)
    if (currency_code or "").upper() in ZERO_DECIMAL_CURRENCIES:
        return int(_round_half_up_integral(value))
    return int(_round_half_up_integral(value * 100))


def from_smallest_unit(amount: NumericInput, currency_code: str | None) -> Decimal:
    units = Decimal(parse_int_or_default(amount, 0))
    if (currency_code or "").upper() in ZERO_DECIMAL_CURRENCIES:
        return units
    return units / 100


def calculate_annual_value(amount: NumericInput, frequency: str) -> Decimal:
    return parse_numeric_or_zero(amount) * ANNUAL_MULTIPLIERS.get(frequency, 1)


def _service_currency(service: Mapping[str, Any], default: str) -> str:
    currency = service.get("currency")
    if isinstance(currency, Mapping):
        currency = currency.get("code")
    return currency or default


def calculate_service_total(
    services: Iterable[Mapping[str, Any]] | None,
    target_currency: str,
    rates: ExchangeRates | None,
) -> ServiceTotal:
    """Sum service prices in ``target_currency``.

    Without rates, foreign prices are added unconverted.
    """
    total = ZERO
    currencies: set[str] = set()

    for service in services or ():
        currency = _service_currency(service, target_currency)
        currencies.add(currency)
        price = parse_numeric_or_zero(service.get("price"))

        if currency != target_currency and rates:
            total += convert_currency(price, currency, target_currency, rates)
        else:
            total += price

    return ServiceTotal(total=total, has_mixed_currencies=len(currencies) > 1)


def get_service_value_breakdown(
    services: Iterable[Mapping[str, Any]] | None,
    target_currency: str,
    rates: ExchangeRates | None,
) -> list[CurrencyTotal]:
    """Per-currency count and totals, in first-seen order.

    ``converted_total`` stays zero for foreign currencies when no rates are known.
    """
    groups: dict[str, dict[str, Any]] = {}

    for service in services or ():
        currency = _service_currency(service, target_currency)
        price = parse_numeric_or_zero(service.get("price"))
        group = groups.setdefault(currency, {"count": 0, "total": ZERO, "converted": ZERO})
        group["count"] += 1
        group["total"] += price

        if currency == target_currency:
            group["converted"] += price
        elif rates:
            group["converted"] += convert_currency(price, currency, target_currency, rates)

    return [
        CurrencyTotal(currency=currency, total=group["total"], count=group["count"], converted_total=group["converted"])
        for currency, group in groups.items()
    ]


def aggregate_multi_currency(
    items: Iterable[Mapping[str, Any]] | None,
    target_currency: str,
    exchange_rates: ExchangeRates | None,
) -> MultiCurrencyTotal:
    """Total a list of invoices, payments or expenses in ``target_currency``.

    Each item's amount is the first non-zero of ``amount``, ``total`` and
    ``price``; its currency is ``currency_code``, then ``currency``.
    """
    groups: dict[str, dict[str, Any]] = {}
    total = ZERO

    for item in items or ():
        currency = item.get("currency_code") or item.get("currency") or target_currency
        amount = (
            parse_numeric_or_zero(item.get("amount"))
            or parse_numeric_or_zero(item.get("total"))
            or parse_numeric_or_zero(item.get("price"))
        )

        group = groups.setdefault(currency, {"count": 0, "total": ZERO})
        group["total"] += amount
        group["count"] += 1

        if currency != target_currency and exchange_rates:
            total += convert_currency(amount, currency, target_currency, exchange_rates)
        else:
            total += amount

    return MultiCurrencyTotal(
        total=round_to_smallest_unit(total),
        currency=target_currency,
        breakdown=[
            CurrencyTotal(currency=currency, total=round_to_smallest_unit(group["total"]), count=group["count"])
            for currency, group in groups.items()
        ],
        has_mixed_currencies=len(groups) > 1,
    )
