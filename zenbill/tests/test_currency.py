"""Tests for currency formatting and conversion."""

from __future__ import annotations

from decimal import Decimal

from zenbill.domain.currency import (
    CurrencyTotal,
    NumberFormat,
    aggregate_multi_currency,
    calculate_annual_value,
    calculate_service_total,
    convert_currency,
    format_amount,
    format_currency,
    format_exchange_rate,
    from_smallest_unit,
    get_currency_name,
    get_currency_symbol,
    get_exchange_rate,
    get_service_value_breakdown,
    is_valid_currency_code,
    needs_currency_conversion,
    parse_formatted_currency,
    round_to_smallest_unit,
    to_smallest_unit,
)

RATES = {"EUR": Decimal("0.5"), "GBP": "0.25"}
EUROPEAN = NumberFormat(decimal_separator=",", thousands_separator=".")


def test_symbols_and_names() -> None:
    assert get_currency_symbol("gbp") == "£"
    assert get_currency_symbol("XYZ") == "XYZ"
    assert get_currency_symbol(None) == ""
    assert get_currency_name("eur") == "Euro"
    assert get_currency_name("ABC") == "ABC"
    assert get_currency_name(None) == ""


def test_format_currency_default_grouping() -> None:
    assert format_currency(1234.5, "USD") == "$1,234.50"
    assert format_currency("-9876543.215", "CAD") == "C$-9,876,543.22"
    assert format_currency(5, "XYZ") == "XYZ5.00"
    assert format_currency(12, None) == "12.00"
    assert format_currency(None, "USD") == ""


def test_format_currency_custom_separators() -> None:
    assert format_currency("1234567.891", "EUR", EUROPEAN) == "€1.234.567,89"


def test_format_amount() -> None:
    assert format_amount(1234.5) == "1,234.50"
    assert format_amount(1234.5, 0, NumberFormat(thousands_separator=" ")) == "1 235"
    assert format_amount("abc") == "0.00"


def test_parse_formatted_currency() -> None:
    assert parse_formatted_currency("$1,234.50") == Decimal("1234.50")
    assert parse_formatted_currency("€1.234,50", EUROPEAN) == Decimal("1234.50")
    assert parse_formatted_currency("") == 0
    assert parse_formatted_currency("n/a") == 0


def test_convert_through_usd() -> None:
    assert convert_currency(10, "USD", "EUR", RATES) == Decimal("5")
    assert convert_currency(10, "EUR", "USD", RATES) == Decimal("20")
    assert convert_currency(10, "EUR", "GBP", RATES) == Decimal("5")
    assert convert_currency(10, "usd", "eur", RATES) == Decimal("5")
    assert convert_currency(10, "USD", "USD", RATES) == Decimal("10")
    # Unknown rates count as 1.
    assert convert_currency(10, "USD", "XYZ", RATES) == Decimal("10")
    assert convert_currency(0, "USD", "EUR", RATES) == 0


def test_exchange_rate() -> None:
    assert get_exchange_rate("USD", "EUR", RATES) == Decimal("0.5")
    assert get_exchange_rate("EUR", "USD", RATES) == Decimal("2")
    assert get_exchange_rate("EUR", "GBP", RATES) == Decimal("0.5")
    assert get_exchange_rate("EUR", "EUR", RATES) == 1
    assert format_exchange_rate("USD", "EUR", 0.92) == "1 USD = 0.9200 EUR"


def test_currency_code_checks() -> None:
    assert is_valid_currency_code("usd") is True
    assert is_valid_currency_code("US") is False
    assert is_valid_currency_code(123) is False
    assert needs_currency_conversion("usd", "USD") is False
    assert needs_currency_conversion("USD", "EUR") is True
    assert needs_currency_conversion(None, "EUR") is False


def test_smallest_units() -> None:
    assert round_to_smallest_unit(Decimal("2.675")) == Decimal("2.68")
    assert to_smallest_unit(Decimal("12.345"), "USD") == 1235
    assert to_smallest_unit("1500.4", "jpy") == 1500
    assert from_smallest_unit(1235, "USD") == Decimal("12.35")
    assert from_smallest_unit("1500", "JPY") == Decimal("1500")


def test_aggregate_multi_currency() -> None:
    items = [
        {"amount": 10, "currency": "USD"},
        {"total": "20", "currency_code": "EUR"},
        {"price": 5},
    ]
    result = aggregate_multi_currency(items, "USD", RATES)

    assert result.total == Decimal("55")
    assert result.currency == "USD"
    assert result.has_mixed_currencies is True
    assert result.breakdown == [
        CurrencyTotal(currency="USD", total=Decimal("15"), count=2),
        CurrencyTotal(currency="EUR", total=Decimal("20"), count=1),
    ]


def test_aggregate_without_rates_adds_raw_amounts() -> None:
    result = aggregate_multi_currency([{"amount": 10, "currency": "EUR"}], "USD", None)
    assert result.total == Decimal("10")
    assert result.has_mixed_currencies is False


def test_service_totals_and_breakdown() -> None:
    services = [
        {"price": 100, "currency": {"code": "EUR"}},
        {"price": "50"},
    ]
    assert calculate_service_total(services, "USD", RATES).total == Decimal("250")
    assert calculate_service_total(services, "USD", None).total == Decimal("150")
    assert calculate_service_total([], "USD", RATES).has_mixed_currencies is False

    breakdown = get_service_value_breakdown(services, "USD", None)
    assert breakdown[0].currency == "EUR"
    assert breakdown[0].total == Decimal("100")
    assert breakdown[0].converted_total == 0
    assert breakdown[1].converted_total == Decimal("50")


def test_annual_value() -> None:
    assert calculate_annual_value(100, "monthly") == Decimal("1200")
    assert calculate_annual_value(100, "quarterly") == Decimal("400")
    assert calculate_annual_value(100, "weird") == Decimal("100")
