"""Runtime loader for billing settings (config/zenbill.toml).

Example file:

    [billing]
    default_currency = "CAD"
    max_schedule_dates = 12

    [number_format]
    decimal_separator = ","
    thousands_separator = "."

    [exchange_rates]   # units per 1 USD
    CAD = 1.36
    EUR = 0.92

    [ledger]
    receivable = "Assets:AccountsReceivable"
    income = "Income:Sales"
    tax_liability = "Liabilities:Tax"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

from zenbill.domain.currency import NumberFormat, is_valid_currency_code
from zenbill.domain.numeric import parse_numeric_or_zero
from zenbill.domain.recurrence import DEFAULT_MAX_DATES
from zenbill.runtime.logging import get_logger
from zenbill.runtime.paths import get_paths

logger = get_logger(__name__)


@dataclass(frozen=True)
class BillingSettings:
    """Settings shared by the CLI commands."""

    default_currency: str = "USD"
    max_schedule_dates: int = DEFAULT_MAX_DATES
    number_format: NumberFormat = field(default_factory=NumberFormat)
    exchange_rates: dict[str, Decimal] = field(default_factory=dict)
    ledger_accounts: dict[str, str] = field(default_factory=dict)


def _parse_rates(raw: Any, path: Path) -> dict[str, Decimal]:
    if not isinstance(raw, dict):
        raise ValueError(f"[exchange_rates] must be a table in {path}")

    rates: dict[str, Decimal] = {}
    for code, value in raw.items():
        if not is_valid_currency_code(code):
            raise ValueError(f"Invalid currency code {code!r} in [exchange_rates] of {path}")
        rate = parse_numeric_or_zero(value)
        if rate <= 0:
            raise ValueError(f"Exchange rate for {code} must be positive in {path}")
        rates[code.upper()] = rate
    return rates


@lru_cache(maxsize=4)
def load_billing_settings(config_path: str | None = None) -> BillingSettings:
    """Load billing settings from TOML.

    Args:
        config_path: Optional TOML path override. If None, uses the project path.

    Returns:
        Parsed settings; defaults when the file does not exist.

    Raises:
        ValueError: if a value in the file is invalid.
    """
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    path = Path(config_path) if config_path is not None else get_paths().settings
    if not path.exists():
        logger.warning("Settings file not found: %s (using defaults)", path)
        return BillingSettings()

    with open(path, "rb") as f:
        config = tomllib.load(f)

    billing = config.get("billing", {})
    default_currency = str(billing.get("default_currency", "USD")).upper()
    if not is_valid_currency_code(default_currency):
        raise ValueError(f"Invalid default_currency {default_currency!r} in {path}")

    max_dates = billing.get("max_schedule_dates", DEFAULT_MAX_DATES)
    if not isinstance(max_dates, int) or isinstance(max_dates, bool) or max_dates < 1:
        raise ValueError(f"max_schedule_dates must be a positive integer in {path}")

    ledger = config.get("ledger", {})
    settings = BillingSettings(
        default_currency=default_currency,
        max_schedule_dates=max_dates,
        number_format=NumberFormat.from_mapping(config.get("number_format")),
        exchange_rates=_parse_rates(config.get("exchange_rates", {}), path),
        ledger_accounts={str(key): str(value) for key, value in ledger.items()},
    )
    logger.debug("Loaded settings from %s (%d exchange rates)", path, len(settings.exchange_rates))
    return settings
