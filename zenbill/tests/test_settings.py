from __future__ import annotations

from decimal import Decimal

import pytest

from zenbill.domain.currency import NumberFormat
from zenbill.runtime.paths import ProjectPaths, get_paths, reset_paths
from zenbill.runtime.settings import BillingSettings, load_billing_settings


def test_load_billing_settings_from_toml(tmp_path) -> None:
    settings_path = tmp_path / "zenbill.toml"
    settings_path.write_text(
        """
[billing]
default_currency = "cad"
max_schedule_dates = 6

[number_format]
decimal_separator = ","
thousands_separator = "."

[exchange_rates]
CAD = 1.36
eur = "0.92"

[ledger]
income = "Income:Consulting"
"""
    )

    load_billing_settings.cache_clear()
    settings = load_billing_settings(str(settings_path))

    assert settings.default_currency == "CAD"
    assert settings.max_schedule_dates == 6
    assert settings.number_format == NumberFormat(decimal_separator=",", thousands_separator=".")
    assert settings.exchange_rates == {"CAD": Decimal("1.36"), "EUR": Decimal("0.92")}
    assert settings.ledger_accounts == {"income": "Income:Consulting"}


def test_missing_settings_file_gives_defaults(tmp_path) -> None:
    load_billing_settings.cache_clear()
    settings = load_billing_settings(str(tmp_path / "does_not_exist.toml"))
    assert settings == BillingSettings()


def test_empty_settings_file_gives_defaults(tmp_path) -> None:
    settings_path = tmp_path / "zenbill.toml"
    settings_path.write_text("")
    load_billing_settings.cache_clear()
    assert load_billing_settings(str(settings_path)) == BillingSettings()


@pytest.mark.parametrize(
    "content",
    [
        '[billing]\ndefault_currency = "DOLLARS"\n',
        "[billing]\nmax_schedule_dates = 0\n",
        '[billing]\nmax_schedule_dates = "12"\n',
        "[exchange_rates]\nEUR = 0\n",
        "[exchange_rates]\nEURO = 0.9\n",
        'exchange_rates = "EUR=0.9"\n',
    ],
)
def test_invalid_settings_raise(tmp_path, content) -> None:
    settings_path = tmp_path / "zenbill.toml"
    settings_path.write_text(content)
    load_billing_settings.cache_clear()
    with pytest.raises(ValueError):
        load_billing_settings(str(settings_path))


def test_settings_path_honours_environment(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("ZENBILL_HOME", str(tmp_path))
    monkeypatch.delenv("ZENBILL_CONFIG", raising=False)
    reset_paths()
    try:
        assert get_paths().settings == tmp_path.resolve() / "config" / "zenbill.toml"

        override = tmp_path / "elsewhere.toml"
        monkeypatch.setenv("ZENBILL_CONFIG", str(override))
        assert get_paths().settings == override
    finally:
        reset_paths()


def test_project_paths_explicit_root(tmp_path) -> None:
    paths = ProjectPaths(root=tmp_path)
    assert paths.config == tmp_path.resolve() / "config"
