"""Tests for recurring billing schedules."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from zenbill.domain.recurrence import (
    RecurrenceRule,
    add_months,
    calculate_future_billing_dates,
    calculate_next_billing_date,
    calculate_recurring_total,
    format_recurring_schedule,
    get_days_until_billing,
    get_recurring_frequency_label,
    get_recurring_interval_days,
    is_due_today,
    is_overdue,
    is_recurring_active,
    parse_optional_date,
)

D = dt.date


@pytest.mark.parametrize(
    ("start", "recurring_type", "every", "period", "expected"),
    [
        ("2024-01-15", "monthly", 1, "months", D(2024, 2, 15)),
        ("2024-01-01", "weekly", 1, "months", D(2024, 1, 8)),
        ("2024-11-30", "quarterly", 1, "months", D(2025, 2, 28)),
        ("2024-02-29", "yearly", 1, "months", D(2025, 2, 28)),
        ("2024-01-25", "custom", 10, "days", D(2024, 2, 4)),
        ("2024-01-01", "custom", 2, "weeks", D(2024, 1, 15)),
        ("2024-01-15", "custom", 2, "years", D(2026, 1, 15)),
        ("2024-01-15", "Monthly", 1, "months", D(2024, 2, 15)),
        ("2024-01-25", "CUSTOM", 10, "Days", D(2024, 2, 4)),
    ],
)
def test_next_billing_date(start, recurring_type, every, period, expected) -> None:
    assert calculate_next_billing_date(start, recurring_type, every, period) == expected


def test_month_end_clamps_to_last_day_of_target_month() -> None:
    assert calculate_next_billing_date("2024-01-31", "custom", 1, "months") == D(2024, 2, 29)
    assert calculate_next_billing_date("2023-01-31", "monthly") == D(2023, 2, 28)
    assert add_months(D(2024, 12, 31), 2) == D(2025, 2, 28)
    assert add_months(D(2024, 3, 31), -1) == D(2024, 2, 29)


def test_unknown_type_and_period_fall_back_to_months() -> None:
    assert calculate_next_billing_date("2024-01-15", "fortnightly") == D(2024, 2, 15)
    assert calculate_next_billing_date("2024-01-15", None) == D(2024, 2, 15)
    assert calculate_next_billing_date("2024-01-15", "custom", 2, "decades") == D(2024, 3, 15)


def test_custom_every_defaults_to_one() -> None:
    assert calculate_next_billing_date("2024-01-15", "custom", "abc", "days") == D(2024, 1, 16)
    assert calculate_next_billing_date("2024-01-15", "custom", 0, "days") == D(2024, 1, 16)
    assert calculate_next_billing_date("2024-01-15", "custom", "3", "days") == D(2024, 1, 18)


def test_datetime_input_keeps_time_of_day() -> None:
    start = dt.datetime(2024, 1, 31, 9, 30)
    assert calculate_next_billing_date(start, "monthly") == dt.datetime(2024, 2, 29, 9, 30)


def test_future_dates_unlimited_uses_max_dates() -> None:
    dates = calculate_future_billing_dates(D(2024, 1, 1), "weekly", -1, 1, "weeks", 5)
    assert len(dates) == 5
    assert dates[0] == D(2024, 1, 1)
    assert all((later - earlier).days == 7 for earlier, later in zip(dates, dates[1:]))


def test_future_dates_capped_by_occurrences() -> None:
    dates = calculate_future_billing_dates(D(2024, 1, 1), "weekly", 3, 1, "weeks", 12)
    assert dates == [D(2024, 1, 1), D(2024, 1, 8), D(2024, 1, 15)]
    assert calculate_future_billing_dates(D(2024, 1, 1), "weekly", 30, 1, "weeks", 4)[-1] == D(2024, 1, 22)
    assert calculate_future_billing_dates(D(2024, 1, 1), "weekly", 0) == []


def test_future_dates_step_from_previous_date() -> None:
    dates = calculate_future_billing_dates("2024-01-31", "monthly", 4)
    assert dates == [D(2024, 1, 31), D(2024, 2, 29), D(2024, 3, 29), D(2024, 4, 29)]


def test_future_dates_default_to_twelve() -> None:
    assert len(calculate_future_billing_dates("2024-01-01", "monthly")) == 12


def test_recurring_active_by_occurrences() -> None:
    assert is_recurring_active(3, 2) is True
    assert is_recurring_active(3, 3) is False
    assert is_recurring_active(-1, 500) is True


def test_recurring_active_by_end_date() -> None:
    now = dt.datetime(2024, 3, 10, 12, 0)
    assert is_recurring_active(-1, 0, "2024-03-09", now=now) is False
    assert is_recurring_active(-1, 0, "2024-03-10", now=now) is True
    assert is_recurring_active(-1, 0, D(2024, 4, 1), now=now) is True
    assert is_recurring_active(-1, 0, "2024-03-10T11:00:00", now=now) is False
    assert is_recurring_active(5, 0, None, now=now) is True


@pytest.mark.parametrize(
    ("recurring_type", "every", "period", "expected"),
    [
        ("weekly", 1, "months", "Every week"),
        ("Monthly", 1, "months", "Every month"),
        ("quarterly", 1, "months", "Every 3 months"),
        ("YEARLY", 1, "months", "Every year"),
        ("custom", 1, "Weeks", "Every week"),
        ("custom", 3, "Days", "Every 3 days"),
        ("custom", "abc", "months", "Every month"),
        (None, 1, "months", "Every month"),
    ],
)
def test_frequency_label(recurring_type, every, period, expected) -> None:
    assert get_recurring_frequency_label(recurring_type, every, period) == expected


def test_frequency_label_echoes_unknown_type() -> None:
    # Unlike the date calculators, the label does not fall back to monthly.
    assert get_recurring_frequency_label("Fortnightly") == "Fortnightly"


def test_format_recurring_schedule() -> None:
    assert format_recurring_schedule("monthly", -1, "2024-01-05") == "Every month, starting Jan 5, 2024 (unlimited)"
    assert (
        format_recurring_schedule("custom", 4, D(2024, 3, 10), 2, "weeks")
        == "Every 2 weeks, starting Mar 10, 2024 (4 times)"
    )


@pytest.mark.parametrize(
    ("recurring_type", "every", "period", "expected"),
    [
        ("weekly", 1, "months", 7),
        ("monthly", 1, "months", 30),
        ("quarterly", 1, "months", 90),
        ("yearly", 1, "months", 365),
        ("custom", 5, "days", 5),
        ("custom", 2, "weeks", 14),
        ("custom", 3, "months", 90),
        ("custom", 2, "Years", 730),
        ("custom", 2, "decades", 30),
        ("sometimes", 1, "months", 30),
    ],
)
def test_interval_days_are_approximate(recurring_type, every, period, expected) -> None:
    assert get_recurring_interval_days(recurring_type, every, period) == expected


def test_recurring_total() -> None:
    assert calculate_recurring_total("49.99", 3) == Decimal("149.97")
    assert calculate_recurring_total(100, -1) is None


def test_due_today_overdue_and_days_until() -> None:
    today = D(2024, 6, 15)

    assert is_due_today("2024-06-15", today=today) is True
    assert is_due_today(dt.datetime(2024, 6, 15, 23, 59), today=today) is True
    assert is_overdue("2024-06-15", today=today) is False
    assert is_overdue("2024-06-14", today=today) is True
    assert is_overdue("2024-06-16", today=today) is False

    assert get_days_until_billing("2024-06-20", today=today) == 5
    assert get_days_until_billing("2024-06-10", today=today) == -5
    assert get_days_until_billing(dt.datetime(2024, 6, 16, 1), today=dt.datetime(2024, 6, 15, 23)) == 1


def test_recurrence_rule_wraps_functions() -> None:
    rule = RecurrenceRule(type="custom", custom_every=2, custom_period="weeks")

    assert rule.next_date("2024-01-01") == D(2024, 1, 15)
    assert rule.future_dates("2024-01-01", occurrences=2) == [D(2024, 1, 1), D(2024, 1, 15)]
    assert rule.label() == "Every 2 weeks"
    assert rule.interval_days() == 14
    assert rule.describe("2024-01-01", 2) == "Every 2 weeks, starting Jan 1, 2024 (2 times)"


def test_unparseable_end_date_is_ignored() -> None:
    now = dt.datetime(2024, 3, 10, 12, 0)

    assert is_recurring_active(-1, 0, "not-a-date", now=now) is True
    assert is_recurring_active(3, 3, "not-a-date", now=now) is False


def test_unparseable_billing_date_is_neither_due_nor_overdue() -> None:
    today = D(2024, 6, 15)

    assert is_due_today("someday", today=today) is False
    assert is_overdue("someday", today=today) is False
    assert parse_optional_date("someday") is None
    assert parse_optional_date(None) is None
    assert parse_optional_date("2024-06-15") == today
