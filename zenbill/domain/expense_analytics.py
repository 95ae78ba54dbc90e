"""Expense analytics for reports and dashboard widgets.

Expenses are plain mappings as returned by the expenses API: ``amount``,
``expense_date`` (or ``date``), ``category_id``/``expense_category_id`` with an
optional nested ``category``, and ``vendor_id`` with an optional ``vendor``.
Amounts are read with ``parse_numeric_or_zero``. An expense whose date cannot be
parsed is left out of the date-based views.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from zenbill.domain.numeric import HUNDRED, ZERO, parse_numeric_or_zero, round_money
from zenbill.domain.recurrence import parse_optional_date

logger = logging.getLogger(__name__)

Expense = Mapping[str, Any]

UNCATEGORIZED = "uncategorized"
NO_VENDOR = "no_vendor"

TREND_INCREASE = "increase"
TREND_DECREASE = "decrease"
TREND_STABLE = "stable"

# Sunday first, matching the dashboard's week layout.
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass
class ExpenseGroup:
    """Expenses sharing a category, vendor or month."""

    key: str
    name: str
    expenses: list[Expense] = field(default_factory=list)
    total: Decimal = ZERO
    count: int = 0

    def add(self, expense: Expense) -> None:
        self.expenses.append(expense)
        self.total += expense_amount(expense)
        self.count += 1

    @property
    def average(self) -> Decimal:
        return self.total / self.count if self.count else ZERO


@dataclass(frozen=True)
class GroupSummary:
    key: str
    name: str
    total: Decimal
    count: int
    average: Decimal
    percentage: Decimal = ZERO
    growth_rate: Decimal = ZERO


@dataclass(frozen=True)
class ExpenseSummary:
    total: Decimal
    count: int
    average: Decimal
    min: Decimal
    max: Decimal
    median: Decimal


@dataclass(frozen=True)
class PeriodComparison:
    current_total: Decimal
    previous_total: Decimal
    difference: Decimal
    percentage_change: Decimal
    trend: str


@dataclass(frozen=True)
class DayOfWeekAverage:
    name: str
    total: Decimal
    count: int
    average: Decimal


def expense_amount(expense: Expense) -> Decimal:
    return parse_numeric_or_zero(expense.get("amount"))


def expense_day(expense: Expense) -> dt.date | None:
    """Calendar day of an expense, or None when its date is missing or invalid."""
    value = parse_optional_date(expense.get("expense_date") or expense.get("date"))
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def _nested_name(expense: Expense, key: str) -> str | None:
    nested = expense.get(key)
    if isinstance(nested, Mapping):
        return nested.get("name")
    return None


def calculate_total_expenses(expenses: Iterable[Expense] | None = None) -> Decimal:
    return sum((expense_amount(expense) for expense in expenses or ()), ZERO)


def group_expenses_by_category(expenses: Iterable[Expense] | None = None) -> dict[str, ExpenseGroup]:
    grouped: dict[str, ExpenseGroup] = {}
    for expense in expenses or ():
        key = str(expense.get("expense_category_id") or expense.get("category_id") or UNCATEGORIZED)
        if key not in grouped:
            name = _nested_name(expense, "category") or expense.get("category_name") or "Uncategorized"
            grouped[key] = ExpenseGroup(key=key, name=name)
        grouped[key].add(expense)
    return grouped


def group_expenses_by_vendor(expenses: Iterable[Expense] | None = None) -> dict[str, ExpenseGroup]:
    grouped: dict[str, ExpenseGroup] = {}
    for expense in expenses or ():
        key = str(expense.get("vendor_id") or NO_VENDOR)
        if key not in grouped:
            name = _nested_name(expense, "vendor") or expense.get("vendor_name") or "No Vendor"
            grouped[key] = ExpenseGroup(key=key, name=name)
        grouped[key].add(expense)
    return grouped


def group_expenses_by_month(expenses: Iterable[Expense] | None = None) -> dict[str, ExpenseGroup]:
    """Group by ``YYYY-MM``; each group is labelled like ``Jan 2024``."""
    grouped: dict[str, ExpenseGroup] = {}
    for expense in expenses or ():
        day = expense_day(expense)
        if day is None:
            logger.debug("Skipping expense without a valid date: %r", expense.get("id"))
            continue
        key = f"{day:%Y-%m}"
        if key not in grouped:
            grouped[key] = ExpenseGroup(key=key, name=f"{day:%b %Y}")
        grouped[key].add(expense)
    return grouped


def _shares(groups: Iterable[ExpenseGroup], total: Decimal) -> list[GroupSummary]:
    summaries = [
        GroupSummary(
            key=group.key,
            name=group.name,
            total=group.total,
            count=group.count,
            average=group.average,
            percentage=group.total / total * HUNDRED if total > 0 else ZERO,
        )
        for group in groups
    ]
    summaries.sort(key=lambda summary: summary.total, reverse=True)
    return summaries


def calculate_category_breakdown(expenses: Sequence[Expense] | None = None) -> list[GroupSummary]:
    """Categories by total spend, largest first, with their share of the whole."""
    expenses = expenses or ()
    return _shares(group_expenses_by_category(expenses).values(), calculate_total_expenses(expenses))


def calculate_vendor_analysis(expenses: Sequence[Expense] | None = None) -> list[GroupSummary]:
    """Vendors by total spend, largest first, with their share of the whole."""
    expenses = expenses or ()
    return _shares(group_expenses_by_vendor(expenses).values(), calculate_total_expenses(expenses))


def calculate_monthly_trends(expenses: Sequence[Expense] | None = None, months: int = 12) -> list[GroupSummary]:
    """Monthly totals in calendar order with month-over-month growth.

    Growth is a percentage of the previous month present in the data; the first
    month, or one following a zero month, has a growth rate of 0. Only the most
    recent ``months`` entries are returned; ``months <= 0`` returns all.
    """
    groups = sorted(group_expenses_by_month(expenses).values(), key=lambda group: group.key)

    trends: list[GroupSummary] = []
    previous: ExpenseGroup | None = None
    for group in groups:
        growth_rate = ZERO
        if previous is not None and previous.total > 0:
            growth_rate = (group.total - previous.total) / previous.total * HUNDRED
        trends.append(
            GroupSummary(
                key=group.key,
                name=group.name,
                total=group.total,
                count=group.count,
                average=group.average,
                growth_rate=growth_rate,
            )
        )
        previous = group

    if months > 0:
        return trends[-months:]
    return trends


def filter_expenses_by_date_range(
    expenses: Iterable[Expense] | None,
    start_date: dt.date | str | None,
    end_date: dt.date | str | None,
) -> list[Expense]:
    """Expenses dated within ``[start_date, end_date]``, both days inclusive.

    An invalid or reversed range matches nothing.
    """
    start = parse_optional_date(start_date)
    end = parse_optional_date(end_date)
    if start is None or end is None:
        return []
    if isinstance(start, dt.datetime):
        start = start.date()
    if isinstance(end, dt.datetime):
        end = end.date()
    if start > end:
        logger.debug("Empty date range %s..%s", start, end)
        return []

    filtered: list[Expense] = []
    for expense in expenses or ():
        day = expense_day(expense)
        if day is not None and start <= day <= end:
            filtered.append(expense)
    return filtered


def get_current_month_expenses(
    expenses: Iterable[Expense] | None = None,
    today: dt.date | None = None,
) -> list[Expense]:
    today = today or dt.date.today()
    start = today.replace(day=1)
    next_month = (start + dt.timedelta(days=32)).replace(day=1)
    return filter_expenses_by_date_range(expenses, start, next_month - dt.timedelta(days=1))


def get_current_year_expenses(
    expenses: Iterable[Expense] | None = None,
    today: dt.date | None = None,
) -> list[Expense]:
    today = today or dt.date.today()
    return filter_expenses_by_date_range(expenses, dt.date(today.year, 1, 1), dt.date(today.year, 12, 31))


def calculate_expense_summary(expenses: Sequence[Expense] | None = None) -> ExpenseSummary:
    """Total, count, average, min, max and median, each rounded to cents."""
    amounts = sorted(expense_amount(expense) for expense in expenses or ())
    count = len(amounts)
    if not count:
        zero = round_money(ZERO)
        return ExpenseSummary(total=zero, count=0, average=zero, min=zero, max=zero, median=zero)

    total = sum(amounts, ZERO)
    middle = count // 2
    if count % 2 == 0:
        median = (amounts[middle - 1] + amounts[middle]) / 2
    else:
        median = amounts[middle]

    return ExpenseSummary(
        total=round_money(total),
        count=count,
        average=round_money(total / count),
        min=round_money(amounts[0]),
        max=round_money(amounts[-1]),
        median=round_money(median),
    )


def compare_periods(
    current_period_expenses: Iterable[Expense] | None = None,
    previous_period_expenses: Iterable[Expense] | None = None,
) -> PeriodComparison:
    current_total = calculate_total_expenses(current_period_expenses)
    previous_total = calculate_total_expenses(previous_period_expenses)
    difference = current_total - previous_total
    percentage_change = difference / previous_total * HUNDRED if previous_total > 0 else ZERO

    if difference > 0:
        trend = TREND_INCREASE
    elif difference < 0:
        trend = TREND_DECREASE
    else:
        trend = TREND_STABLE

    return PeriodComparison(
        current_total=round_money(current_total),
        previous_total=round_money(previous_total),
        difference=round_money(difference),
        percentage_change=round_money(percentage_change),
        trend=trend,
    )


def get_top_expenses(expenses: Iterable[Expense] | None = None, limit: int = 10) -> list[Expense]:
    """Largest expenses first; ties keep their input order."""
    ranked = sorted(expenses or (), key=expense_amount, reverse=True)
    return ranked[: max(limit, 0)]


def calculate_average_by_day_of_week(expenses: Iterable[Expense] | None = None) -> list[DayOfWeekAverage]:
    """Totals and rounded averages per weekday, Sunday first."""
    totals = [ZERO] * 7
    counts = [0] * 7
    for expense in expenses or ():
        day = expense_day(expense)
        if day is None:
            continue
        index = (day.weekday() + 1) % 7
        totals[index] += expense_amount(expense)
        counts[index] += 1

    return [
        DayOfWeekAverage(
            name=name,
            total=totals[index],
            count=counts[index],
            average=round_money(totals[index] / counts[index]) if counts[index] else ZERO,
        )
        for index, name in enumerate(DAY_NAMES)
    ]


def format_chart_data(data: Sequence[GroupSummary], chart_type: str = "category") -> Any:
    """Labels and one dataset for a bar/pie chart; unknown types pass ``data`` through."""
    if chart_type in ("category", "vendor"):
        dataset_label = "Amount"
    elif chart_type == "monthly":
        dataset_label = "Total Expenses"
    else:
        return data

    return {
        "labels": [summary.name for summary in data],
        "datasets": [{"label": dataset_label, "data": [summary.total for summary in data]}],
    }
