"""Recurring billing schedules for invoices and expenses.

Recurrence types are matched case-insensitively: ``weekly``, ``monthly``,
``quarterly``, ``yearly`` and ``custom`` (every N days/weeks/months/years).

Date calculators treat an unknown type as monthly. The frequency label echoes
an unknown type back unchanged.
"""

from __future__ import annotations

import calendar
import datetime as dt
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import TypeVar

from zenbill.domain.invoice import NumericInput
from zenbill.domain.numeric import parse_int_or_default, parse_numeric_or_zero

logger = logging.getLogger(__name__)

UNLIMITED = -1
DEFAULT_MAX_DATES = 12

WEEKLY = "weekly"
MONTHLY = "monthly"
QUARTERLY = "quarterly"
YEARLY = "yearly"
CUSTOM = "custom"

DAYS = "days"
WEEKS = "weeks"
MONTHS = "months"
YEARS = "years"

DateT = TypeVar("DateT", dt.date, dt.datetime)
DateInput = dt.date | dt.datetime | str


def coerce_date(value: DateInput) -> dt.date:
    """Accept a date, a datetime or an ISO 8601 string.

    Dates and datetimes come back unchanged; ``"2024-01-15"`` becomes a date and
    longer strings become datetimes.

    Raises:
        ValueError: if the string is not ISO 8601.
    """
    if isinstance(value, dt.date):
        return value
    text = str(value).strip()
    if len(text) <= 10:
        return dt.date.fromisoformat(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return dt.datetime.fromisoformat(text)


def parse_optional_date(value: DateInput | None) -> dt.date | None:
    """Like ``coerce_date`` but unparseable or missing values give None."""
    if value is None or value == "":
        return None
    try:
        return coerce_date(value)
    except ValueError:
        logger.debug("Ignoring unparseable date %r", value)
        return None


def _to_date(value: dt.date) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def add_days(value: DateT, days: int) -> DateT:
    return value + dt.timedelta(days=days)


def add_weeks(value: DateT, weeks: int) -> DateT:
    return value + dt.timedelta(weeks=weeks)


def add_months(value: DateT, months: int) -> DateT:
    """Calendar month addition, clamped to the last day of the target month.

    ``2024-01-31 + 1 month`` is ``2024-02-29``.
    """
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_years(value: DateT, years: int) -> DateT:
    return add_months(value, years * 12)


def _normalize(value: str | None, default: str) -> str:
    return (value or default).lower()


def calculate_next_billing_date(
    start_date: DateInput,
    recurring_type: str | None = MONTHLY,
    custom_every: NumericInput = 1,
    custom_period: str | None = MONTHS,
) -> dt.date:
    """Next billing date after ``start_date`` using calendar arithmetic."""
    start = coerce_date(start_date)
    kind = _normalize(recurring_type, MONTHLY)

    if kind == WEEKLY:
        return add_weeks(start, 1)
    if kind == MONTHLY:
        return add_months(start, 1)
    if kind == QUARTERLY:
        return add_months(start, 3)
    if kind == YEARLY:
        return add_years(start, 1)
    if kind == CUSTOM:
        every = parse_int_or_default(custom_every, 1)
        period = _normalize(custom_period, MONTHS)
        if period == DAYS:
            return add_days(start, every)
        if period == WEEKS:
            return add_weeks(start, every)
        if period == YEARS:
            return add_years(start, every)
        if period != MONTHS:
            logger.debug("Unknown custom period %r, stepping by months", custom_period)
        return add_months(start, every)

    logger.debug("Unknown recurring type %r, treating as monthly", recurring_type)
    return add_months(start, 1)


def calculate_future_billing_dates(
    start_date: DateInput,
    recurring_type: str | None,
    occurrences: int = UNLIMITED,
    custom_every: NumericInput = 1,
    custom_period: str | None = MONTHS,
    max_dates: int = DEFAULT_MAX_DATES,
) -> list[dt.date]:
    """Billing dates starting at ``start_date`` (inclusive).

    Returns ``max_dates`` dates for unlimited schedules, otherwise
    ``min(occurrences, max_dates)``. Each date is derived from the previous one,
    so month-end clamping carries forward (Jan 31, Feb 29, Mar 29, ...).
    """
    limit = max_dates if occurrences == UNLIMITED else min(occurrences, max_dates)

    dates: list[dt.date] = []
    current = coerce_date(start_date)
    for _ in range(limit):
        dates.append(current)
        current = calculate_next_billing_date(current, recurring_type, custom_every, custom_period)
    return dates


def is_recurring_active(
    occurrences: int,
    current_occurrence: int = 0,
    end_date: DateInput | None = None,
    now: dt.datetime | None = None,
) -> bool:
    """Whether a recurring invoice or expense should still generate documents.

    A date-only ``end_date`` is inclusive: the schedule is active through that day.
    An end date that cannot be parsed is ignored.
    """
    if occurrences != UNLIMITED and current_occurrence >= occurrences:
        return False

    end = parse_optional_date(end_date)
    if end is not None:
        if isinstance(end, dt.datetime):
            if (now or dt.datetime.now(end.tzinfo)) > end:
                return False
        elif _to_date(now or dt.date.today()) > end:
            return False

    return True


def get_recurring_frequency_label(
    recurring_type: str | None,
    custom_every: NumericInput = 1,
    custom_period: str | None = MONTHS,
) -> str | None:
    kind = _normalize(recurring_type, MONTHLY)

    if kind == WEEKLY:
        return "Every week"
    if kind == MONTHLY:
        return "Every month"
    if kind == QUARTERLY:
        return "Every 3 months"
    if kind == YEARLY:
        return "Every year"
    if kind == CUSTOM:
        every = parse_int_or_default(custom_every, 1)
        period = _normalize(custom_period, MONTHS)
        if every == 1:
            return f"Every {period[:-1]}"
        return f"Every {every} {period}"

    return recurring_type


def format_recurring_schedule(
    recurring_type: str | None,
    occurrences: int,
    start_date: DateInput,
    custom_every: NumericInput = 1,
    custom_period: str | None = MONTHS,
) -> str:
    """Human readable schedule, e.g. ``Every month, starting Jan 5, 2024 (3 times)``."""
    frequency = get_recurring_frequency_label(recurring_type, custom_every, custom_period)
    start = coerce_date(start_date)
    start_label = f"{start:%b} {start.day}, {start.year}"

    if occurrences == UNLIMITED:
        return f"{frequency}, starting {start_label} (unlimited)"
    return f"{frequency}, starting {start_label} ({occurrences} times)"


def get_recurring_interval_days(
    recurring_type: str | None,
    custom_every: NumericInput = 1,
    custom_period: str | None = MONTHS,
) -> int:
    """Approximate interval length in days, for sorting and estimates only.

    A month counts as 30 days, a quarter as 90 and a year as 365. Billing dates
    themselves always use ``calculate_next_billing_date``.
    """
    kind = _normalize(recurring_type, MONTHLY)

    if kind == WEEKLY:
        return 7
    if kind == MONTHLY:
        return 30
    if kind == QUARTERLY:
        return 90
    if kind == YEARLY:
        return 365
    if kind == CUSTOM:
        every = parse_int_or_default(custom_every, 1)
        period = _normalize(custom_period, MONTHS)
        per_period = {DAYS: 1, WEEKS: 7, MONTHS: 30, YEARS: 365}
        if period in per_period:
            return every * per_period[period]
        return 30
    return 30


def calculate_recurring_total(amount: NumericInput, occurrences: int) -> Decimal | None:
    """Amount billed over the whole schedule; None when it never ends."""
    if occurrences == UNLIMITED:
        return None
    return parse_numeric_or_zero(amount) * occurrences


def is_due_today(next_billing_date: DateInput, today: dt.date | None = None) -> bool:
    billing_date = parse_optional_date(next_billing_date)
    if billing_date is None:
        return False
    return _to_date(billing_date) == _to_date(today or dt.date.today())


def is_overdue(next_billing_date: DateInput, today: dt.date | None = None) -> bool:
    billing_date = parse_optional_date(next_billing_date)
    if billing_date is None:
        return False
    return _to_date(billing_date) < _to_date(today or dt.date.today())


def get_days_until_billing(next_billing_date: DateInput, today: dt.date | None = None) -> int:
    """Days until the next billing date, negative when it has passed.

    With datetimes any part of a day counts as a whole day.
    """
    next_date = coerce_date(next_billing_date)
    if isinstance(next_date, dt.datetime) and isinstance(today, dt.datetime):
        return math.ceil((next_date - today).total_seconds() / 86400)
    return (_to_date(next_date) - _to_date(today or dt.date.today())).days


@dataclass(frozen=True)
class RecurrenceRule:
    """A recurrence setting as stored on a recurring invoice template."""

    type: str = MONTHLY
    custom_every: NumericInput = 1
    custom_period: str = MONTHS

    def next_date(self, start_date: DateInput) -> dt.date:
        return calculate_next_billing_date(start_date, self.type, self.custom_every, self.custom_period)

    def future_dates(
        self,
        start_date: DateInput,
        occurrences: int = UNLIMITED,
        max_dates: int = DEFAULT_MAX_DATES,
    ) -> list[dt.date]:
        return calculate_future_billing_dates(
            start_date,
            self.type,
            occurrences,
            self.custom_every,
            self.custom_period,
            max_dates,
        )

    def label(self) -> str | None:
        return get_recurring_frequency_label(self.type, self.custom_every, self.custom_period)

    def interval_days(self) -> int:
        return get_recurring_interval_days(self.type, self.custom_every, self.custom_period)

    def describe(self, start_date: DateInput, occurrences: int = UNLIMITED) -> str:
        return format_recurring_schedule(self.type, occurrences, start_date, self.custom_every, self.custom_period)
