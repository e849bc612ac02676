"""Business-day calendar arithmetic.

Every date handled here is a naive ``datetime.date``: a plain calendar day with
no time-of-day and no timezone. Business-day keys and leave keys are built the
same way, so they always compare equal for the same calendar day. "Today" is
taken from UTC.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

MONTH_NAMES = tuple(calendar.month_abbr[index] for index in range(1, 13))

# Monday=0 .. Friday=4
WEEKEND_START = 5


@dataclass(frozen=True, slots=True)
class BusinessDays:
    """Ordered Mon-Fri dates of one month and their canonical keys."""

    year: int
    month_index: int
    days: tuple[date, ...]

    @property
    def count(self) -> int:
        return len(self.days)

    @property
    def keys(self) -> frozenset[str]:
        return frozenset(date_key(day) for day in self.days)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def validate_month_index(month_index: int) -> int:
    if not 0 <= month_index <= 11:
        raise ValueError(f"month_index must be within 0..11, got {month_index}.")
    return month_index


def date_key(value: date) -> str:
    """Canonical ``YYYY-MM-DD`` key for a calendar day."""

    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def is_business_day(value: date) -> bool:
    return value.weekday() < WEEKEND_START


def month_bounds(year: int, month_index: int) -> tuple[date, date]:
    """First and last calendar day of a 0-based month."""

    validate_month_index(month_index)
    month = month_index + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_name(month_index: int) -> str:
    return MONTH_NAMES[validate_month_index(month_index)]


def business_days(year: int, month_index: int) -> BusinessDays:
    first, last = month_bounds(year, month_index)
    days = tuple(
        first + timedelta(days=offset)
        for offset in range((last - first).days + 1)
        if is_business_day(first + timedelta(days=offset))
    )
    return BusinessDays(year=year, month_index=month_index, days=days)


def annual_business_days(year: int) -> list[BusinessDays]:
    return [business_days(year, month_index) for month_index in range(12)]


def count_business_days(start: date, end: date) -> int:
    """Count Mon-Fri days in ``[start, end]`` without walking every day."""

    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    weekday = start.weekday()
    for offset in range(remainder):
        if (weekday + offset) % 7 < WEEKEND_START:
            count += 1
    return count


def cumulative_business_days(start_date: date, now: date | None = None) -> int:
    """Rough tenure in business days from assignment start through ``now``.

    Leaves are not deducted; this is an elapsed-time figure, not a billing one.
    """

    today = now or utc_today()
    if isinstance(start_date, datetime):
        start_date = start_date.date()
    if isinstance(today, datetime):
        today = today.date()
    if start_date > today:
        return 0
    return count_business_days(start_date, today)


def month_sequence(first_month_index: int, last_month_index: int) -> list[int]:
    validate_month_index(first_month_index)
    validate_month_index(last_month_index)
    return list(range(first_month_index, last_month_index + 1))
