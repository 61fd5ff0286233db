"""UTC helpers and calendar period boundaries.

All times are UTC. Exchange timestamps are integer milliseconds since the
epoch; the helpers here convert them to timezone-aware datetimes and derive
the day/week/month boundaries used by the aggregation engine.

Weeks start on Sunday (00:00 UTC) and end on Saturday (23:59:59.999 UTC).
"""

from __future__ import annotations

import calendar
from datetime import UTC, date, datetime, timedelta


def utc_now() -> datetime:
    """Return the current UTC datetime, timezone-aware."""
    return datetime.now(UTC)


def utc_today() -> date:
    """Return the current UTC calendar date."""
    return utc_now().date()


def ms_to_datetime(ms: int) -> datetime:
    """Convert epoch milliseconds to a timezone-aware UTC datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=UTC)


def datetime_to_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive values are assumed UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)


def date_to_ms(d: date) -> int:
    """Epoch milliseconds of 00:00 UTC on the given date."""
    return datetime_to_ms(datetime(d.year, d.month, d.day, tzinfo=UTC))


def start_of_week(d: date) -> date:
    """Sunday on or before the given date."""
    # date.weekday(): Monday=0 ... Sunday=6
    return d - timedelta(days=(d.weekday() + 1) % 7)


def end_of_week(d: date) -> date:
    """Saturday on or after the given date."""
    return start_of_week(d) + timedelta(days=6)


def start_of_month(d: date) -> date:
    """First day of the month containing the given date."""
    return d.replace(day=1)


def end_of_month(d: date) -> date:
    """Last day of the month containing the given date."""
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=last_day)


def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month."""
    month_index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(month_index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(d.day, last_day))


def is_same_month(a: date, b: date) -> bool:
    """True when both dates fall in the same calendar month."""
    return a.year == b.year and a.month == b.month
