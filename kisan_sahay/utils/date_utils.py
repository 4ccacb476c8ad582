from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - timedelta(days=days)


def _months_back(dt: datetime, months: int) -> datetime:
    month_index = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """Start of a stats window ending at ``now``.

    - week: 7 days back
    - month: one calendar month back (default for unknown keys)
    - 3months: three calendar months back
    - year: one calendar year back
    """
    now = now or utcnow()
    if period == "week":
        return now - timedelta(days=7)
    if period == "3months":
        return _months_back(now, 3)
    if period == "year":
        return _months_back(now, 12)
    return _months_back(now, 1)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
