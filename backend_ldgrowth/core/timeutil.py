"""
Date/time helpers. The database stores naive UTC datetimes.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def add_months(value: datetime, months: int, day: int | None = None) -> datetime:
    """
    Shift value by whole months, optionally pinning the day of month.

    The day is clamped to the last day of the target month.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    target_day = min(day if day is not None else value.day, last_day)
    return value.replace(year=year, month=month, day=max(1, target_day))


def iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None
