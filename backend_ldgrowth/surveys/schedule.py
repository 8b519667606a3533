"""
Recurring survey schedule arithmetic.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from backend_ldgrowth.core.timeutil import add_months

FREQUENCIES = ("one-time", "monthly", "quarterly", "biannual", "annual")

_MONTH_STEP = {"monthly": 1, "biannual": 6, "annual": 12}


def calculate_next_scheduled_date(
    frequency: str,
    is_recurring: bool,
    day_of_period: int,
    now: datetime,
) -> datetime | None:
    """
    Next run date for a recurring survey, at midnight.

    quarterly: day_of_period of the first month of the next calendar quarter.
    monthly / biannual / annual: 1 / 6 / 12 months ahead on day_of_period.
    One-time or non-recurring schedules have no next date.
    """
    if not is_recurring or frequency == "one-time":
        return None
    day = max(1, int(day_of_period or 1))
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if frequency == "quarterly":
        first_of_quarter = midnight.replace(day=1, month=((now.month - 1) // 3) * 3 + 1)
        return add_months(first_of_quarter, 3, day)
    step = _MONTH_STEP.get(frequency)
    if step is None:
        return None
    return add_months(midnight, step, day)


def recurring_window(next_date: datetime, duration_days: int) -> tuple[datetime, datetime]:
    """(start, end) of the survey created for next_date."""
    return next_date, next_date + timedelta(days=max(1, int(duration_days or 14)))
