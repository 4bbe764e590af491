"""Business day helpers for the mentoring calendar (Monday through Friday)."""

from __future__ import annotations

from datetime import date, datetime, timedelta

BUSINESS_WEEKDAYS = {0, 1, 2, 3, 4}


def is_business_day(value: date) -> bool:
    """True for Monday through Friday."""

    return value.weekday() in BUSINESS_WEEKDAYS


def next_business_day(value: date) -> date:
    """Return the first business day strictly after ``value``."""

    current = value + timedelta(days=1)
    while not is_business_day(current):
        current += timedelta(days=1)
    return current


def is_within_business_hours(local_dt: datetime, start_hour: int, end_hour: int) -> bool:
    """
    Check a local wall-clock time against the ``[start_hour, end_hour)`` window.

    Only the hour is compared, so 20:59 passes for a 21:00 close while 21:00
    itself does not. Weekends always fail.
    """

    if not is_business_day(local_dt.date()):
        return False
    return start_hour <= local_dt.hour < end_hour
