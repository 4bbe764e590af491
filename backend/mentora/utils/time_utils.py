from __future__ import annotations

import calendar
from datetime import date, datetime, time, timezone
from typing import TYPE_CHECKING

import pytz

if TYPE_CHECKING:
    from ..schemas.booking import TimeInterval


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime, treating naive values as UTC."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz_name: str) -> datetime:
    """Convert a (possibly naive, UTC) datetime into the named zone."""
    return ensure_utc(dt).astimezone(pytz.timezone(tz_name))


def localize(day: date, at: time, tz_name: str) -> datetime:
    """
    Build the UTC instant for a local wall-clock time on ``day``.

    Uses ``pytz`` localization so DST transitions pick the correct offset.
    """
    local = pytz.timezone(tz_name).localize(datetime.combine(day, at))
    return local.astimezone(timezone.utc)


def ranges_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """
    Half-open overlap test for ``[start1, end1)`` and ``[start2, end2)``.

    Ranges that only touch at an endpoint do not overlap.
    """
    return start1 < end2 and end1 > start2


def overlaps(a: "TimeInterval", b: "TimeInterval") -> bool:
    """Do two intervals share any instant."""
    return ranges_overlap(a.start, a.end, b.start, b.end)


def hours_between(start: datetime, end: datetime) -> float:
    """Signed number of hours from ``start`` to ``end``."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600


def add_months(value: date, months: int) -> date:
    """
    Add calendar months, clamping the day to the target month's length.

    Jan 31 + 1 month is Feb 28 (or 29), matching how calendars roll over.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))
