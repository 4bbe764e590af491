"""
Core enums for the Mentora booking engine.

These values cross the boundary to the persistence and transport layers, so
they are string enums that serialize to stable, human-readable values.
"""

from datetime import date
from enum import Enum


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"  # Binding reservation, the only status that blocks time
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"
    REFUNDED = "REFUNDED"


class RecurrencePattern(str, Enum):
    """Rule families for expanding a session into dated occurrences."""

    NONE = "NONE"  # One-time session
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"  # Steps like DAILY until custom rules exist


class Weekday(str, Enum):
    """Days of the week, ordered Monday first like ``date.weekday()``."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        return WEEKDAYS[value.weekday()]

    @property
    def day_number(self) -> int:
        return WEEKDAYS.index(self)


WEEKDAYS = list(Weekday)


class PenaltyType(str, Enum):
    """Kinds of penalty applied on cancellation."""

    NONE = "NONE"
    LATE_CANCELLATION = "LATE_CANCELLATION"
    SHORT_NOTICE = "SHORT_NOTICE"
    FREQUENT_CANCELLATION = "FREQUENT_CANCELLATION"


class OutcomeFailure(str, Enum):
    """
    Why a cancellation or modification was refused.

    Kept separate from validation errors so transports can map each kind to
    its own status code.
    """

    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    UNAVAILABLE = "UNAVAILABLE"  # Storage failed while loading the booking
