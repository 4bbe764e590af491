# backend/mentora/schemas/booking.py
"""
Booking value objects.

``BookingRecord`` is owned by the persistence collaborator; the engine reads it
and never mutates it. ``TimeInterval`` is the half-open ``[start, end)`` range
every scheduling rule works on.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from pydantic import field_validator, model_validator

from ..core.enums import BookingStatus
from ..utils.time_utils import ensure_utc, hours_between, overlaps
from .base import FrozenModel, Money, StrictModel


class TimeInterval(FrozenModel):
    """Immutable ``[start, end)`` range in UTC."""

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _start_before_end(self) -> "TimeInterval":
        if self.start >= self.end:
            raise ValueError("start must precede end")
        return self

    @classmethod
    def from_duration(cls, start: datetime, minutes: int) -> "TimeInterval":
        return cls(start=start, end=start + timedelta(minutes=minutes))

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    @property
    def duration_hours(self) -> float:
        return self.duration.total_seconds() / 3600

    def overlaps(self, other: "TimeInterval") -> bool:
        return overlaps(self, other)


class BookingRecord(FrozenModel):
    """A booking as loaded from storage."""

    id: str
    mentor_id: str
    user_id: str
    session_id: Optional[str] = None
    interval: TimeInterval
    status: BookingStatus = BookingStatus.CONFIRMED
    amount: Money
    currency: str = "USD"
    created_at: datetime
    cancelled_at: Optional[datetime] = None
    is_paid: bool = False
    notes: Optional[str] = None

    @field_validator("created_at", "cancelled_at")
    @classmethod
    def _timestamps_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @property
    def start(self) -> datetime:
        return self.interval.start

    @property
    def end(self) -> datetime:
        return self.interval.end

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    def involves(self, user_id: str) -> bool:
        """True when ``user_id`` is the booking's mentee or its mentor."""
        return user_id in (self.user_id, self.mentor_id)

    def hours_until_start(self, now: datetime) -> float:
        return hours_between(now, self.start)


class MentorSession(FrozenModel):
    """The bookable session a request refers to."""

    id: str
    mentor_id: str
    title: Optional[str] = None


class CreateBookingRequest(StrictModel):
    """Booking request as received from the caller, before any rule is applied."""

    session_id: str
    start: datetime
    end: datetime
    amount: Money
    currency: str = "USD"
    notes: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class BookingUpdate(StrictModel):
    """Fields a party may change on an existing booking."""

    notes: Optional[str] = None
    meeting_url: Optional[str] = None
    is_paid: Optional[bool] = None


class BookingDraft(FrozenModel):
    """A validated booking handed to storage for atomic creation."""

    mentor_id: str
    user_id: str
    session_id: str
    interval: TimeInterval
    amount: Money
    currency: str
    notes: Optional[str] = None
    created_at: datetime
