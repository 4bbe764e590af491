"""Result objects produced by the scheduling services."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import Field, computed_field

from .base import FrozenModel, StrictModel
from .booking import BookingRecord, TimeInterval


class ValidationResult(StrictModel):
    """Accumulated rule violations; valid only when no error was recorded."""

    errors: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        return not self.errors


class ConflictReport(FrozenModel):
    conflicting: List[BookingRecord] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicting)

    @property
    def conflicting_ids(self) -> List[str]:
        return [booking.id for booking in self.conflicting]


class DailyLoad(FrozenModel):
    """Confirmed work a mentor has on one calendar day."""

    day: date
    count: int = 0
    hours: float = 0.0


class AvailabilityReport(FrozenModel):
    is_available: bool
    reason: Optional[str] = None
    booked_slots: List[BookingRecord] = Field(default_factory=list)


class SlotSuggestion(FrozenModel):
    interval: TimeInterval
    score: float = Field(gt=0, le=1)
    reason: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_minutes(self) -> int:
        return self.interval.duration_minutes


class BookingCreationResult(StrictModel):
    """Outcome of a create-booking request: either a booking or the reasons it was refused."""

    validation: ValidationResult
    booking: Optional[BookingRecord] = None

    @property
    def created(self) -> bool:
        return self.booking is not None
