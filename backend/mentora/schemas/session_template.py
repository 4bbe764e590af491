"""Session templates and the dated occurrences planned from them."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field, model_validator

from .base import FrozenModel, Money
from .booking import TimeInterval
from .recurrence import RecurrenceSpec


class SessionTemplate(FrozenModel):
    """A mentor's reusable session definition."""

    id: str
    mentor_id: str
    name: str
    base_price: Money
    default_duration_minutes: int = Field(default=60, ge=1)
    allow_recurring: bool = False
    allow_custom_duration: bool = True
    allow_custom_price: bool = True
    min_duration_minutes: int = Field(default=30, ge=1)
    max_duration_minutes: int = Field(default=240, ge=1)
    default_recurrence: Optional[RecurrenceSpec] = None

    @model_validator(mode="after")
    def _duration_bounds(self) -> "SessionTemplate":
        if self.min_duration_minutes > self.max_duration_minutes:
            raise ValueError("min_duration_minutes cannot exceed max_duration_minutes")
        return self


class SessionOccurrence(FrozenModel):
    """One planned, priced session date and the confirmed bookings it would collide with."""

    interval: TimeInterval
    price: Money
    conflicts: List[str] = Field(default_factory=list)

    @property
    def is_free(self) -> bool:
        return not self.conflicts
