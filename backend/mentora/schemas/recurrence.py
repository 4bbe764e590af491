"""
Recurrence rule for expanding one session into dated occurrences.

Only the fields relevant to ``pattern`` are consulted; the rest are carried
along untouched so a rule can be edited from one pattern to another without
losing data. Stored as camelCase JSON.
"""

from __future__ import annotations

from datetime import date
from typing import FrozenSet, List, Optional

from pydantic import ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from ..core.enums import RecurrencePattern, Weekday
from .base import FrozenModel


class RecurrenceSpec(FrozenModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    pattern: RecurrencePattern = RecurrencePattern.NONE
    interval: Optional[int] = Field(default=None, ge=1)
    days_of_week: FrozenSet[Weekday] = Field(default_factory=frozenset)
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = Field(default=None, ge=0)
    excluded_dates: FrozenSet[date] = Field(default_factory=frozenset)

    @property
    def step(self) -> int:
        return self.interval or 1

    @property
    def is_recurring(self) -> bool:
        return self.pattern != RecurrencePattern.NONE

    @field_serializer("days_of_week")
    def _serialize_days(self, days: FrozenSet[Weekday]) -> List[str]:
        return [day.value for day in sorted(days, key=lambda day: day.day_number)]

    @field_serializer("excluded_dates")
    def _serialize_excluded(self, dates: FrozenSet[date]) -> List[date]:
        return sorted(dates)
