# backend/mentora/services/slot_suggestion_service.py
"""
Slot Suggestion Service for the Mentora booking engine.

Scans the business window of a preferred day in fixed steps and proposes
open slots of the requested length, best first. This is a bounded greedy
scan: the first ``count`` feasible candidates win, they are not searched
for an optimum.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Iterable, List, Optional

from ..core.clock import Clock
from ..core.config import Settings
from ..core.exceptions import ValidationException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.booking import BookingRecord, TimeInterval
from ..schemas.scheduling import SlotSuggestion
from ..utils.business_days import next_business_day
from ..utils.time_utils import ensure_utc, hours_between, localize, ranges_overlap, to_local
from .base import BaseService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

FALLBACK_SCORE = 0.5
FALLBACK_REASON = "Next available business day"
AVAILABLE_REASON = "Available time slot"

MIN_SCORE = 0.1
MAX_SCORE = 1.0
MORNING_HOURS = range(9, 12)


class SlotSuggestionService(BaseService):
    """Rank open slots on a mentor's preferred day."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(settings, clock)
        self.conflict_checker = conflict_checker or ConflictChecker(self.settings, self.clock)

    @BaseService.measure_operation("suggest_slots")
    def suggest(
        self,
        mentor_id: str,
        preferred_time: datetime,
        duration_minutes: int,
        count: int,
        existing_bookings: Iterable[BookingRecord],
        *,
        now: Optional[datetime] = None,
    ) -> List[SlotSuggestion]:
        """
        Suggest up to ``count`` slots on the day of ``preferred_time``.

        Args:
            mentor_id: The mentor being booked
            preferred_time: The time the user asked for; its business-timezone
                date selects the day to scan
            duration_minutes: Length of each suggested slot
            count: Number of suggestions wanted, clamped to ``[1, max_suggestions]``
            existing_bookings: Snapshot of the mentor's bookings
            now: Already-sampled current time

        Returns:
            Suggestions sorted by descending score. When the day has no room a
            single slot at the opening hour of the next business day is returned.

        Raises:
            ValidationException: duration outside the allowed booking length
        """
        self._check_duration(duration_minutes)
        now = self.now(now)
        preferred_time = ensure_utc(preferred_time)
        count = max(1, min(count, self.settings.max_suggestions))

        tz_name = self.settings.business_timezone
        day = to_local(preferred_time, tz_name).date()
        window_start = localize(day, time(self.settings.business_day_start_hour), tz_name)
        window_end = self._window_end(day, tz_name)
        duration = timedelta(minutes=duration_minutes)
        step = timedelta(minutes=self.settings.suggestion_step_minutes)
        earliest = now + timedelta(minutes=self.settings.min_lead_time_minutes)

        day_bookings = self.conflict_checker.confirmed_bookings_for_day(
            mentor_id, day, existing_bookings
        )

        suggestions: List[SlotSuggestion] = []
        candidate = window_start
        step_index = 0

        while candidate + duration <= window_end and len(suggestions) < count:
            candidate_end = candidate + duration
            blocked = any(
                ranges_overlap(candidate, candidate_end, booking.start, booking.end)
                for booking in day_bookings
            )
            if not blocked and candidate > earliest:
                suggestions.append(
                    SlotSuggestion(
                        interval=TimeInterval(start=candidate, end=candidate_end),
                        score=self.score(candidate, preferred_time, step_index),
                        reason=AVAILABLE_REASON,
                    )
                )
            candidate += step
            step_index += 1

        if not suggestions:
            fallback_day = next_business_day(day)
            fallback_start = localize(
                fallback_day, time(self.settings.business_day_start_hour), tz_name
            )
            self.logger.info(
                f"No open slots for {mentor_id} on {day.isoformat()}, "
                f"suggesting {fallback_day.isoformat()}"
            )
            prometheus_metrics.record_suggestion_fallback()
            suggestions.append(
                SlotSuggestion(
                    interval=TimeInterval.from_duration(fallback_start, duration_minutes),
                    score=FALLBACK_SCORE,
                    reason=FALLBACK_REASON,
                )
            )

        # sorted() is stable, so equal scores keep chronological order
        ranked = sorted(suggestions, key=lambda suggestion: suggestion.score, reverse=True)
        return ranked[:count]

    def score(self, candidate: datetime, preferred_time: datetime, step_index: int) -> float:
        """
        Score a candidate start in ``[0.1, 1.0]``.

        Closer to the preferred time, earlier in the scan and in the morning
        (local 9-11 o'clock) all score higher.
        """
        distance = abs(hours_between(preferred_time, candidate))
        value = 1.0 - min(0.5, 0.1 * distance) - 0.05 * step_index

        if to_local(candidate, self.settings.business_timezone).hour in MORNING_HOURS:
            value += 0.1

        return round(min(MAX_SCORE, max(MIN_SCORE, value)), 4)

    def _check_duration(self, duration_minutes: int) -> None:
        low = self.settings.min_booking_duration_minutes
        high = self.settings.max_booking_duration_hours * 60
        if not low <= duration_minutes <= high:
            raise ValidationException(
                f"Duration must be between {low} and {high} minutes",
                code="INVALID_DURATION",
                details={"duration_minutes": duration_minutes},
            )

    def _window_end(self, day: date, tz_name: str) -> datetime:
        end_hour = self.settings.business_day_end_hour
        if end_hour == 24:
            return localize(day + timedelta(days=1), time(0), tz_name)
        return localize(day, time(end_hour), tz_name)
