# backend/mentora/services/recurrence_service.py
"""
Recurrence Service for the Mentora booking engine.

Expands a recurrence rule into the concrete calendar dates a session occurs
on, answers ad-hoc membership questions, and converts rules to and from the
camelCase JSON they are stored as.
"""

from datetime import date, timedelta
import logging
from typing import List, Optional

from pydantic import ValidationError

from ..core.enums import RecurrencePattern, Weekday
from ..core.exceptions import ValidationException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.recurrence import RecurrenceSpec
from ..utils.time_utils import add_months
from .base import BaseService

logger = logging.getLogger(__name__)

_WEEKLY_PATTERNS = {RecurrencePattern.WEEKLY, RecurrencePattern.BIWEEKLY}


class RecurrenceService(BaseService):
    """
    Service for expanding recurrence rules.

    Stepping is pattern-specific (days, weeks, fortnights, months); a stepped
    date is kept only when it passes the inclusion predicate. Expansion is
    bounded by ``end_date``, ``max_occurrences``, the calendar's last date and a
    hard iteration cap, so a rule the stepping can never satisfy still terminates.
    """

    @BaseService.measure_operation("generate_dates")
    def generate(self, start_date: date, spec: RecurrenceSpec) -> List[date]:
        """
        Expand ``spec`` into an ordered list of occurrence dates.

        Args:
            start_date: First candidate date (the template session's date)
            spec: Recurrence rule

        Returns:
            Dates in ascending order; ``[start_date]`` for a one-time session
        """
        if not spec.is_recurring:
            return [start_date]

        dates: List[date] = []
        current = start_date
        cap = self.settings.recurrence_iteration_cap

        for _ in range(cap):
            if spec.end_date is not None and current > spec.end_date:
                break
            if spec.max_occurrences is not None and len(dates) >= spec.max_occurrences:
                break

            if self._includes(current, spec, start_date):
                dates.append(current)

            try:
                current = self.next_occurrence(current, spec)
            except (OverflowError, ValueError):
                # Stepped past date.max
                self.logger.warning(
                    f"Recurrence expansion for {spec.pattern.value} left the calendar range "
                    f"after {current.isoformat()} with {len(dates)} dates"
                )
                break
        else:
            self.logger.warning(
                f"Recurrence expansion for {spec.pattern.value} stopped after {cap} steps "
                f"with {len(dates)} dates"
            )
            prometheus_metrics.record_recurrence_cap_hit(spec.pattern.value)

        return dates

    def next_occurrence(self, current: date, spec: RecurrenceSpec) -> date:
        """Advance one step of the rule's stepping function."""
        step = spec.step
        pattern = spec.pattern

        if pattern == RecurrencePattern.NONE:
            return current
        if pattern == RecurrencePattern.WEEKLY:
            return current + timedelta(days=7 * step)
        if pattern == RecurrencePattern.BIWEEKLY:
            return current + timedelta(days=14 * step)
        if pattern == RecurrencePattern.MONTHLY:
            return add_months(current, step)
        # DAILY, and CUSTOM until it carries its own stepping fields
        return current + timedelta(days=step)

    def is_date_in_recurrence(
        self, value: date, spec: RecurrenceSpec, start_date: Optional[date] = None
    ) -> bool:
        """
        Check whether ``value`` satisfies the rule's inclusion predicate.

        A one-time session never recurs. A monthly rule with no
        ``day_of_month`` falls back to ``start_date``'s day, or the 1st without one.
        """
        if not spec.is_recurring:
            return False
        if spec.end_date is not None and value > spec.end_date:
            return False
        return self._includes(value, spec, start_date)

    @staticmethod
    def _includes(value: date, spec: RecurrenceSpec, start_date: Optional[date]) -> bool:
        if value in spec.excluded_dates:
            return False

        if spec.pattern in _WEEKLY_PATTERNS:
            return not spec.days_of_week or Weekday.from_date(value) in spec.days_of_week

        if spec.pattern == RecurrencePattern.MONTHLY:
            day_of_month = spec.day_of_month
            if day_of_month is None:
                day_of_month = start_date.day if start_date is not None else 1
            return value.day == day_of_month

        return True

    @staticmethod
    def serialize(spec: RecurrenceSpec) -> str:
        return spec.model_dump_json(by_alias=True)

    @staticmethod
    def deserialize(payload: Optional[str]) -> RecurrenceSpec:
        """
        Parse a stored rule. Empty input yields a one-time rule.

        Raises:
            ValidationException: payload is not a valid recurrence rule
        """
        if not payload or not payload.strip():
            return RecurrenceSpec()
        try:
            return RecurrenceSpec.model_validate_json(payload)
        except ValidationError as exc:
            logger.warning(f"Rejected malformed recurrence payload: {exc.error_count()} errors")
            raise ValidationException(
                "Invalid recurrence definition",
                code="INVALID_RECURRENCE",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc
