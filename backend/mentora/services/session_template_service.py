# backend/mentora/services/session_template_service.py
"""
Session Template Service for the Mentora booking engine.

Turns a mentor's session template into dated occurrences: resolves the
duration and price the template permits, expands the recurrence rule and
flags every occurrence that would collide with a confirmed booking.
"""

from datetime import datetime, timedelta
from decimal import Decimal
import logging
from typing import Iterable, List, Optional

from ..core.clock import Clock
from ..core.config import Settings
from ..core.exceptions import ForbiddenException, ValidationException
from ..schemas.booking import BookingRecord, TimeInterval
from ..schemas.recurrence import RecurrenceSpec
from ..schemas.session_template import SessionOccurrence, SessionTemplate
from ..utils.money import quantize_money
from ..utils.time_utils import localize, to_local
from .base import BaseService
from .conflict_checker import ConflictChecker
from .recurrence_service import RecurrenceService

logger = logging.getLogger(__name__)


class SessionTemplateService(BaseService):
    """Plan sessions from templates; raises on template misuse."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        recurrence_service: Optional[RecurrenceService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(settings, clock)
        self.recurrence_service = recurrence_service or RecurrenceService(self.settings, self.clock)
        self.conflict_checker = conflict_checker or ConflictChecker(self.settings, self.clock)

    def resolve_duration(
        self, template: SessionTemplate, duration_minutes: Optional[int] = None
    ) -> int:
        """
        Duration a session from ``template`` will have.

        A requested duration is ignored when the template does not allow
        custom durations.

        Raises:
            ValidationException: custom duration outside the template's bounds
        """
        if duration_minutes is None or not template.allow_custom_duration:
            return template.default_duration_minutes

        if not (
            template.min_duration_minutes <= duration_minutes <= template.max_duration_minutes
        ):
            raise ValidationException(
                f"Duration must be between {template.min_duration_minutes} and "
                f"{template.max_duration_minutes} minutes.",
                code="INVALID_DURATION",
                details={"template_id": template.id, "duration_minutes": duration_minutes},
            )
        return duration_minutes

    def resolve_price(self, template: SessionTemplate, price: Optional[Decimal] = None) -> Decimal:
        """Requested price when the template allows custom prices, else the base price."""
        if price is None or not template.allow_custom_price:
            return template.base_price
        if price <= 0:
            raise ValidationException(
                "Price must be greater than 0",
                code="INVALID_PRICE",
                details={"template_id": template.id},
            )
        return quantize_money(price)

    def resolve_recurrence(
        self, template: SessionTemplate, recurrence: Optional[RecurrenceSpec] = None
    ) -> RecurrenceSpec:
        """
        Rule the planned sessions follow; the template default when none is given.

        Raises:
            ValidationException: a recurring rule on a template that forbids recurrence
        """
        if recurrence is None:
            return template.default_recurrence or RecurrenceSpec()

        if recurrence.is_recurring and not template.allow_recurring:
            raise ValidationException(
                "This template does not allow recurring sessions.",
                code="RECURRENCE_NOT_ALLOWED",
                details={"template_id": template.id},
            )
        return recurrence

    @BaseService.measure_operation("plan_occurrences")
    def plan_occurrences(
        self,
        template: SessionTemplate,
        mentor_id: str,
        start: datetime,
        *,
        duration_minutes: Optional[int] = None,
        price: Optional[Decimal] = None,
        recurrence: Optional[RecurrenceSpec] = None,
        existing_bookings: Iterable[BookingRecord] = (),
    ) -> List[SessionOccurrence]:
        """
        Expand a template into dated occurrences.

        Every occurrence starts at ``start``'s local time of day (business
        timezone) on its generated date.

        Args:
            template: Template being used
            mentor_id: The mentor planning the sessions
            start: First session start
            duration_minutes: Requested custom duration
            price: Requested custom price per session
            recurrence: Requested rule, template default when omitted
            existing_bookings: The mentor's bookings, for conflict flags

        Returns:
            Occurrences in date order, each priced and listing conflicting
            booking ids

        Raises:
            ForbiddenException: template owned by another mentor
            ValidationException: duration, price or recurrence not permitted by the template
        """
        if template.mentor_id != mentor_id:
            raise ForbiddenException(
                "You can only use your own templates.",
                code="TEMPLATE_FORBIDDEN",
                details={"template_id": template.id},
            )

        duration = self.resolve_duration(template, duration_minutes)
        session_price = self.resolve_price(template, price)
        spec = self.resolve_recurrence(template, recurrence)
        bookings = list(existing_bookings)

        tz_name = self.settings.business_timezone
        local_start = to_local(start, tz_name)
        occurrences: List[SessionOccurrence] = []

        for day in self.recurrence_service.generate(local_start.date(), spec):
            occurrence_start = localize(day, local_start.time().replace(tzinfo=None), tz_name)
            interval = TimeInterval(
                start=occurrence_start, end=occurrence_start + timedelta(minutes=duration)
            )
            conflicts = self.conflict_checker.find_overlapping(
                mentor_id, interval.start, interval.end, bookings
            )
            occurrences.append(
                SessionOccurrence(
                    interval=interval,
                    price=session_price,
                    conflicts=[booking.id for booking in conflicts],
                )
            )

        self.log_operation(
            "plan_occurrences",
            template_id=template.id,
            occurrences=len(occurrences),
            conflicting=sum(1 for occurrence in occurrences if not occurrence.is_free),
        )
        return occurrences
