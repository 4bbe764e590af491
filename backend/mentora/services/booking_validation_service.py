# backend/mentora/services/booking_validation_service.py
"""
Booking Validation Service for the Mentora booking engine.

Applies the business rules a proposed booking must satisfy:
- start before end, minimum lead time
- no overlap with confirmed bookings
- business hours (weekdays, configured hour window) and same-day sessions
- duration bounds, amount, currency and duplicate-booking checks
- mentor daily capacity

Every applicable rule is evaluated and all messages are returned together;
nothing short-circuits except checks that make the rest meaningless.
"""

from datetime import datetime, time, timedelta
import logging
from typing import Iterable, List, Optional, Tuple

from ..core.clock import Clock
from ..core.config import Settings
from ..core.enums import BookingStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.booking import BookingRecord, CreateBookingRequest, MentorSession
from ..schemas.scheduling import ValidationResult
from ..utils.business_days import is_within_business_hours
from ..utils.time_utils import ensure_utc, localize, to_local
from .availability_service import AvailabilityService
from .base import BaseService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

_FINAL_STATUSES = {BookingStatus.CANCELLED, BookingStatus.COMPLETED}


def _hour_label(hour: int) -> str:
    suffix = "AM" if hour % 24 < 12 else "PM"
    display = hour % 12 or 12
    return f"{display} {suffix}"


class BookingValidationService(BaseService):
    """
    Service validating booking requests and time slots.

    Conflict and capacity checks are delegated to ``ConflictChecker`` and
    ``AvailabilityService``, which share this service's settings and clock.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        availability_service: Optional[AvailabilityService] = None,
    ):
        super().__init__(settings, clock)
        self.conflict_checker = conflict_checker or ConflictChecker(self.settings, self.clock)
        self.availability_service = availability_service or AvailabilityService(
            self.settings, self.clock
        )

    @property
    def business_hours_message(self) -> str:
        start = _hour_label(self.settings.business_day_start_hour)
        end = _hour_label(self.settings.business_day_end_hour)
        return f"Booking must be within business hours ({start} - {end}, Monday-Friday)"

    @BaseService.measure_operation("validate_time_slot")
    def validate(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        existing_bookings: Iterable[BookingRecord],
        exclude_booking_id: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """
        Validate a candidate interval against the time-slot rules.

        Args:
            mentor_id: The mentor being booked
            start: Proposed start
            end: Proposed end
            existing_bookings: Snapshot of the mentor's bookings
            exclude_booking_id: Booking to ignore when checking overlaps
            now: Already-sampled current time (clock read when omitted)

        Returns:
            ValidationResult with every violated rule
        """
        now = self.now(now)
        start = ensure_utc(start)
        end = ensure_utc(end)
        errors: List[str] = []

        if start >= end:
            self._reject(errors, "time_order", "Start time must be before end time")
            return ValidationResult(errors=errors)

        lead_time = timedelta(minutes=self.settings.min_lead_time_minutes)
        if start <= now + lead_time:
            self._reject(
                errors,
                "lead_time",
                f"Booking must be made at least {self.settings.min_lead_time_minutes} "
                "minutes in advance",
            )

        conflicts = self.conflict_checker.find_overlapping(
            mentor_id, start, end, existing_bookings, exclude_booking_id
        )
        if conflicts:
            conflict_ids = ", ".join(booking.id for booking in conflicts)
            self._reject(
                errors, "conflict", f"Time slot conflicts with existing bookings: {conflict_ids}"
            )

        tz_name = self.settings.business_timezone
        local_start = to_local(start, tz_name)
        local_end = to_local(end, tz_name)
        if not (self._in_business_hours(local_start) and self._in_business_hours(local_end)):
            self._reject(errors, "business_hours", self.business_hours_message)

        if local_start.date() != local_end.date():
            self._reject(errors, "same_day", "Booking must be within the same day")

        return ValidationResult(errors=errors)

    @BaseService.measure_operation("validate_booking_request")
    def validate_booking_request(
        self,
        user_id: str,
        request: CreateBookingRequest,
        *,
        user_exists: bool,
        session: Optional[MentorSession],
        existing_bookings: Iterable[BookingRecord],
        has_active_booking: bool = False,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """
        Full validation run before a booking is created.

        The caller resolves the external lookups (user, session, the mentor's
        bookings, the user's existing booking for the session) and passes the
        results in.

        Args:
            user_id: The booking user
            request: Requested session, interval, amount and currency
            user_exists: Whether the user lookup succeeded
            session: The requested session, or None when it does not exist
            existing_bookings: Snapshot of the session mentor's bookings
            has_active_booking: Whether the user already holds an active booking
                for this session
            now: Already-sampled current time

        Returns:
            ValidationResult with every violated rule
        """
        now = self.now(now)
        errors: List[str] = []

        if not user_exists:
            self._reject(errors, "user", "User not found")
            return ValidationResult(errors=errors)

        if session is None:
            self._reject(errors, "session", "Session not found")
            return ValidationResult(errors=errors)

        bookings = list(existing_bookings)
        start, end = request.start, request.end

        if start <= now:
            self._reject(errors, "lead_time", "Booking time must be in the future")

        ordered = end > start
        if not ordered:
            self._reject(errors, "time_order", "End time must be after start time")

        duration = end - start
        if ordered and duration < timedelta(minutes=self.settings.min_booking_duration_minutes):
            self._reject(
                errors,
                "duration",
                f"Minimum booking duration is {self.settings.min_booking_duration_minutes} minutes",
            )
        if duration > timedelta(hours=self.settings.max_booking_duration_hours):
            self._reject(
                errors,
                "duration",
                f"Maximum booking duration is {self.settings.max_booking_duration_hours} hours",
            )

        if has_active_booking:
            self._reject(
                errors, "duplicate", "You already have an active booking for this session"
            )

        # Slot rules assume an ordered interval
        if ordered:
            slot_result = self.validate(session.mentor_id, start, end, bookings, now=now)
            errors.extend(slot_result.errors)

        if request.amount <= 0:
            self._reject(errors, "amount", "Booking amount must be greater than 0")

        if not request.currency or not request.currency.strip():
            self._reject(errors, "currency", "Currency is required")

        if ordered:
            day_start, day_end = self._calendar_days(start, end)
            availability = self.availability_service.availability(
                session.mentor_id, day_start, day_end, bookings
            )
            if not availability.is_available:
                self._reject(
                    errors,
                    "availability",
                    "Mentor is not available during the requested time: "
                    f"{availability.reason}",
                )

        if errors:
            self.logger.info(
                f"Booking request by {user_id} for session {session.id} rejected "
                f"with {len(errors)} errors"
            )
        return ValidationResult(errors=errors)

    @BaseService.measure_operation("validate_cancellation_request")
    def validate_cancellation_request(
        self,
        booking: Optional[BookingRecord],
        user_id: str,
        reason: Optional[str],
        *,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """
        Check that a party may file a cancellation request with this reason.

        Stops at the first failing ownership or status check; the reason is
        only judged once the booking itself may be cancelled.
        """
        now = self.now(now)

        if booking is None:
            return ValidationResult(errors=["Booking not found"])
        if not booking.involves(user_id):
            return ValidationResult(errors=["You are not authorized to cancel this booking"])
        if booking.status in _FINAL_STATUSES:
            return ValidationResult(errors=["Cannot cancel cancelled or completed bookings"])

        cutoff_hours = self.settings.cancellation_request_cutoff_hours
        if booking.start <= now + timedelta(hours=cutoff_hours):
            return ValidationResult(
                errors=[
                    f"Cannot cancel bookings less than {cutoff_hours} hours before session time"
                ]
            )

        min_length = self.settings.min_cancellation_reason_length
        if not reason or len(reason.strip()) < min_length:
            return ValidationResult(
                errors=[f"Cancellation reason must be at least {min_length} characters"]
            )

        return ValidationResult()

    def _calendar_days(self, start: datetime, end: datetime) -> Tuple[datetime, datetime]:
        """Local-midnight bounds of the business-timezone days the interval touches."""
        tz_name = self.settings.business_timezone
        first_day = to_local(start, tz_name).date()
        last_day = to_local(end, tz_name).date()
        return (
            localize(first_day, time(0), tz_name),
            localize(last_day + timedelta(days=1), time(0), tz_name),
        )

    def _in_business_hours(self, local_dt: datetime) -> bool:
        return is_within_business_hours(
            local_dt,
            self.settings.business_day_start_hour,
            self.settings.business_day_end_hour,
        )

    @staticmethod
    def _reject(errors: List[str], rule: str, message: str) -> None:
        errors.append(message)
        prometheus_metrics.record_validation_rejection(rule)
