# backend/mentora/services/booking_service.py
"""
Booking Service for the Mentora booking engine.

Entry point for an embedding application. Loads the snapshots the pure
services need from the repositories, delegates the decision and hands back
result objects. Storage failures are reported inside those results; nothing
here raises to the caller.

Double booking is prevented by the repository: ``create_confirmed`` must
refuse an overlapping confirmed booking atomically, because two requests can
both pass validation against the same snapshot.
"""

from datetime import datetime
import logging
from typing import List, Optional

from ..core.clock import Clock
from ..core.config import Settings
from ..core.enums import OutcomeFailure
from ..core.exceptions import BookingConflictException, RepositoryException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.protocols import BookingRepository, SessionRepository, UserRepository
from ..schemas.booking import (
    BookingDraft,
    BookingRecord,
    BookingUpdate,
    CreateBookingRequest,
    TimeInterval,
)
from ..schemas.cancellation import ModificationResult, SettlementResult
from ..schemas.scheduling import (
    AvailabilityReport,
    BookingCreationResult,
    SlotSuggestion,
    ValidationResult,
)
from .availability_service import AvailabilityService
from .base import BaseService
from .booking_validation_service import BookingValidationService
from .cancellation_policy_service import CancellationPolicyService
from .conflict_checker import ConflictChecker
from .slot_suggestion_service import SlotSuggestionService

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_COUNT = 5


class BookingService(BaseService):
    """
    Orchestrates booking creation, cancellation and scheduling queries.

    All collaborating services share this service's settings and clock.
    """

    def __init__(
        self,
        booking_repository: BookingRepository,
        session_repository: SessionRepository,
        user_repository: UserRepository,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(settings, clock)
        self.booking_repository = booking_repository
        self.session_repository = session_repository
        self.user_repository = user_repository

        conflict_checker = ConflictChecker(self.settings, self.clock)
        self.availability_service = AvailabilityService(self.settings, self.clock)
        self.validation_service = BookingValidationService(
            self.settings,
            self.clock,
            conflict_checker=conflict_checker,
            availability_service=self.availability_service,
        )
        self.suggestion_service = SlotSuggestionService(
            self.settings, self.clock, conflict_checker=conflict_checker
        )
        self.cancellation_service = CancellationPolicyService(self.settings, self.clock)

    @BaseService.measure_operation("create_booking")
    def create_booking(self, user_id: str, request: CreateBookingRequest) -> BookingCreationResult:
        """
        Validate and store a booking.

        Args:
            user_id: The user booking the session
            request: Session, interval, amount and currency requested

        Returns:
            BookingCreationResult holding the created booking, or the
            validation errors that prevented it
        """
        now = self.now()

        try:
            user_exists = self.user_repository.exists(user_id)
            session = self.session_repository.get_by_id(request.session_id)
            existing: List[BookingRecord] = []
            has_active = False
            if user_exists and session is not None:
                existing = self.booking_repository.get_by_mentor(session.mentor_id)
                has_active = self.booking_repository.has_active_booking(user_id, session.id)
        except RepositoryException as exc:
            self.logger.error(f"Error loading booking context for {user_id}: {exc}", exc_info=True)
            return self._not_created(f"Error validating booking request: {exc}")

        validation = self.validation_service.validate_booking_request(
            user_id,
            request,
            user_exists=user_exists,
            session=session,
            existing_bookings=existing,
            has_active_booking=has_active,
            now=now,
        )
        if not validation.is_valid or session is None:
            return BookingCreationResult(validation=validation)

        draft = BookingDraft(
            mentor_id=session.mentor_id,
            user_id=user_id,
            session_id=session.id,
            interval=TimeInterval(start=request.start, end=request.end),
            amount=request.amount,
            currency=request.currency,
            notes=request.notes,
            created_at=now,
        )

        try:
            booking = self.booking_repository.create_confirmed(draft)
        except BookingConflictException as exc:
            self.logger.warning(
                f"Storage refused booking for {user_id} with mentor {session.mentor_id}: "
                f"{exc.message}",
                extra={"code": exc.code, "conflict_details": exc.details},
            )
            prometheus_metrics.record_validation_rejection("storage_conflict")
            return self._not_created(exc.message)
        except RepositoryException as exc:
            self.logger.error(f"Error creating booking for {user_id}: {exc}", exc_info=True)
            return self._not_created(f"Error creating booking: {exc}")

        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            mentor_id=booking.mentor_id,
            user_id=user_id,
        )
        return BookingCreationResult(validation=validation, booking=booking)

    @BaseService.measure_operation("evaluate_cancellation")
    def evaluate_cancellation(
        self, booking_id: str, user_id: str, reason: Optional[str]
    ) -> SettlementResult:
        """Settlement the caller would receive for cancelling ``booking_id``."""
        now = self.now()

        try:
            booking = self.booking_repository.get_by_id(booking_id)
            recent = 0
            if booking is not None:
                recent = self.cancellation_service.count_recent_cancellations(
                    self.booking_repository.get_by_user(booking.user_id), booking.user_id, now=now
                )
        except RepositoryException as exc:
            self.logger.error(f"Error loading booking {booking_id}: {exc}", exc_info=True)
            return SettlementResult.refused(
                OutcomeFailure.UNAVAILABLE, f"Error evaluating cancellation policy: {exc}"
            )

        return self.cancellation_service.evaluate(
            booking_id,
            user_id,
            reason,
            booking=booking,
            recent_cancellation_count=recent,
            now=now,
        )

    def validate_cancellation_request(
        self, booking_id: str, user_id: str, reason: Optional[str]
    ) -> ValidationResult:
        try:
            booking = self.booking_repository.get_by_id(booking_id)
        except RepositoryException as exc:
            self.logger.error(f"Error loading booking {booking_id}: {exc}", exc_info=True)
            return ValidationResult(errors=[f"Error validating cancellation: {exc}"])

        return self.validation_service.validate_cancellation_request(booking, user_id, reason)

    @BaseService.measure_operation("validate_modification")
    def validate_modification(
        self, booking_id: str, user_id: str, update: BookingUpdate
    ) -> ModificationResult:
        try:
            booking = self.booking_repository.get_by_id(booking_id)
        except RepositoryException as exc:
            self.logger.error(f"Error loading booking {booking_id}: {exc}", exc_info=True)
            return ModificationResult.refused(
                OutcomeFailure.UNAVAILABLE, f"Error validating modification: {exc}"
            )

        return self.cancellation_service.validate_modification(
            booking_id, user_id, update, booking=booking
        )

    def suggest_slots(
        self,
        mentor_id: str,
        preferred_time: datetime,
        duration_minutes: int,
        count: int = DEFAULT_SUGGESTION_COUNT,
    ) -> List[SlotSuggestion]:
        """
        Open slots on the preferred day; empty when the mentor's bookings
        cannot be loaded.

        Raises:
            ValidationException: duration outside the allowed booking length
        """
        try:
            existing = self.booking_repository.get_by_mentor(mentor_id)
        except RepositoryException as exc:
            self.logger.error(f"Error loading bookings for {mentor_id}: {exc}", exc_info=True)
            return []

        return self.suggestion_service.suggest(
            mentor_id, preferred_time, duration_minutes, count, existing
        )

    def mentor_availability(
        self, mentor_id: str, range_start: datetime, range_end: datetime
    ) -> AvailabilityReport:
        try:
            existing = self.booking_repository.get_by_mentor(mentor_id, range_start, range_end)
        except RepositoryException as exc:
            self.logger.error(f"Error loading bookings for {mentor_id}: {exc}", exc_info=True)
            return AvailabilityReport(
                is_available=False, reason=f"Error checking mentor availability: {exc}"
            )

        return self.availability_service.availability(mentor_id, range_start, range_end, existing)

    @staticmethod
    def _not_created(message: str) -> BookingCreationResult:
        return BookingCreationResult(validation=ValidationResult(errors=[message]))
