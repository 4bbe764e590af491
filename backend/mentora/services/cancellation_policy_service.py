# backend/mentora/services/cancellation_policy_service.py
"""
Cancellation Policy Service for the Mentora booking engine.

Evaluates what a party gets back when cancelling a booking:
- Selecting the applicable policy from a static catalog
- Tiered refund by hours remaining before the session
- Time-based penalty plus a surcharge for frequent cancellers
- Flat-floor processing fee
- Special-circumstance override to a full refund

Also gates booking modifications (ownership, status, cutoff, notes length)
and prices the late-modification fee.
"""

from datetime import datetime, timedelta
from decimal import Decimal
import logging
from typing import Iterable, List, Optional, Tuple

from ..core.enums import BookingStatus, OutcomeFailure, PenaltyType
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.booking import BookingRecord, BookingUpdate
from ..schemas.cancellation import (
    CancellationPenalty,
    CancellationPolicy,
    ModificationResult,
    RefundCalculation,
    RefundTier,
    SettlementResult,
)
from ..utils.money import percent_of, quantize_money, to_decimal
from .base import BaseService

logger = logging.getLogger(__name__)

STANDARD_POLICY_NAME = "Standard Policy"

SPECIAL_CIRCUMSTANCE_KEYWORDS: Tuple[str, ...] = (
    "medical emergency",
    "family emergency",
    "death",
    "illness",
    "accident",
    "hospital",
    "doctor",
    "emergency",
    "urgent",
    "unforeseen",
    "unexpected",
    "force majeure",
    "act of god",
    "natural disaster",
    "pandemic",
)

SPECIAL_CIRCUMSTANCES_REASON = "Special circumstances detected - may be eligible for full refund"

LATE_CANCELLATION_HOURS = 24
SHORT_NOTICE_HOURS = 72
LATE_CANCELLATION_PERCENT = Decimal("25")
SHORT_NOTICE_PERCENT = Decimal("10")
FREQUENT_CANCELLATION_SURCHARGE = Decimal("10")
MODIFICATION_FEE_WINDOW_HOURS = 24

_FINAL_STATUSES = {BookingStatus.CANCELLED, BookingStatus.COMPLETED}


def _tier(hours: float, percent: int, description: str) -> RefundTier:
    return RefundTier(
        hours_before_session=hours, refund_percent=Decimal(percent), description=description
    )


def build_policy_catalog() -> List[CancellationPolicy]:
    """The three published policies, built fresh for every query."""
    return [
        CancellationPolicy(
            id=1,
            name=STANDARD_POLICY_NAME,
            description="Standard cancellation policy with tiered refunds",
            minimum_refund_percent=Decimal(25),
            processing_fee_percent=Decimal(5),
            tiers=(
                _tier(168, 100, "7+ days before session"),
                _tier(72, 75, "3-7 days before session"),
                _tier(24, 50, "1-3 days before session"),
                _tier(2, 25, "2-24 hours before session"),
            ),
        ),
        CancellationPolicy(
            id=2,
            name="Flexible Policy",
            description="More lenient cancellation terms",
            minimum_refund_percent=Decimal(50),
            processing_fee_percent=Decimal(3),
            tiers=(
                _tier(96, 100, "4+ days before session"),
                _tier(48, 90, "2-4 days before session"),
                _tier(24, 75, "1-2 days before session"),
                _tier(4, 50, "4-24 hours before session"),
            ),
        ),
        CancellationPolicy(
            id=3,
            name="Strict Policy",
            description="Strict cancellation terms for premium sessions",
            minimum_refund_percent=Decimal(10),
            processing_fee_percent=Decimal(10),
            tiers=(
                _tier(168, 75, "7+ days before session"),
                _tier(96, 50, "4-7 days before session"),
                _tier(48, 25, "2-4 days before session"),
                _tier(24, 10, "1-2 days before session"),
            ),
        ),
    ]


def has_special_circumstances(reason: Optional[str]) -> bool:
    """
    Keyword heuristic for emergencies that warrant a full refund.

    Case-insensitive substring match; the claim itself is not verified.
    """
    if not reason or not reason.strip():
        return False
    lowered = reason.lower()
    return any(keyword in lowered for keyword in SPECIAL_CIRCUMSTANCE_KEYWORDS)


class CancellationPolicyService(BaseService):
    """
    Service computing cancellation settlements and modification eligibility.

    Every public method reads the clock at most once; pass ``now`` to pin the
    evaluation to an instant already sampled by the caller.
    """

    def get_available_policies(self) -> List[CancellationPolicy]:
        return build_policy_catalog()

    def get_default_policy(self) -> CancellationPolicy:
        policies = self.get_available_policies()
        return next(
            (policy for policy in policies if policy.name == STANDARD_POLICY_NAME), policies[0]
        )

    def get_policy_for_booking(self, booking: BookingRecord) -> CancellationPolicy:
        """
        Policy governing ``booking``.

        Every booking currently falls under the default policy. Selection by
        session type or mentor preference would be added here.
        """
        return self.get_default_policy()

    def calculate_refund(
        self,
        booking: BookingRecord,
        policy: CancellationPolicy,
        *,
        now: Optional[datetime] = None,
    ) -> RefundCalculation:
        """
        Apply the first tier whose threshold the remaining time meets.

        Tiers are scanned from the longest notice down. When even the shortest
        tier is missed the policy's minimum refund applies.
        """
        hours_until = booking.hours_until_start(self.now(now))

        applied = next(
            (tier for tier in policy.tiers if hours_until >= tier.hours_before_session), None
        )
        if applied is None:
            applied = RefundTier(
                hours_before_session=0,
                refund_percent=policy.minimum_refund_percent,
                description="Minimum refund",
            )

        return RefundCalculation(
            original_amount=booking.amount,
            currency=booking.currency,
            refund_percent=applied.refund_percent,
            refund_amount=percent_of(booking.amount, applied.refund_percent),
            applied_tier=applied,
        )

    def calculate_penalty(
        self,
        booking: BookingRecord,
        policy: CancellationPolicy,
        recent_cancellation_count: int = 0,
        *,
        now: Optional[datetime] = None,
    ) -> CancellationPenalty:
        """
        Time-based penalty, raised for users who cancel often.

        Args:
            booking: Booking being cancelled
            policy: Applicable policy (penalties are the same under every policy)
            recent_cancellation_count: The user's cancellations inside the lookback window
            now: Already-sampled current time

        Returns:
            CancellationPenalty with the percent and amount charged
        """
        hours_until = booking.hours_until_start(self.now(now))

        if hours_until < LATE_CANCELLATION_HOURS:
            penalty_type = PenaltyType.LATE_CANCELLATION
            percent = LATE_CANCELLATION_PERCENT
            description = "Late cancellation penalty (within 24 hours of session)"
        elif hours_until < SHORT_NOTICE_HOURS:
            penalty_type = PenaltyType.SHORT_NOTICE
            percent = SHORT_NOTICE_PERCENT
            description = "Short notice cancellation penalty (within 72 hours of session)"
        else:
            penalty_type = PenaltyType.NONE
            percent = Decimal(0)
            description = "No penalty applicable"

        if recent_cancellation_count >= self.settings.frequent_cancellation_threshold:
            penalty_type = PenaltyType.FREQUENT_CANCELLATION
            percent += FREQUENT_CANCELLATION_SURCHARGE
            description += " + Frequent cancellation penalty"

        return CancellationPenalty(
            type=penalty_type,
            percent=percent,
            amount=percent_of(booking.amount, percent),
            description=description,
        )

    def processing_fee(self, amount: Decimal) -> Decimal:
        """Greater of the flat floor and the percentage of ``amount``."""
        percentage_fee = percent_of(amount, self.settings.processing_fee_percent)
        return max(quantize_money(self.settings.processing_fee_floor), percentage_fee)

    def cancellation_block(
        self, booking: BookingRecord, user_id: str, *, now: Optional[datetime] = None
    ) -> Optional[Tuple[OutcomeFailure, str]]:
        """First reason ``user_id`` may not cancel ``booking``, or None."""
        now = self.now(now)

        if not booking.involves(user_id):
            return OutcomeFailure.FORBIDDEN, "You are not authorized to cancel this booking"

        if booking.status in _FINAL_STATUSES:
            return OutcomeFailure.NOT_ELIGIBLE, "Cannot cancel cancelled or completed bookings"

        cutoff = self.settings.cancellation_cutoff_minutes
        if booking.start <= now + timedelta(minutes=cutoff):
            return (
                OutcomeFailure.NOT_ELIGIBLE,
                f"Cannot cancel bookings less than {cutoff} minutes before session time",
            )

        window = self.settings.unpaid_cancellation_window_hours
        if not booking.is_paid and booking.created_at <= now - timedelta(hours=window):
            return (
                OutcomeFailure.NOT_ELIGIBLE,
                f"Unpaid bookings can only be cancelled within {window} hours of booking",
            )

        return None

    def can_cancel(
        self, booking: BookingRecord, user_id: str, *, now: Optional[datetime] = None
    ) -> bool:
        return self.cancellation_block(booking, user_id, now=now) is None

    def has_special_circumstances(self, reason: Optional[str]) -> bool:
        return has_special_circumstances(reason)

    @BaseService.measure_operation("evaluate_cancellation")
    def evaluate(
        self,
        booking_id: str,
        user_id: str,
        reason: Optional[str],
        *,
        booking: Optional[BookingRecord],
        recent_cancellation_count: int = 0,
        now: Optional[datetime] = None,
    ) -> SettlementResult:
        """
        Compute the settlement for cancelling a booking.

        ``net = refund - penalty - fee`` and may be negative, meaning the
        cancellation costs the canceller money. A reason naming a special
        circumstance replaces the net with the full booking amount.

        Args:
            booking_id: Booking the caller asked to cancel
            user_id: The caller
            reason: Free-text cancellation reason
            booking: The booking as loaded by the caller, None when not found
            recent_cancellation_count: The user's cancellations in the lookback window
            now: Already-sampled current time

        Returns:
            SettlementResult, refused with a failure kind when cancellation is
            not possible
        """
        now = self.now(now)

        if booking is None or booking.id != booking_id:
            return self._refuse(booking_id, OutcomeFailure.NOT_FOUND, "Booking not found")

        block = self.cancellation_block(booking, user_id, now=now)
        if block is not None:
            failure, message = block
            return self._refuse(booking_id, failure, message)

        policy = self.get_policy_for_booking(booking)
        refund = self.calculate_refund(booking, policy, now=now)
        penalty = self.calculate_penalty(booking, policy, recent_cancellation_count, now=now)
        fee = self.processing_fee(booking.amount)
        net = refund.refund_amount - penalty.amount - fee

        special = has_special_circumstances(reason)
        if special:
            net = to_decimal(booking.amount)

        result = SettlementResult(
            is_allowed=True,
            reason=SPECIAL_CIRCUMSTANCES_REASON if special else None,
            policy=policy,
            refund_calculation=refund,
            penalty=penalty,
            processing_fee=fee,
            estimated_net_refund=net,
            special_circumstances=special,
        )

        prometheus_metrics.record_cancellation_evaluation(
            "special_circumstances" if special else "allowed"
        )
        self.logger.info(
            f"Cancellation of booking {booking_id} evaluated",
            extra={"booking_id": booking_id, **result.summary()},
        )
        return result

    @BaseService.measure_operation("validate_modification")
    def validate_modification(
        self,
        booking_id: str,
        user_id: str,
        update: BookingUpdate,
        *,
        booking: Optional[BookingRecord],
        now: Optional[datetime] = None,
    ) -> ModificationResult:
        """
        Check whether ``user_id`` may apply ``update`` and price it.

        Modifications use the same ownership and status gates as cancellation
        but a longer cutoff. Inside the fee window a percentage fee applies.
        """
        now = self.now(now)

        if booking is None or booking.id != booking_id:
            return ModificationResult.refused(OutcomeFailure.NOT_FOUND, "Booking not found")

        if not booking.involves(user_id):
            return ModificationResult.refused(
                OutcomeFailure.FORBIDDEN, "You are not authorized to modify this booking"
            )

        if booking.status in _FINAL_STATUSES:
            return ModificationResult.refused(
                OutcomeFailure.NOT_ELIGIBLE, "Cannot modify cancelled or completed bookings"
            )

        cutoff = self.settings.modification_cutoff_hours
        if booking.start <= now + timedelta(hours=cutoff):
            return ModificationResult.refused(
                OutcomeFailure.NOT_ELIGIBLE,
                f"Cannot modify bookings less than {cutoff} hours before session time",
            )

        max_notes = self.settings.max_notes_length
        if update.notes is not None and len(update.notes) > max_notes:
            return ModificationResult.refused(
                OutcomeFailure.NOT_ELIGIBLE, f"Notes cannot exceed {max_notes} characters"
            )

        modification_fee = None
        if booking.hours_until_start(now) < MODIFICATION_FEE_WINDOW_HOURS:
            modification_fee = percent_of(booking.amount, self.settings.modification_fee_percent)

        return ModificationResult(is_allowed=True, modification_fee=modification_fee)

    def count_recent_cancellations(
        self,
        user_bookings: Iterable[BookingRecord],
        user_id: str,
        *,
        now: Optional[datetime] = None,
    ) -> int:
        """Cancelled bookings of ``user_id`` with ``cancelled_at`` inside the lookback window."""
        since = self.now(now) - timedelta(days=self.settings.cancellation_lookback_days)
        return sum(
            1
            for booking in user_bookings
            if booking.user_id == user_id
            and booking.status == BookingStatus.CANCELLED
            and booking.cancelled_at is not None
            and booking.cancelled_at >= since
        )

    def _refuse(
        self, booking_id: str, failure: OutcomeFailure, reason: str
    ) -> SettlementResult:
        prometheus_metrics.record_cancellation_evaluation(failure.value.lower())
        self.logger.info(f"Cancellation of booking {booking_id} refused: {reason}")
        return SettlementResult.refused(failure, reason)
