# backend/tests/unit/services/test_cancellation_policy_service.py
"""
Unit tests for CancellationPolicyService.

Refund tiers, penalties and fees are checked with exact Decimal amounts;
the gates are checked for their failure kind and message.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from mentora.core.enums import BookingStatus, OutcomeFailure, PenaltyType
from mentora.schemas.booking import BookingUpdate
from mentora.services.cancellation_policy_service import (
    SPECIAL_CIRCUMSTANCES_REASON,
    STANDARD_POLICY_NAME,
    CancellationPolicyService,
    build_policy_catalog,
    has_special_circumstances,
)
from tests.helpers.time_helpers import NOW

PLAIN_REASON = "My schedule changed this week"


@pytest.fixture
def service(settings, clock):
    return CancellationPolicyService(settings, clock)


@pytest.fixture
def booking_in(make_booking):
    """Booking starting ``hours`` from NOW."""

    def _make(hours: float, **kwargs):
        kwargs.setdefault("booking_id", "booking-1")
        return make_booking(NOW + timedelta(hours=hours), **kwargs)

    return _make


class TestPolicyCatalog:
    def test_three_policies(self):
        names = [policy.name for policy in build_policy_catalog()]
        assert names == [STANDARD_POLICY_NAME, "Flexible Policy", "Strict Policy"]

    def test_tiers_sorted_longest_notice_first(self):
        for policy in build_policy_catalog():
            hours = [tier.hours_before_session for tier in policy.tiers]
            assert hours == sorted(hours, reverse=True)

    def test_default_is_standard(self, service, booking_in):
        assert service.get_default_policy().name == STANDARD_POLICY_NAME
        assert service.get_policy_for_booking(booking_in(200)).name == STANDARD_POLICY_NAME


class TestRefund:
    @pytest.mark.parametrize(
        "hours, percent",
        [(200, 100), (168, 100), (100, 75), (48, 50), (20, 25), (1, 25)],
    )
    def test_standard_tiers(self, service, booking_in, hours, percent):
        policy = service.get_default_policy()
        refund = service.calculate_refund(booking_in(hours), policy)
        assert refund.refund_percent == Decimal(percent)

    def test_minimum_refund_below_shortest_tier(self, service, booking_in):
        refund = service.calculate_refund(booking_in(1), service.get_default_policy())

        assert refund.applied_tier.description == "Minimum refund"
        assert refund.applied_tier.hours_before_session == 0
        assert refund.refund_amount == Decimal("25.00")

    def test_refund_never_increases_as_session_nears(self, service, booking_in):
        for policy in build_policy_catalog():
            percents = [
                service.calculate_refund(booking_in(hours), policy).refund_percent
                for hours in (300, 168, 120, 96, 72, 48, 24, 10, 4, 1)
            ]
            assert percents == sorted(percents, reverse=True)
            assert all(policy.minimum_refund_percent <= p <= 100 for p in percents)

    def test_amount_rounded_to_cents(self, service, booking_in):
        booking = booking_in(20, amount=Decimal("33.33"))
        refund = service.calculate_refund(booking, service.get_default_policy())
        assert refund.refund_amount == Decimal("8.33")


class TestPenalty:
    def test_late_cancellation(self, service, booking_in):
        penalty = service.calculate_penalty(
            booking_in(20, amount=Decimal("200")), service.get_default_policy()
        )
        assert penalty.type == PenaltyType.LATE_CANCELLATION
        assert penalty.amount == Decimal("50.00")

    def test_short_notice(self, service, booking_in):
        penalty = service.calculate_penalty(booking_in(48), service.get_default_policy())
        assert penalty.type == PenaltyType.SHORT_NOTICE
        assert penalty.percent == Decimal("10")

    def test_no_penalty_with_long_notice(self, service, booking_in):
        penalty = service.calculate_penalty(booking_in(100), service.get_default_policy())
        assert penalty.type == PenaltyType.NONE
        assert penalty.amount == Decimal("0.00")

    def test_frequent_canceller_surcharge(self, service, booking_in):
        penalty = service.calculate_penalty(
            booking_in(100), service.get_default_policy(), recent_cancellation_count=3
        )
        assert penalty.type == PenaltyType.FREQUENT_CANCELLATION
        assert penalty.percent == Decimal("10")
        assert penalty.description.endswith("+ Frequent cancellation penalty")

    def test_surcharge_stacks_on_late_penalty(self, service, booking_in):
        penalty = service.calculate_penalty(
            booking_in(20), service.get_default_policy(), recent_cancellation_count=5
        )
        assert penalty.percent == Decimal("35")
        assert penalty.amount == Decimal("35.00")


class TestProcessingFee:
    @pytest.mark.parametrize(
        "amount, fee",
        [(Decimal("100"), Decimal("5.00")), (Decimal("1000"), Decimal("30.00"))],
    )
    def test_floor_or_percentage(self, service, amount, fee):
        assert service.processing_fee(amount) == fee


class TestCancellationGates:
    def test_mentor_may_cancel(self, service, booking_in):
        assert service.can_cancel(booking_in(48), "mentor-1")

    def test_stranger_forbidden(self, service, booking_in):
        assert service.cancellation_block(booking_in(48), "user-9") == (
            OutcomeFailure.FORBIDDEN,
            "You are not authorized to cancel this booking",
        )

    @pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.COMPLETED])
    def test_final_status_not_eligible(self, service, booking_in, status):
        failure, message = service.cancellation_block(booking_in(48, status=status), "user-1")
        assert failure == OutcomeFailure.NOT_ELIGIBLE
        assert message == "Cannot cancel cancelled or completed bookings"

    def test_inside_cutoff(self, service, booking_in):
        failure, message = service.cancellation_block(booking_in(0.25), "user-1")
        assert failure == OutcomeFailure.NOT_ELIGIBLE
        assert "30 minutes" in message

    def test_stale_unpaid_booking(self, service, booking_in):
        booking = booking_in(48, is_paid=False, created_at=NOW - timedelta(hours=25))
        failure, message = service.cancellation_block(booking, "user-1")
        assert failure == OutcomeFailure.NOT_ELIGIBLE
        assert message == "Unpaid bookings can only be cancelled within 24 hours of booking"

    def test_fresh_unpaid_booking(self, service, booking_in):
        booking = booking_in(48, is_paid=False, created_at=NOW - timedelta(hours=2))
        assert service.can_cancel(booking, "user-1")


class TestEvaluate:
    def test_late_cancellation_costs_money(self, service, booking_in):
        booking = booking_in(20, amount=Decimal("200"))

        result = service.evaluate("booking-1", "user-1", PLAIN_REASON, booking=booking)

        assert result.is_allowed
        assert result.refund_calculation.refund_amount == Decimal("50.00")
        assert result.penalty.amount == Decimal("50.00")
        assert result.processing_fee == Decimal("6.00")
        assert result.estimated_net_refund == Decimal("-6.00")
        assert result.special_circumstances is False
        assert result.reason is None

    def test_special_circumstances_refund_everything(self, service, booking_in):
        booking = booking_in(20, amount=Decimal("200"))

        result = service.evaluate(
            "booking-1", "user-1", "Family Emergency out of town", booking=booking
        )

        assert result.special_circumstances
        assert result.estimated_net_refund == Decimal("200.00")
        assert result.reason == SPECIAL_CIRCUMSTANCES_REASON

    def test_missing_booking(self, service):
        result = service.evaluate("booking-1", "user-1", PLAIN_REASON, booking=None)
        assert not result.is_allowed
        assert result.failure == OutcomeFailure.NOT_FOUND
        assert result.reason == "Booking not found"

    def test_mismatched_booking_id(self, service, booking_in):
        result = service.evaluate("booking-2", "user-1", PLAIN_REASON, booking=booking_in(48))
        assert result.failure == OutcomeFailure.NOT_FOUND

    def test_forbidden(self, service, booking_in):
        result = service.evaluate("booking-1", "user-9", PLAIN_REASON, booking=booking_in(48))
        assert result.failure == OutcomeFailure.FORBIDDEN
        assert result.refund_calculation is None

    def test_not_eligible(self, service, booking_in):
        booking = booking_in(48, status=BookingStatus.CANCELLED)
        result = service.evaluate("booking-1", "user-1", PLAIN_REASON, booking=booking)
        assert result.failure == OutcomeFailure.NOT_ELIGIBLE

    def test_records_outcome_metric(self, service, booking_in):
        with patch(
            "mentora.services.cancellation_policy_service.prometheus_metrics"
        ) as mock_metrics:
            service.evaluate("booking-1", "user-9", PLAIN_REASON, booking=booking_in(48))
            service.evaluate("booking-1", "user-1", PLAIN_REASON, booking=booking_in(48))

        outcomes = [
            call.args[0] for call in mock_metrics.record_cancellation_evaluation.call_args_list
        ]
        assert outcomes == ["forbidden", "allowed"]


class TestSpecialCircumstances:
    @pytest.mark.parametrize(
        "reason, expected",
        [
            ("Taken to HOSPITAL overnight", True),
            ("an unexpected work trip", True),
            (PLAIN_REASON, False),
            ("   ", False),
            (None, False),
        ],
    )
    def test_keyword_match(self, reason, expected):
        assert has_special_circumstances(reason) is expected


class TestModification:
    def test_allowed_without_fee(self, service, booking_in):
        result = service.validate_modification(
            "booking-1", "user-1", BookingUpdate(notes="Bring slides"), booking=booking_in(48)
        )
        assert result.is_allowed
        assert not result.has_modification_fee

    def test_fee_inside_window(self, service, booking_in):
        result = service.validate_modification(
            "booking-1", "user-1", BookingUpdate(), booking=booking_in(10)
        )
        assert result.is_allowed
        assert result.modification_fee == Decimal("5.00")

    def test_missing_booking(self, service):
        result = service.validate_modification("booking-1", "user-1", BookingUpdate(), booking=None)
        assert result.failure == OutcomeFailure.NOT_FOUND

    def test_forbidden(self, service, booking_in):
        result = service.validate_modification(
            "booking-1", "user-9", BookingUpdate(), booking=booking_in(48)
        )
        assert result.failure == OutcomeFailure.FORBIDDEN
        assert result.reason == "You are not authorized to modify this booking"

    def test_completed_booking(self, service, booking_in):
        booking = booking_in(48, status=BookingStatus.COMPLETED)
        result = service.validate_modification(
            "booking-1", "user-1", BookingUpdate(), booking=booking
        )
        assert result.reason == "Cannot modify cancelled or completed bookings"

    def test_inside_cutoff(self, service, booking_in):
        result = service.validate_modification(
            "booking-1", "user-1", BookingUpdate(), booking=booking_in(1.5)
        )
        assert result.failure == OutcomeFailure.NOT_ELIGIBLE
        assert result.reason == "Cannot modify bookings less than 2 hours before session time"

    def test_notes_too_long(self, service, booking_in):
        result = service.validate_modification(
            "booking-1", "user-1", BookingUpdate(notes="x" * 501), booking=booking_in(48)
        )
        assert result.reason == "Notes cannot exceed 500 characters"


def test_count_recent_cancellations(service, make_booking):
    bookings = [
        make_booking(NOW, status=BookingStatus.CANCELLED, cancelled_at=NOW - timedelta(days=5)),
        make_booking(NOW, status=BookingStatus.CANCELLED, cancelled_at=NOW - timedelta(days=89)),
        make_booking(NOW, status=BookingStatus.CANCELLED, cancelled_at=NOW - timedelta(days=91)),
        make_booking(NOW, status=BookingStatus.CANCELLED, cancelled_at=None),
        make_booking(NOW, status=BookingStatus.CONFIRMED),
        make_booking(
            NOW,
            user_id="user-2",
            status=BookingStatus.CANCELLED,
            cancelled_at=NOW - timedelta(days=1),
        ),
    ]

    assert service.count_recent_cancellations(bookings, "user-1") == 2
