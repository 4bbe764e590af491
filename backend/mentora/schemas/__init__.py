"""Value objects exchanged between the engine and its collaborators."""

from .booking import (
    BookingDraft,
    BookingRecord,
    BookingUpdate,
    CreateBookingRequest,
    MentorSession,
    TimeInterval,
)
from .cancellation import (
    CancellationPenalty,
    CancellationPolicy,
    ModificationResult,
    RefundCalculation,
    RefundTier,
    SettlementResult,
)
from .recurrence import RecurrenceSpec
from .scheduling import (
    AvailabilityReport,
    BookingCreationResult,
    ConflictReport,
    DailyLoad,
    SlotSuggestion,
    ValidationResult,
)
from .session_template import SessionOccurrence, SessionTemplate

__all__ = [
    "AvailabilityReport",
    "BookingCreationResult",
    "BookingDraft",
    "BookingRecord",
    "BookingUpdate",
    "CancellationPenalty",
    "CancellationPolicy",
    "ConflictReport",
    "CreateBookingRequest",
    "DailyLoad",
    "MentorSession",
    "ModificationResult",
    "RecurrenceSpec",
    "RefundCalculation",
    "RefundTier",
    "SessionOccurrence",
    "SessionTemplate",
    "SettlementResult",
    "SlotSuggestion",
    "TimeInterval",
    "ValidationResult",
]
