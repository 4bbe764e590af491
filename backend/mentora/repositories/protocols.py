# backend/mentora/repositories/protocols.py
"""
Storage interfaces the booking engine consumes.

The engine never talks to a database itself; an embedding application
supplies objects satisfying these protocols. Implementations signal data
access failures with ``RepositoryException``.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from ..schemas.booking import BookingDraft, BookingRecord, MentorSession


class BookingRepository(Protocol):
    """Interface for booking storage."""

    def get_by_id(self, booking_id: str) -> Optional[BookingRecord]:
        """Single booking, None when it does not exist."""
        ...

    def get_by_mentor(
        self,
        mentor_id: str,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
    ) -> List[BookingRecord]:
        """The mentor's bookings, optionally limited to a time range."""
        ...

    def get_by_user(self, user_id: str) -> List[BookingRecord]:
        """Every booking the user made."""
        ...

    def has_active_booking(self, user_id: str, session_id: str) -> bool:
        """Whether the user holds a pending or confirmed booking for the session."""
        ...

    def create_confirmed(self, draft: BookingDraft) -> BookingRecord:
        """
        Persist ``draft`` as a CONFIRMED booking.

        Must check for overlapping confirmed bookings of the same mentor and
        insert in one atomic step (exclusion constraint, serializable
        transaction or per-mentor lock).

        Raises:
            BookingConflictException: a confirmed booking already overlaps the draft
        """
        ...


class SessionRepository(Protocol):
    """Interface for session lookups."""

    def get_by_id(self, session_id: str) -> Optional[MentorSession]:
        ...


class UserRepository(Protocol):
    """Interface for user lookups."""

    def exists(self, user_id: str) -> bool:
        ...
