# backend/mentora/services/conflict_checker.py
"""
Conflict Checker Service for the Mentora booking engine.

Handles booking conflict detection:
- Checking if a candidate interval overlaps confirmed bookings
- Listing a mentor's confirmed bookings touching one calendar day

The caller supplies the booking snapshot; nothing here reads storage. Two
requests validated against the same stale snapshot can both pass, so the
storage layer must still refuse overlapping confirmed bookings on insert.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Iterable, List, Optional

from ..schemas.booking import BookingRecord, TimeInterval
from ..schemas.scheduling import ConflictReport
from ..utils.time_utils import localize, ranges_overlap
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    """
    Service for checking booking conflicts.

    Only CONFIRMED bookings block time; pending, cancelled and finished
    bookings are ignored.
    """

    @BaseService.measure_operation("detect_conflicts")
    def detect(
        self,
        mentor_id: str,
        candidate: TimeInterval,
        existing_bookings: Iterable[BookingRecord],
        exclude_booking_id: Optional[str] = None,
    ) -> ConflictReport:
        """
        Report the confirmed bookings that overlap ``candidate``.

        Args:
            mentor_id: The mentor whose calendar is checked
            candidate: Proposed interval
            existing_bookings: Snapshot of the mentor's bookings
            exclude_booking_id: Booking to ignore (the one being moved)

        Returns:
            ConflictReport listing every overlapping booking
        """
        conflicts = self.find_overlapping(
            mentor_id, candidate.start, candidate.end, existing_bookings, exclude_booking_id
        )
        return ConflictReport(conflicting=conflicts)

    def find_overlapping(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        existing_bookings: Iterable[BookingRecord],
        exclude_booking_id: Optional[str] = None,
    ) -> List[BookingRecord]:
        """Raw-range variant of ``detect`` for callers holding unvalidated times."""
        conflicts = [
            booking
            for booking in existing_bookings
            if booking.is_confirmed
            and booking.mentor_id == mentor_id
            and (exclude_booking_id is None or booking.id != exclude_booking_id)
            and ranges_overlap(start, end, booking.start, booking.end)
        ]

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} booking conflicts for {mentor_id} "
                f"between {start.isoformat()}-{end.isoformat()}"
            )

        return conflicts

    def has_conflicts(
        self,
        mentor_id: str,
        candidate: TimeInterval,
        existing_bookings: Iterable[BookingRecord],
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """Simplified boolean check for quick validation."""
        report = self.detect(mentor_id, candidate, existing_bookings, exclude_booking_id)
        return report.has_conflicts

    def confirmed_bookings_for_day(
        self, mentor_id: str, target_date: date, existing_bookings: Iterable[BookingRecord]
    ) -> List[BookingRecord]:
        """
        Confirmed bookings overlapping ``target_date`` in the business timezone.

        A booking carried over from the previous evening counts for the day it
        runs into.

        Returns:
            Bookings sorted by start time
        """
        tz_name = self.settings.business_timezone
        day_start = localize(target_date, time(0), tz_name)
        day_end = localize(target_date + timedelta(days=1), time(0), tz_name)
        return sorted(
            (
                booking
                for booking in existing_bookings
                if booking.is_confirmed
                and booking.mentor_id == mentor_id
                and ranges_overlap(day_start, day_end, booking.start, booking.end)
            ),
            key=lambda booking: booking.start,
        )
