# backend/mentora/services/availability_service.py
"""
Availability Service for the Mentora booking engine.

Aggregates a mentor's confirmed bookings over a date range into per-day load
and decides whether the mentor still has capacity. A day is full once it
holds the maximum number of bookings or the maximum number of booked hours.
"""

from datetime import date, datetime
import logging
from typing import Dict, Iterable, List

from ..schemas.booking import BookingRecord
from ..schemas.scheduling import AvailabilityReport, DailyLoad
from ..utils.time_utils import ensure_utc, to_local
from .base import BaseService

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    """Capacity checks over a mentor's confirmed bookings."""

    def bookings_in_range(
        self,
        mentor_id: str,
        range_start: datetime,
        range_end: datetime,
        existing_bookings: Iterable[BookingRecord],
    ) -> List[BookingRecord]:
        """Confirmed bookings lying entirely inside ``[range_start, range_end]``."""
        range_start = ensure_utc(range_start)
        range_end = ensure_utc(range_end)
        return [
            booking
            for booking in existing_bookings
            if booking.is_confirmed
            and booking.mentor_id == mentor_id
            and booking.start >= range_start
            and booking.end <= range_end
        ]

    def daily_load(self, bookings: Iterable[BookingRecord]) -> Dict[date, DailyLoad]:
        """
        Group bookings by the business-timezone date they start on.

        Returns:
            Mapping of day to booking count and summed hours, in date order
        """
        tz_name = self.settings.business_timezone
        counts: Dict[date, int] = {}
        hours: Dict[date, float] = {}

        for booking in bookings:
            day = to_local(booking.start, tz_name).date()
            counts[day] = counts.get(day, 0) + 1
            hours[day] = hours.get(day, 0.0) + booking.interval.duration_hours

        return {
            day: DailyLoad(day=day, count=counts[day], hours=hours[day]) for day in sorted(counts)
        }

    @BaseService.measure_operation("mentor_availability")
    def availability(
        self,
        mentor_id: str,
        range_start: datetime,
        range_end: datetime,
        existing_bookings: Iterable[BookingRecord],
    ) -> AvailabilityReport:
        """
        Decide whether the mentor has capacity left in the range.

        The booking-count rule is checked for every day before the hours rule,
        so a day breaching both reports the count limit.

        Args:
            mentor_id: The mentor to check
            range_start: Start of the range (inclusive)
            range_end: End of the range (inclusive)
            existing_bookings: Snapshot of the mentor's bookings

        Returns:
            AvailabilityReport with the in-range confirmed bookings
        """
        booked = self.bookings_in_range(mentor_id, range_start, range_end, existing_bookings)
        loads = self.daily_load(booked)

        for day, load in loads.items():
            if load.count >= self.settings.max_daily_bookings:
                return self._unavailable(
                    mentor_id,
                    f"Mentor has reached maximum bookings limit for {day.isoformat()}",
                    booked,
                )

        for day, load in loads.items():
            if load.hours >= self.settings.max_daily_hours:
                return self._unavailable(
                    mentor_id,
                    f"Mentor has reached maximum working hours for {day.isoformat()}",
                    booked,
                )

        return AvailabilityReport(is_available=True, booked_slots=booked)

    def _unavailable(
        self, mentor_id: str, reason: str, booked: List[BookingRecord]
    ) -> AvailabilityReport:
        self.logger.warning(f"Mentor {mentor_id} unavailable: {reason}")
        return AvailabilityReport(is_available=False, reason=reason, booked_slots=booked)
