# backend/tests/conftest.py
"""
Shared fixtures for the Mentora booking engine tests.

Every test runs against a frozen clock pinned to a Monday morning (UTC) and
a Settings instance that ignores any local .env file, so results never
depend on the wall clock or the developer's environment.
"""

from datetime import datetime, timedelta
from decimal import Decimal
import itertools
from typing import Callable, Optional

import pytest

from mentora.core.clock import FrozenClock
from mentora.core.config import Settings
from mentora.core.enums import BookingStatus
from mentora.schemas.booking import BookingRecord, TimeInterval
from mentora.services.base import BaseService
from tests.helpers.time_helpers import NOW


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture(autouse=True)
def reset_service_metrics():
    """Class-level timing stats are shared; start every test from zero."""
    BaseService._class_metrics.clear()
    yield
    BaseService._class_metrics.clear()


@pytest.fixture
def make_booking() -> Callable[..., BookingRecord]:
    """Factory for BookingRecord with sensible defaults."""
    counter = itertools.count(1)

    def _make(
        start: datetime,
        end: Optional[datetime] = None,
        *,
        minutes: int = 60,
        booking_id: Optional[str] = None,
        mentor_id: str = "mentor-1",
        user_id: str = "user-1",
        session_id: Optional[str] = "session-1",
        status: BookingStatus = BookingStatus.CONFIRMED,
        amount: Decimal = Decimal("100.00"),
        currency: str = "USD",
        created_at: Optional[datetime] = None,
        cancelled_at: Optional[datetime] = None,
        is_paid: bool = True,
        notes: Optional[str] = None,
    ) -> BookingRecord:
        interval = (
            TimeInterval(start=start, end=end)
            if end is not None
            else TimeInterval.from_duration(start, minutes)
        )
        return BookingRecord(
            id=booking_id or f"booking-{next(counter)}",
            mentor_id=mentor_id,
            user_id=user_id,
            session_id=session_id,
            interval=interval,
            status=status,
            amount=amount,
            currency=currency,
            created_at=created_at or NOW - timedelta(hours=1),
            cancelled_at=cancelled_at,
            is_paid=is_paid,
            notes=notes,
        )

    return _make
