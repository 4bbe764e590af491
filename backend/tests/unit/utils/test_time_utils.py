# backend/tests/unit/utils/test_time_utils.py
"""Unit tests for the timezone, overlap and calendar helpers."""

from datetime import date, datetime, time, timedelta, timezone

import pytest
import pytz

from mentora.schemas.booking import TimeInterval
from mentora.utils.time_utils import (
    add_months,
    ensure_utc,
    hours_between,
    localize,
    overlaps,
    ranges_overlap,
    to_local,
)
from tests.helpers.time_helpers import at


class TestEnsureUtc:
    def test_naive_is_treated_as_utc(self):
        result = ensure_utc(datetime(2024, 6, 3, 10, 0))
        assert result == datetime(2024, 6, 3, 10, 0, tzinfo=timezone.utc)

    def test_aware_is_converted(self):
        berlin = pytz.timezone("Europe/Berlin").localize(datetime(2024, 6, 3, 12, 0))
        assert ensure_utc(berlin) == datetime(2024, 6, 3, 10, 0, tzinfo=timezone.utc)


class TestOverlap:
    def test_touching_intervals_do_not_overlap(self):
        assert not ranges_overlap(at(0, 14), at(0, 15), at(0, 15), at(0, 16))

    def test_partial_overlap(self):
        assert ranges_overlap(at(0, 14), at(0, 15), at(0, 14, 30), at(0, 15, 30))

    def test_containment_overlaps(self):
        assert ranges_overlap(at(0, 9), at(0, 18), at(0, 12), at(0, 13))

    @pytest.mark.parametrize(
        "first,second",
        [
            ((at(0, 10), at(0, 11)), (at(0, 10, 30), at(0, 12))),
            ((at(0, 10), at(0, 11)), (at(0, 11), at(0, 12))),
            ((at(0, 10), at(0, 12)), (at(0, 10, 15), at(0, 10, 45))),
            ((at(0, 10), at(0, 11)), (at(1, 10), at(1, 11))),
        ],
    )
    def test_overlap_is_symmetric(self, first, second):
        a = TimeInterval(start=first[0], end=first[1])
        b = TimeInterval(start=second[0], end=second[1])
        assert overlaps(a, b) == overlaps(b, a)

    def test_interval_shifted_by_its_length_never_overlaps(self):
        a = TimeInterval(start=at(0, 10), end=at(0, 11, 30))
        for extra in (0, 15, 90):
            shift = a.duration + timedelta(minutes=extra)
            b = TimeInterval(start=a.start + shift, end=a.end + shift)
            assert not overlaps(a, b)
            assert not overlaps(b, a)


class TestLocalTime:
    def test_to_local_uses_named_zone(self):
        local = to_local(datetime(2024, 1, 15, 14, 0, tzinfo=timezone.utc), "America/New_York")
        assert local.hour == 9

    def test_localize_handles_dst(self):
        winter = localize(date(2024, 1, 15), time(9), "America/New_York")
        summer = localize(date(2024, 7, 15), time(9), "America/New_York")
        assert winter.hour == 14
        assert summer.hour == 13
        assert winter.tzinfo == timezone.utc


def test_hours_between_is_signed():
    assert hours_between(at(0, 10), at(0, 12, 30)) == 2.5
    assert hours_between(at(0, 12), at(0, 10)) == -2.0


class TestAddMonths:
    def test_clamps_to_month_end(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_rolls_over_year(self):
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)

    def test_keeps_day_when_it_fits(self):
        assert add_months(date(2024, 3, 10), 2) == date(2024, 5, 10)
