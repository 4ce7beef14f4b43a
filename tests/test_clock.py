from datetime import date, datetime, timezone

import pytest

from booking_engine.application.exceptions import InvalidBookingRequest, InvalidTimezone
from booking_engine.application.utils.clock import (
    interval_for,
    load_timezone,
    parse_clock,
    to_instant,
    to_local_clock_string,
)


def test_local_time_resolves_to_utc():
    # Mexico City has no daylight saving: always UTC-6.
    instant = to_instant(date(2026, 3, 2), "10:00", "America/Mexico_City")
    assert instant == datetime(2026, 3, 2, 16, 0, tzinfo=timezone.utc)


def test_spring_forward_gap_is_rejected():
    with pytest.raises(InvalidBookingRequest):
        to_instant(date(2026, 3, 8), "02:30", "America/New_York")


def test_ambiguous_fall_back_time_uses_first_occurrence():
    instant = to_instant(date(2026, 11, 1), "01:30", "America/New_York")
    # First 01:30 is still EDT (UTC-4).
    assert instant == datetime(2026, 11, 1, 5, 30, tzinfo=timezone.utc)


def test_interval_spanning_fall_back_is_real_duration():
    interval = interval_for(date(2026, 11, 1), "01:00", 90, "America/New_York")
    assert interval.duration.total_seconds() == 90 * 60
    # 01:00 EDT + 90 min lands at 01:30 EST on the wall clock.
    assert to_local_clock_string(interval.end, "America/New_York") == "01:30"


def test_unknown_timezone():
    with pytest.raises(InvalidTimezone):
        load_timezone("Mars/Olympus_Mons")
    with pytest.raises(InvalidTimezone):
        to_instant(date(2026, 3, 2), "10:00", "Not/AZone")


@pytest.mark.parametrize("value", ["24:00", "9:30", "10:60", "10-30", "", "10:30:00"])
def test_malformed_clock_values(value):
    with pytest.raises(InvalidBookingRequest):
        parse_clock(value)


def test_clock_string_round_trip_in_business_zone():
    instant = to_instant(date(2026, 7, 15), "18:45", "Europe/Madrid")
    assert to_local_clock_string(instant, "Europe/Madrid") == "18:45"
    assert to_local_clock_string(instant, "UTC") == "16:45"
