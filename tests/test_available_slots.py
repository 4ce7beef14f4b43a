"""
Tests for the bookable slot grid built from working hours and existing bookings.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import DAY, guest_request
from booking_engine.application.exceptions import BusinessNotFound, ServiceNotFound
from booking_engine.domain.entities.business import WorkingHours


def _times(slots, available=None):
    return [s.time for s in slots if available is None or s.available == available]


def test_grid_covers_opening_hours_in_half_hour_steps(engine):
    slots = engine.slots.execute("biz-1", DAY, "svc-cut")

    assert _times(slots)[0] == "09:00"
    assert _times(slots)[-1] == "17:30"
    assert len(slots) == 18
    assert all(s.available for s in slots)


def test_last_slot_must_fit_before_closing(engine):
    slots = engine.slots.execute("biz-1", DAY, "svc-color")

    # 90 minutes: 16:30 ends exactly at 18:00, 17:00 would run past closing.
    assert _times(slots)[-1] == "16:30"


def test_closed_days_have_no_slots(engine):
    saturday = DAY + timedelta(days=5)  # listed but closed
    sunday = DAY + timedelta(days=6)  # not listed at all

    assert engine.slots.execute("biz-1", saturday, "svc-cut") == []
    assert engine.slots.execute("biz-1", sunday, "svc-cut") == []


def test_named_staff_member_follows_their_bookings(engine):
    engine.book.execute(guest_request("10:00", staff_member_id="staff-a"))

    slots = engine.slots.execute("biz-1", DAY, "svc-cut", staff_member_id="staff-a")

    assert _times(slots, available=False) == ["10:00"]
    # the other staff member keeps the slot open when nobody is named
    assert all(s.available for s in engine.slots.execute("biz-1", DAY, "svc-cut"))


def test_any_staff_slot_closes_when_everyone_is_busy(engine):
    engine.book.execute(guest_request("10:00", staff_member_id="staff-a"))
    engine.book.execute(guest_request("10:00", staff_member_id="staff-b"))

    slots = engine.slots.execute("biz-1", DAY, "svc-cut")

    assert _times(slots, available=False) == ["10:00"]


def test_long_service_blocked_by_later_booking(engine):
    engine.book.execute(guest_request("10:00", staff_member_id="staff-a"))

    slots = engine.slots.execute("biz-1", DAY, "svc-color")

    # only staff-a performs color; 09:00 and 09:30 would run into the 10:00 cut
    assert _times(slots, available=False) == ["09:00", "09:30", "10:00"]
    assert "10:30" in _times(slots, available=True)


def test_unqualified_staff_member_has_no_free_slots(engine):
    slots = engine.slots.execute("biz-1", DAY, "svc-color", staff_member_id="staff-b")

    assert slots
    assert not any(s.available for s in slots)


def test_opening_hours_follow_business_changes(engine):
    business = engine.directory.get_business("biz-1")
    engine.directory.add_business(
        replace(business, working_hours=(WorkingHours(day="monday", open="12:00", close="13:00"),))
    )

    assert _times(engine.slots.execute("biz-1", DAY, "svc-cut")) == ["12:00", "12:30"]


def test_unknown_business_or_service(engine):
    with pytest.raises(BusinessNotFound):
        engine.slots.execute("biz-missing", DAY, "svc-cut")
    with pytest.raises(ServiceNotFound):
        engine.slots.execute("biz-1", DAY, "svc-old")
