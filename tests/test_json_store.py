"""
Tests for durable appointment persistence in the JSON store.
"""

from __future__ import annotations

import json
import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from conftest import BUSINESS_ID, DAY, build_engine, client_request, guest_request
from booking_engine.application.exceptions import StorageUnavailable
from booking_engine.domain.entities.appointment import (
    Appointment,
    AppointmentStatus,
    CancellationInitiator,
    GuestContact,
)
from booking_engine.infrastructure.store.json_store import JsonAppointmentStore


def _appointment(appointment_id: str = "appt-1", **overrides) -> Appointment:
    fields = dict(
        id=appointment_id,
        business_id=BUSINESS_ID,
        service_id="svc-cut",
        staff_member_id="staff-a",
        date=DAY,
        start_time="10:00",
        end_time="10:30",
        status=AppointmentStatus.PENDING,
        price=Decimal("250.10"),
        duration_minutes=30,
        guest=GuestContact(name="Gina Guest", email="gina@mail.test", phone="555-0199"),
        created_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
        updated_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return Appointment(**fields)


def test_json_store_persistence():
    """Appointments written by one store instance are read back by another."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonAppointmentStore(data_dir=tmpdir)
        created = store.create_appointment(_appointment(), recheck=lambda slots: True)
        assert created is not None

        reopened = JsonAppointmentStore(data_dir=tmpdir)
        loaded = reopened.get_appointment("appt-1")

        assert loaded == created
        assert loaded.price == Decimal("250.10")
        assert loaded.guest.email == "gina@mail.test"
        assert [s.appointment_id for s in reopened.find_booked_slots(BUSINESS_ID, DAY, ["staff-a"])] == ["appt-1"]


def test_json_store_recheck_rejection_writes_nothing():
    """A failed commit-time re-check leaves the day untouched."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonAppointmentStore(data_dir=tmpdir)
        store.create_appointment(_appointment("appt-1"), recheck=lambda slots: True)

        seen = []

        def recheck(slots):
            seen.extend(s.appointment_id for s in slots)
            return False

        assert store.create_appointment(_appointment("appt-2", start_time="10:15"), recheck=recheck) is None
        assert seen == ["appt-1"]
        assert store.get_appointment("appt-2") is None
        assert [a.id for a in store.list_appointments(BUSINESS_ID)] == ["appt-1"]


def test_json_store_status_update_is_compare_and_set():
    """Status updates only apply when the stored status matches the expected one."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonAppointmentStore(data_dir=tmpdir)
        store.create_appointment(_appointment(), recheck=lambda slots: True)

        stale = store.update_status("appt-1", AppointmentStatus.COMPLETED, expected_status=AppointmentStatus.CONFIRMED)
        assert stale is None

        cancelled = store.update_status(
            "appt-1",
            AppointmentStatus.CANCELLED,
            expected_status=AppointmentStatus.PENDING,
            cancelled_by=CancellationInitiator.CUSTOMER,
        )
        assert cancelled.status == AppointmentStatus.CANCELLED
        assert JsonAppointmentStore(data_dir=tmpdir).get_appointment("appt-1").cancelled_by == CancellationInitiator.CUSTOMER
        # cancelled appointments no longer occupy the slot
        assert store.find_booked_slots(BUSINESS_ID, DAY, ["staff-a"]) == []
        assert store.update_status("missing", AppointmentStatus.CONFIRMED, AppointmentStatus.PENDING) is None


def test_json_store_list_filters_across_days():
    """Listing without a date scans every stored day for the business."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonAppointmentStore(data_dir=tmpdir)
        store.create_appointment(_appointment("late", date=DAY.replace(day=3)), recheck=lambda slots: True)
        store.create_appointment(_appointment("early"), recheck=lambda slots: True)
        store.create_appointment(
            _appointment("other-staff", staff_member_id="staff-b", start_time="09:00", end_time="09:30"),
            recheck=lambda slots: True,
        )

        assert [a.id for a in store.list_appointments(BUSINESS_ID)] == ["other-staff", "early", "late"]
        assert [a.id for a in store.list_appointments(BUSINESS_ID, staff_member_id="staff-a")] == ["early", "late"]
        assert [a.id for a in store.list_appointments(BUSINESS_ID, on_date=DAY)] == ["other-staff", "early"]
        assert store.list_appointments("biz-unknown") == []
        assert store.count_assigned(BUSINESS_ID, DAY, ["staff-a", "staff-b", "staff-c"]) == {
            "staff-a": 1,
            "staff-b": 1,
            "staff-c": 0,
        }



def test_json_store_lists_a_clients_appointments_across_businesses():
    """Without a business the index locates every day that holds a booking."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonAppointmentStore(data_dir=tmpdir)
        store.create_appointment(_appointment("guest"), recheck=lambda slots: True)
        store.create_appointment(
            _appointment("later", client_id="u-client", guest=None, date=DAY.replace(day=3)), recheck=lambda slots: True
        )
        store.create_appointment(
            _appointment("elsewhere", business_id="biz-2", client_id="u-client", guest=None, start_time="09:00"),
            recheck=lambda slots: True,
        )

        reopened = JsonAppointmentStore(data_dir=tmpdir)

        assert [a.id for a in reopened.list_appointments(client_id="u-client")] == ["elsewhere", "later"]
        assert [a.id for a in reopened.list_appointments(BUSINESS_ID, client_id="u-client")] == ["later"]
        assert [a.id for a in reopened.list_appointments(on_date=DAY)] == ["elsewhere", "guest"]

def test_json_store_corrupt_file_is_storage_unavailable():
    """A day document that cannot be parsed surfaces as a storage failure."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonAppointmentStore(data_dir=tmpdir)
        store.create_appointment(_appointment(), recheck=lambda slots: True)

        day_file = Path(tmpdir) / BUSINESS_ID / f"{DAY.isoformat()}.json"
        day_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageUnavailable):
            store.find_booked_slots(BUSINESS_ID, DAY, ["staff-a"])
        with pytest.raises(StorageUnavailable):
            store.get_appointment("appt-1")


def test_json_store_index_failure_rolls_back_day():
    """If the id index cannot be written, the appointment is not left behind."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonAppointmentStore(data_dir=tmpdir)
        original_write = store._write_json

        def failing_write(path, data):
            if path.name == "_index.json":
                raise StorageUnavailable("disk full")
            original_write(path, data)

        store._write_json = failing_write

        with pytest.raises(StorageUnavailable):
            store.create_appointment(_appointment(), recheck=lambda slots: True)

        store._write_json = original_write
        assert store.list_appointments(BUSINESS_ID, on_date=DAY) == []
        assert store.get_appointment("appt-1") is None


def test_json_store_files_are_plain_json():
    """Day documents are readable JSON with string prices."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonAppointmentStore(data_dir=tmpdir)
        store.create_appointment(_appointment(), recheck=lambda slots: True)

        with open(Path(tmpdir) / BUSINESS_ID / f"{DAY.isoformat()}.json", "r", encoding="utf-8") as f:
            data = json.load(f)

        assert data["version"] == 1
        assert data["appointments"][0]["price"] == "250.10"
        assert data["appointments"][0]["status"] == "PENDING"
        assert not list(Path(tmpdir).rglob("*.tmp"))


def test_booking_flow_on_json_store():
    """The full booking and lifecycle flow works against durable storage."""
    with tempfile.TemporaryDirectory() as tmpdir:
        engine = build_engine(store=JsonAppointmentStore(data_dir=tmpdir))

        first = engine.book.execute(client_request("10:00"))
        second = engine.book.execute(guest_request("10:00"))
        engine.lifecycle.transition(first.id, AppointmentStatus.CONFIRMED)

        reopened = JsonAppointmentStore(data_dir=tmpdir)
        assert reopened.get_appointment(first.id).status == AppointmentStatus.CONFIRMED
        assert {first.staff_member_id, second.staff_member_id} == {"staff-a", "staff-b"}
