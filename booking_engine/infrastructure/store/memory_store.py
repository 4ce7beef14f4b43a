from __future__ import annotations

import threading
from contextlib import ExitStack
from dataclasses import replace
from datetime import date, datetime, timezone

from booking_engine.application.ports.appointment_store import AppointmentStorePort, RecheckFn, conflict_days
from booking_engine.domain.entities.appointment import (
    Appointment,
    AppointmentStatus,
    BookedSlot,
    CancellationInitiator,
)


class MemoryAppointmentStore(AppointmentStorePort):
    """
    Process-local store. Each (business, date) has its own lock, which is the
    transaction boundary for the commit-time re-check; it only serializes
    bookings inside one process.
    """

    def __init__(self) -> None:
        self._appointments: dict[str, Appointment] = {}
        self._by_day: dict[tuple[str, date], list[str]] = {}
        self._locks: dict[tuple[str, date], threading.Lock] = {}
        self._lock_lock = threading.Lock()  # guards the locks dict

    def _get_lock(self, business_id: str, on_date: date) -> threading.Lock:
        key = (business_id, on_date)
        with self._lock_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def _day(self, business_id: str, on_date: date) -> list[Appointment]:
        return [self._appointments[i] for i in self._by_day.get((business_id, on_date), [])]

    def find_booked_slots(self, business_id: str, on_date: date, staff_ids: list[str]) -> list[BookedSlot]:
        wanted = set(staff_ids)
        with self._get_lock(business_id, on_date):
            return [
                BookedSlot.from_appointment(a)
                for a in self._day(business_id, on_date)
                if a.occupies_slot and a.staff_member_id in wanted
            ]

    def create_appointment(self, appointment: Appointment, recheck: RecheckFn) -> Appointment | None:
        key = (appointment.business_id, appointment.date)
        days = conflict_days(appointment.date)
        with ExitStack() as stack:
            # ascending date order, so neighbouring bookings cannot deadlock
            for day in days:
                stack.enter_context(self._get_lock(appointment.business_id, day))
            booked = [
                BookedSlot.from_appointment(a)
                for day in days
                for a in self._day(appointment.business_id, day)
                if a.occupies_slot and a.staff_member_id == appointment.staff_member_id
            ]
            if not recheck(booked):
                return None
            self._appointments[appointment.id] = appointment
            self._by_day.setdefault(key, []).append(appointment.id)
            return appointment

    def get_appointment(self, appointment_id: str) -> Appointment | None:
        return self._appointments.get(appointment_id)

    def update_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus,
        expected_status: AppointmentStatus,
        cancelled_by: CancellationInitiator | None = None,
    ) -> Appointment | None:
        current = self._appointments.get(appointment_id)
        if current is None:
            return None
        with self._get_lock(current.business_id, current.date):
            current = self._appointments[appointment_id]
            if current.status != expected_status:
                return None
            updated = replace(
                current,
                status=new_status,
                cancelled_by=cancelled_by if cancelled_by is not None else current.cancelled_by,
                updated_at=datetime.now(timezone.utc),
            )
            self._appointments[appointment_id] = updated
            return updated

    def list_appointments(
        self,
        business_id: str | None = None,
        on_date: date | None = None,
        staff_member_id: str | None = None,
        status: AppointmentStatus | None = None,
        client_id: str | None = None,
    ) -> list[Appointment]:
        items = list(self._appointments.values())
        if business_id is not None:
            items = [a for a in items if a.business_id == business_id]
        if client_id is not None:
            items = [a for a in items if a.client_id == client_id]
        if on_date is not None:
            items = [a for a in items if a.date == on_date]
        if staff_member_id is not None:
            items = [a for a in items if a.staff_member_id == staff_member_id]
        if status is not None:
            items = [a for a in items if a.status == status]
        return sorted(items, key=lambda a: (a.date, a.start_time, a.id))

    def count_assigned(self, business_id: str, on_date: date, staff_ids: list[str]) -> dict[str, int]:
        counts = {staff_id: 0 for staff_id in staff_ids}
        for slot in self.find_booked_slots(business_id, on_date, staff_ids):
            counts[slot.staff_member_id] += 1
        return counts
