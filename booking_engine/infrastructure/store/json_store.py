from __future__ import annotations

import json
import re
import threading
from contextlib import ExitStack
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

from booking_engine.application.exceptions import StorageUnavailable
from booking_engine.application.ports.appointment_store import AppointmentStorePort, RecheckFn, conflict_days
from booking_engine.domain.entities.appointment import (
    Appointment,
    AppointmentStatus,
    BookedSlot,
    CancellationInitiator,
    GuestContact,
)

_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_.-]")


class JsonAppointmentStore(AppointmentStorePort):
    """
    File-backed store: one JSON document per business day plus an id index.

    Writes go to a temp file and are renamed into place, so a failed write
    leaves the previous document intact. Locks are per process; run a single
    worker process against a data directory.
    """

    def __init__(self, data_dir: str = "./data/appointments") -> None:
        self._data_dir = Path(data_dir)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Cannot create data directory {data_dir}: {e}") from e
        self._locks: dict[tuple[str, date], threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._index_lock = threading.Lock()

    def _get_lock(self, business_id: str, on_date: date) -> threading.Lock:
        """Get or create the lock for a business day."""
        key = (business_id, on_date)
        with self._lock_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def _day_path(self, business_id: str, on_date: date) -> Path:
        return self._data_dir / _SAFE_NAME_RE.sub("_", business_id) / f"{on_date.isoformat()}.json"

    def _index_path(self) -> Path:
        return self._data_dir / "_index.json"

    def _read_json(self, path: Path, default: dict[str, Any]) -> dict[str, Any]:
        if not path.exists():
            return default
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StorageUnavailable(f"Cannot read {path.name}: {e}") from e

    def _write_json(self, path: Path, data: dict[str, Any]) -> None:
        """Save a document atomically."""
        temp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(path)
        except OSError as e:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass
            raise StorageUnavailable(f"Cannot write {path.name}: {e}") from e

    def _load_day(self, business_id: str, on_date: date) -> list[Appointment]:
        data = self._read_json(
            self._day_path(business_id, on_date),
            {"business_id": business_id, "date": on_date.isoformat(), "appointments": [], "version": 1},
        )
        try:
            return [_deserialize(item) for item in data.get("appointments", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageUnavailable(f"Corrupt appointment data for {business_id} {on_date}: {e}") from e

    def _save_day(self, business_id: str, on_date: date, appointments: list[Appointment]) -> None:
        self._write_json(
            self._day_path(business_id, on_date),
            {
                "business_id": business_id,
                "date": on_date.isoformat(),
                "appointments": [_serialize(a) for a in appointments],
                "version": 1,
            },
        )

    def _lookup(self, appointment_id: str) -> tuple[str, date] | None:
        with self._index_lock:
            index = self._read_json(self._index_path(), {"appointments": {}})
        entry = index.get("appointments", {}).get(appointment_id)
        if not entry:
            return None
        return entry["business_id"], date.fromisoformat(entry["date"])

    def _indexed_days(self) -> list[tuple[str, date]]:
        with self._index_lock:
            index = self._read_json(self._index_path(), {"appointments": {}})
        entries = index.get("appointments", {}).values()
        return sorted({(e["business_id"], date.fromisoformat(e["date"])) for e in entries})

    def find_booked_slots(self, business_id: str, on_date: date, staff_ids: list[str]) -> list[BookedSlot]:
        wanted = set(staff_ids)
        with self._get_lock(business_id, on_date):
            appointments = self._load_day(business_id, on_date)
        return [
            BookedSlot.from_appointment(a)
            for a in appointments
            if a.occupies_slot and a.staff_member_id in wanted
        ]

    def create_appointment(self, appointment: Appointment, recheck: RecheckFn) -> Appointment | None:
        business_id, on_date = appointment.business_id, appointment.date
        days = conflict_days(on_date)
        with ExitStack() as stack:
            # ascending date order, so neighbouring bookings cannot deadlock
            for day in days:
                stack.enter_context(self._get_lock(business_id, day))
            loaded = {day: self._load_day(business_id, day) for day in days}
            existing = loaded[on_date]
            booked = [
                BookedSlot.from_appointment(a)
                for day in days
                for a in loaded[day]
                if a.occupies_slot and a.staff_member_id == appointment.staff_member_id
            ]
            if not recheck(booked):
                return None

            self._save_day(business_id, on_date, existing + [appointment])
            try:
                with self._index_lock:
                    index = self._read_json(self._index_path(), {"appointments": {}})
                    index.setdefault("appointments", {})[appointment.id] = {
                        "business_id": business_id,
                        "date": on_date.isoformat(),
                    }
                    self._write_json(self._index_path(), index)
            except StorageUnavailable:
                # Roll the day file back so no unindexed appointment survives.
                self._save_day(business_id, on_date, existing)
                raise
            return appointment

    def get_appointment(self, appointment_id: str) -> Appointment | None:
        location = self._lookup(appointment_id)
        if location is None:
            return None
        with self._get_lock(*location):
            for appointment in self._load_day(*location):
                if appointment.id == appointment_id:
                    return appointment
        return None

    def update_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus,
        expected_status: AppointmentStatus,
        cancelled_by: CancellationInitiator | None = None,
    ) -> Appointment | None:
        location = self._lookup(appointment_id)
        if location is None:
            return None
        with self._get_lock(*location):
            appointments = self._load_day(*location)
            for i, current in enumerate(appointments):
                if current.id != appointment_id:
                    continue
                if current.status != expected_status:
                    return None
                updated = replace(
                    current,
                    status=new_status,
                    cancelled_by=cancelled_by if cancelled_by is not None else current.cancelled_by,
                    updated_at=datetime.now(timezone.utc),
                )
                appointments[i] = updated
                self._save_day(*location, appointments)
                return updated
        return None

    def list_appointments(
        self,
        business_id: str | None = None,
        on_date: date | None = None,
        staff_member_id: str | None = None,
        status: AppointmentStatus | None = None,
        client_id: str | None = None,
    ) -> list[Appointment]:
        if business_id is None:
            # day files only carry a sanitized business name; the index has the real ids
            days = self._indexed_days()
            if on_date is not None:
                days = [(b, d) for b, d in days if d == on_date]
        elif on_date is not None:
            days = [(business_id, on_date)]
        else:
            business_dir = self._day_path(business_id, date.min).parent
            days = sorted((business_id, date.fromisoformat(p.stem)) for p in business_dir.glob("*.json"))

        items: list[Appointment] = []
        for day_business, day in days:
            with self._get_lock(day_business, day):
                items.extend(self._load_day(day_business, day))
        if client_id is not None:
            items = [a for a in items if a.client_id == client_id]
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


def _serialize(appointment: Appointment) -> dict[str, Any]:
    guest = appointment.guest
    return {
        "id": appointment.id,
        "business_id": appointment.business_id,
        "service_id": appointment.service_id,
        "staff_member_id": appointment.staff_member_id,
        "date": appointment.date.isoformat(),
        "start_time": appointment.start_time,
        "end_time": appointment.end_time,
        "status": appointment.status.value,
        # Decimal as string keeps the exact amount
        "price": str(appointment.price),
        "duration_minutes": appointment.duration_minutes,
        "client_id": appointment.client_id,
        "guest": {"name": guest.name, "email": guest.email, "phone": guest.phone} if guest else None,
        "client_notes": appointment.client_notes,
        "cancelled_by": appointment.cancelled_by.value if appointment.cancelled_by else None,
        "created_at": appointment.created_at.isoformat() if appointment.created_at else None,
        "updated_at": appointment.updated_at.isoformat() if appointment.updated_at else None,
    }


def _deserialize(data: dict[str, Any]) -> Appointment:
    guest = data.get("guest")
    return Appointment(
        id=data["id"],
        business_id=data["business_id"],
        service_id=data["service_id"],
        staff_member_id=data["staff_member_id"],
        date=date.fromisoformat(data["date"]),
        start_time=data["start_time"],
        end_time=data["end_time"],
        status=AppointmentStatus(data["status"]),
        price=Decimal(data["price"]),
        duration_minutes=int(data["duration_minutes"]),
        client_id=data.get("client_id"),
        guest=GuestContact(**guest) if guest else None,
        client_notes=data.get("client_notes"),
        cancelled_by=CancellationInitiator(data["cancelled_by"]) if data.get("cancelled_by") else None,
        created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else None,
        updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else None,
    )
