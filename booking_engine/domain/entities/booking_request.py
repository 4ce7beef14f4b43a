from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class BookingRequest:
    business_id: str
    service_id: str
    date: date
    start_time: str  # HH:MM
    staff_member_id: str | None = None  # None -> auto-assign
    client_id: str | None = None  # authenticated caller
    guest_name: str | None = None
    guest_email: str | None = None
    guest_phone: str | None = None
    client_notes: str | None = None

    @property
    def has_guest_fields(self) -> bool:
        return any(_filled(v) for v in (self.guest_name, self.guest_email, self.guest_phone))

    @property
    def has_complete_guest_fields(self) -> bool:
        return all(_filled(v) for v in (self.guest_name, self.guest_email, self.guest_phone))


def _filled(value: str | None) -> bool:
    return bool(value and value.strip())
