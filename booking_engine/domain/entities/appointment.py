from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class CancellationInitiator(str, Enum):
    CUSTOMER = "customer"
    BUSINESS = "business"


@dataclass(frozen=True)
class GuestContact:
    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class Appointment:
    id: str
    business_id: str
    service_id: str
    staff_member_id: str
    date: date
    start_time: str  # HH:MM, business local wall clock
    end_time: str  # HH:MM, business local wall clock
    status: AppointmentStatus
    price: Decimal  # snapshot of Service.price at booking time
    duration_minutes: int  # snapshot of Service.duration_minutes at booking time
    client_id: str | None = None
    guest: GuestContact | None = None
    client_notes: str | None = None
    cancelled_by: CancellationInitiator | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if (self.client_id is None) == (self.guest is None):
            raise ValueError("Appointment needs exactly one of client_id or guest contact")

    @property
    def is_registered_client(self) -> bool:
        return self.client_id is not None

    @property
    def occupies_slot(self) -> bool:
        return self.status != AppointmentStatus.CANCELLED


@dataclass(frozen=True)
class BookedSlot:
    """Minimal projection of a non-cancelled appointment used for conflict checks."""

    appointment_id: str
    staff_member_id: str
    date: date
    start_time: str
    duration_minutes: int

    @staticmethod
    def from_appointment(appointment: Appointment) -> BookedSlot:
        return BookedSlot(
            appointment_id=appointment.id,
            staff_member_id=appointment.staff_member_id,
            date=appointment.date,
            start_time=appointment.start_time,
            duration_minutes=appointment.duration_minutes,
        )
