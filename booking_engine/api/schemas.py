from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, EmailStr, Field

from booking_engine.domain.entities.appointment import Appointment

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class Initiator(str, Enum):
    customer = "customer"
    business = "business"


class BookAppointmentSchema(BaseModel):
    business_id: str
    service_id: str
    staff_member_id: str | None = None
    date: date
    start_time: str = Field(pattern=HHMM_PATTERN)
    client_notes: str | None = Field(default=None, max_length=1000)
    guest_name: str | None = None
    guest_email: EmailStr | None = None
    guest_phone: str | None = None


class StatusUpdateSchema(BaseModel):
    status: str


class CancelSchema(BaseModel):
    initiator: Initiator
    reason: str | None = None


class GuestSchema(BaseModel):
    name: str
    email: str
    phone: str


class AppointmentSchema(BaseModel):
    id: str
    business_id: str
    service_id: str
    staff_member_id: str
    date: date
    start_time: str
    end_time: str
    status: str
    price: Decimal
    duration_minutes: int
    client_id: str | None = None
    guest: GuestSchema | None = None
    client_notes: str | None = None
    cancelled_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def from_entity(appointment: Appointment) -> "AppointmentSchema":
        guest = appointment.guest
        return AppointmentSchema(
            id=appointment.id,
            business_id=appointment.business_id,
            service_id=appointment.service_id,
            staff_member_id=appointment.staff_member_id,
            date=appointment.date,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            status=appointment.status.value,
            price=appointment.price,
            duration_minutes=appointment.duration_minutes,
            client_id=appointment.client_id,
            guest=GuestSchema(name=guest.name, email=guest.email, phone=guest.phone) if guest else None,
            client_notes=appointment.client_notes,
            cancelled_by=appointment.cancelled_by.value if appointment.cancelled_by else None,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )


class SlotSchema(BaseModel):
    time: str
    available: bool
