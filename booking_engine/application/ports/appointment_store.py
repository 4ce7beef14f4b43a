from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Callable

from booking_engine.domain.entities.appointment import (
    Appointment,
    AppointmentStatus,
    BookedSlot,
    CancellationInitiator,
)

# Receives the staff member's booked slots on the conflict days, read under
# the store's locks, and answers whether the new appointment may still be written.
RecheckFn = Callable[[list[BookedSlot]], bool]

# Longest bookable service. Keeping it at one day means an appointment can only
# reach into the neighbouring local dates, so conflicts live in a 3-day window.
MAX_DURATION_MINUTES = 24 * 60


def conflict_days(on_date: date) -> list[date]:
    """Local dates whose appointments can overlap one starting on on_date, ascending."""
    return [on_date - timedelta(days=1), on_date, on_date + timedelta(days=1)]


class AppointmentStorePort(ABC):
    @abstractmethod
    def find_booked_slots(self, business_id: str, on_date: date, staff_ids: list[str]) -> list[BookedSlot]:
        """Non-cancelled appointments of the business on the date assigned to one of staff_ids."""
        raise NotImplementedError

    @abstractmethod
    def create_appointment(self, appointment: Appointment, recheck: RecheckFn) -> Appointment | None:
        """
        Atomically re-check and insert.

        Holds the (business, date) boundary of every date in
        conflict_days(appointment.date), taken in ascending order, while it
        loads the assigned staff member's booked slots on those dates, calls
        recheck with them, and writes only if it returns True. Returns None
        (nothing written) when the re-check fails.
        """
        raise NotImplementedError

    @abstractmethod
    def get_appointment(self, appointment_id: str) -> Appointment | None:
        raise NotImplementedError

    @abstractmethod
    def update_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus,
        expected_status: AppointmentStatus,
        cancelled_by: CancellationInitiator | None = None,
    ) -> Appointment | None:
        """
        Compare-and-set the status. Returns the updated appointment, or None
        when the stored status no longer equals expected_status.
        """
        raise NotImplementedError

    @abstractmethod
    def list_appointments(
        self,
        business_id: str | None = None,
        on_date: date | None = None,
        staff_member_id: str | None = None,
        status: AppointmentStatus | None = None,
        client_id: str | None = None,
    ) -> list[Appointment]:
        """Matching appointments ordered by (date, start_time, id); business_id None spans all businesses."""
        raise NotImplementedError

    @abstractmethod
    def count_assigned(self, business_id: str, on_date: date, staff_ids: list[str]) -> dict[str, int]:
        """Non-cancelled appointment count per staff member for the day (0 when none)."""
        raise NotImplementedError
