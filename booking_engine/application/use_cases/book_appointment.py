from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone as dt_timezone
from typing import Callable
from zoneinfo import ZoneInfo

from booking_engine.application.exceptions import (
    BusinessNotFound,
    ConcurrencyConflict,
    GuestInfoRequired,
    InvalidBookingRequest,
    NoStaffAvailable,
    ServiceNotFound,
    SlotUnavailable,
)
from booking_engine.application.ports.appointment_store import MAX_DURATION_MINUTES, AppointmentStorePort
from booking_engine.application.ports.directory import DirectoryPort
from booking_engine.application.use_cases.assignment import AssignmentPolicy
from booking_engine.application.use_cases.availability import AvailabilityIndex, group_by_staff
from booking_engine.application.use_cases.notification_fanout import NotificationFanout
from booking_engine.application.use_cases.status_lifecycle import INITIAL_STATUS
from booking_engine.application.utils.clock import interval_for, load_timezone, to_local_clock_string
from booking_engine.application.utils.conflicts import free_staff, is_free
from booking_engine.domain.entities.appointment import Appointment, BookedSlot, GuestContact
from booking_engine.domain.entities.booking_request import BookingRequest
from booking_engine.domain.entities.business import Business
from booking_engine.domain.entities.interval import Interval
from booking_engine.domain.entities.notification import LifecycleEvent, LifecycleEventKind
from booking_engine.domain.entities.service import Service

# Auto-assigned bookings that lose the commit race get one more pick.
AUTO_ASSIGN_ATTEMPTS = 2


class BookAppointmentUseCase:
    """
    Books one appointment: validates the request, finds or checks a free
    staff member, and writes the appointment through the store's atomic
    re-check so two bookings can never claim the same staff interval.
    """

    def __init__(
        self,
        directory: DirectoryPort,
        store: AppointmentStorePort,
        availability: AvailabilityIndex,
        policy: AssignmentPolicy,
        fanout: NotificationFanout,
        id_factory: Callable[[], str] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._directory = directory
        self._store = store
        self._availability = availability
        self._policy = policy
        self._fanout = fanout
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._now = now or (lambda: datetime.now(dt_timezone.utc))
        self._logger = logging.getLogger(__name__)

    def execute(self, request: BookingRequest) -> Appointment:
        client_id, guest = _resolve_identity(request)
        service = resolve_service(self._directory, request.business_id, request.service_id)
        business = self._directory.get_business(request.business_id)
        if business is None:
            raise BusinessNotFound(f"Business {request.business_id} not found")

        tz = load_timezone(business.timezone)
        candidate = interval_for(request.date, request.start_time, service.duration_minutes, tz)
        qualified_ids = [s.id for s in self._directory.list_active_staff_for_service(business.id, service.id)]

        explicit = request.staff_member_id is not None
        if explicit:
            free = self._check_requested_staff(request, business, candidate, qualified_ids, tz)
        else:
            free = self._find_free_staff(request, business, candidate, qualified_ids, tz)

        attempts = 1 if explicit else AUTO_ASSIGN_ATTEMPTS
        remaining = list(free)
        for attempt in range(1, attempts + 1):
            staff_id = remaining[0] if explicit else self._choose(remaining, business, request)
            appointment = Appointment(
                id=self._id_factory(),
                business_id=business.id,
                service_id=service.id,
                staff_member_id=staff_id,
                date=request.date,
                start_time=request.start_time,
                end_time=to_local_clock_string(candidate.end, tz),
                status=INITIAL_STATUS,
                price=service.price,
                duration_minutes=service.duration_minutes,
                client_id=client_id,
                guest=guest,
                client_notes=(request.client_notes or "").strip() or None,
                created_at=self._now(),
                updated_at=self._now(),
            )

            created = self._store.create_appointment(appointment, recheck=_recheck(candidate, staff_id, tz))
            if created is not None:
                self._logger.info(
                    "Appointment booked",
                    extra={
                        "appointment_id": created.id,
                        "business_id": business.id,
                        "staff_member_id": staff_id,
                        "date": request.date.isoformat(),
                        "start_time": request.start_time,
                        "assigned": "explicit" if explicit else self._policy.name,
                    },
                )
                self._fanout.publish(LifecycleEvent(kind=LifecycleEventKind.BOOKING_CREATED, appointment=created))
                return created

            self._logger.warning(
                "Lost booking race at commit",
                extra={"business_id": business.id, "staff_member_id": staff_id, "attempt": attempt},
            )
            remaining.remove(staff_id)
            if not remaining:
                break

        raise ConcurrencyConflict(
            f"Slot {request.date.isoformat()} {request.start_time} was taken by a concurrent booking"
        )

    def _check_requested_staff(
        self,
        request: BookingRequest,
        business: Business,
        candidate: Interval,
        qualified_ids: list[str],
        tz: ZoneInfo,
    ) -> list[str]:
        staff_id = request.staff_member_id
        if staff_id not in qualified_ids:
            raise SlotUnavailable(f"Staff member {staff_id} is not available for this service")
        busy = self._availability.busy_intervals(business.id, request.date, [staff_id], tz)
        if not is_free(candidate, busy[staff_id]):
            raise SlotUnavailable(
                f"Staff member {staff_id} is busy at {request.date.isoformat()} {request.start_time}"
            )
        return [staff_id]

    def _find_free_staff(
        self,
        request: BookingRequest,
        business: Business,
        candidate: Interval,
        qualified_ids: list[str],
        tz: ZoneInfo,
    ) -> list[str]:
        if not qualified_ids:
            raise NoStaffAvailable("No active staff member performs this service")
        busy = self._availability.busy_intervals(business.id, request.date, qualified_ids, tz)
        free = free_staff(candidate, busy, qualified_ids)
        if not free:
            raise NoStaffAvailable(
                f"No staff member is free at {request.date.isoformat()} {request.start_time}"
            )
        return free

    def _choose(self, free: list[str], business: Business, request: BookingRequest) -> str:
        counts = None
        if self._policy.requires_load_counts:
            counts = self._store.count_assigned(business.id, request.date, free)
        return self._policy.choose(free, counts)


def resolve_service(directory: DirectoryPort, business_id: str, service_id: str) -> Service:
    """Active service of the business with a bookable duration."""
    service = directory.get_service(service_id)
    if service is None or not service.is_active or service.business_id != business_id:
        raise ServiceNotFound(f"Service {service_id} not found")
    if not 0 < service.duration_minutes <= MAX_DURATION_MINUTES:
        raise InvalidBookingRequest(
            f"Service {service_id} has an unbookable duration of {service.duration_minutes} minutes"
        )
    return service


def _resolve_identity(request: BookingRequest) -> tuple[str | None, GuestContact | None]:
    if request.client_id:
        if request.has_guest_fields:
            raise InvalidBookingRequest("Provide either a registered client or guest details, not both")
        return request.client_id, None
    if not request.has_complete_guest_fields:
        raise GuestInfoRequired("Guest bookings require name, email and phone")
    return None, GuestContact(
        name=request.guest_name.strip(),
        email=request.guest_email.strip(),
        phone=request.guest_phone.strip(),
    )


def _recheck(candidate: Interval, staff_id: str, tz: ZoneInfo) -> Callable[[list[BookedSlot]], bool]:
    def still_free(slots: list[BookedSlot]) -> bool:
        return is_free(candidate, group_by_staff(slots, tz).get(staff_id, []))

    return still_free
