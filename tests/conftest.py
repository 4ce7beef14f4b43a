from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.application.ports.notifier import NotifierPort
from booking_engine.application.use_cases.assignment import get_policy
from booking_engine.application.ports.dispatcher import DispatcherPort
from booking_engine.application.use_cases.availability import AvailabilityIndex
from booking_engine.application.use_cases.available_slots import AvailableSlotsUseCase
from booking_engine.application.use_cases.book_appointment import BookAppointmentUseCase
from booking_engine.application.use_cases.notification_fanout import NotificationFanout
from booking_engine.application.use_cases.status_lifecycle import StatusLifecycle
from booking_engine.domain.entities.booking_request import BookingRequest
from booking_engine.domain.entities.business import Business, UserContact, WorkingHours
from booking_engine.domain.entities.service import Service
from booking_engine.domain.entities.staff_member import StaffMember
from booking_engine.infrastructure.directory.memory_directory import MemoryDirectory
from booking_engine.infrastructure.dispatch.inline import InlineDispatcher
from booking_engine.infrastructure.observability.logging_reporter import LoggingErrorReporter
from booking_engine.infrastructure.store.memory_store import MemoryAppointmentStore

BUSINESS_ID = "biz-1"
DAY = date(2026, 3, 2)  # a Monday


class RecordingNotifier(NotifierPort):
    """Captures deliveries; recipients listed in fail_for raise on delivery."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.emails: list[tuple[str, str, dict[str, Any]]] = []
        self.in_app: list[tuple[str, str, dict[str, Any]]] = []
        self.fail_for = fail_for or set()
        self._lock = threading.Lock()

    def send_email(self, template: str, recipient: str, data: dict[str, Any]) -> None:
        if recipient in self.fail_for:
            raise ConnectionError(f"smtp down for {recipient}")
        with self._lock:
            self.emails.append((template, recipient, data))

    def create_in_app_notification(self, user_id: str, type: str, payload: dict[str, Any]) -> None:
        if user_id in self.fail_for:
            raise ConnectionError(f"inbox down for {user_id}")
        with self._lock:
            self.in_app.append((type, user_id, payload))


@dataclass
class Engine:
    directory: MemoryDirectory
    store: AppointmentStorePort
    notifier: RecordingNotifier
    reporter: LoggingErrorReporter
    fanout: NotificationFanout
    book: BookAppointmentUseCase
    lifecycle: StatusLifecycle
    slots: AvailableSlotsUseCase


WEEKDAY_HOURS = tuple(
    WorkingHours(day=day, open="09:00", close="18:00")
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
) + (WorkingHours(day="saturday", open="10:00", close="14:00", is_open=False),)


def build_directory(timezone: str = "America/Mexico_City") -> MemoryDirectory:
    return MemoryDirectory(
        businesses=[
            Business(
                id=BUSINESS_ID,
                name="Salon Luna",
                owner_id="u-owner",
                timezone=timezone,
                address="Av. Reforma 1",
                working_hours=WEEKDAY_HOURS,
            ),
            Business(id="biz-2", name="Spa Sol", owner_id="u-owner2", timezone="America/Cancun"),
        ],
        users=[
            UserContact(id="u-owner", email="owner@luna.test", first_name="Olga", last_name="Ruiz"),
            UserContact(id="u-client", email="client@mail.test", first_name="Carla", last_name="Diaz", phone="555-0101"),
            UserContact(id="u-ana", email="ana@luna.test", first_name="Ana"),
            UserContact(id="u-beto", email="beto@luna.test", first_name="Beto"),
        ],
        services=[
            Service(id="svc-cut", business_id=BUSINESS_ID, name="Haircut", duration_minutes=30, price=Decimal("250.00")),
            Service(id="svc-color", business_id=BUSINESS_ID, name="Color", duration_minutes=90, price=Decimal("900.00")),
            Service(
                id="svc-old",
                business_id=BUSINESS_ID,
                name="Perm",
                duration_minutes=60,
                price=Decimal("500.00"),
                is_active=False,
            ),
            Service(id="svc-massage", business_id="biz-2", name="Massage", duration_minutes=60, price=Decimal("700.00")),
        ],
        staff=[
            StaffMember(
                id="staff-a",
                business_id=BUSINESS_ID,
                user_id="u-ana",
                display_name="Ana",
                service_ids=frozenset({"svc-cut", "svc-color"}),
            ),
            StaffMember(
                id="staff-b",
                business_id=BUSINESS_ID,
                user_id="u-beto",
                display_name="Beto",
                service_ids=frozenset({"svc-cut"}),
            ),
            StaffMember(
                id="staff-c",
                business_id=BUSINESS_ID,
                user_id=None,
                display_name="Carlos",
                is_active=False,
                service_ids=frozenset({"svc-cut"}),
            ),
        ],
    )


def build_engine(
    directory: MemoryDirectory | None = None,
    store: AppointmentStorePort | None = None,
    notifier: RecordingNotifier | None = None,
    policy: str = "first_available",
    dispatcher: DispatcherPort | None = None,
) -> Engine:
    directory = directory or build_directory()
    store = store or MemoryAppointmentStore()
    notifier = notifier or RecordingNotifier()
    reporter = LoggingErrorReporter()
    fanout = NotificationFanout(
        directory=directory,
        notifier=notifier,
        dispatcher=dispatcher or InlineDispatcher(),
        reporter=reporter,
    )
    availability = AvailabilityIndex(store=store, directory=directory)
    book = BookAppointmentUseCase(
        directory=directory,
        store=store,
        availability=availability,
        policy=get_policy(policy),
        fanout=fanout,
    )
    return Engine(
        directory=directory,
        store=store,
        notifier=notifier,
        reporter=reporter,
        fanout=fanout,
        book=book,
        lifecycle=StatusLifecycle(store=store, fanout=fanout),
        slots=AvailableSlotsUseCase(directory=directory, availability=availability),
    )


def guest_request(start_time: str = "10:00", **overrides: Any) -> BookingRequest:
    fields: dict[str, Any] = {
        "business_id": BUSINESS_ID,
        "service_id": "svc-cut",
        "date": DAY,
        "start_time": start_time,
        "guest_name": "Gina Guest",
        "guest_email": "gina@mail.test",
        "guest_phone": "555-0199",
    }
    fields.update(overrides)
    return BookingRequest(**fields)


def client_request(start_time: str = "10:00", **overrides: Any) -> BookingRequest:
    fields: dict[str, Any] = {
        "business_id": BUSINESS_ID,
        "service_id": "svc-cut",
        "date": DAY,
        "start_time": start_time,
        "client_id": "u-client",
    }
    fields.update(overrides)
    return BookingRequest(**fields)


@pytest.fixture
def engine() -> Engine:
    return build_engine()
