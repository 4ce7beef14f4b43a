from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.application.ports.directory import DirectoryPort
from booking_engine.application.ports.dispatcher import DispatcherPort
from booking_engine.application.use_cases.assignment import get_policy
from booking_engine.application.use_cases.available_slots import AvailableSlotsUseCase
from booking_engine.application.use_cases.availability import AvailabilityIndex
from booking_engine.application.use_cases.book_appointment import BookAppointmentUseCase
from booking_engine.application.use_cases.notification_fanout import NotificationFanout
from booking_engine.application.use_cases.status_lifecycle import StatusLifecycle
from booking_engine.core.config import settings
from booking_engine.infrastructure.directory.memory_directory import MemoryDirectory, load_directory
from booking_engine.infrastructure.dispatch.thread_pool import ThreadPoolDispatcher
from booking_engine.infrastructure.email.mock_sender import MockEmailSender
from booking_engine.infrastructure.email.resend_client import ResendEmailSender
from booking_engine.infrastructure.notifications.memory_inbox import MemoryInbox
from booking_engine.infrastructure.notifications.notifier import EmailSender, Notifier
from booking_engine.infrastructure.observability.logging_reporter import LoggingErrorReporter
from booking_engine.infrastructure.store.json_store import JsonAppointmentStore
from booking_engine.infrastructure.store.memory_store import MemoryAppointmentStore


@dataclass
class Container:
    directory: DirectoryPort
    store: AppointmentStorePort
    inbox: MemoryInbox
    email_sender: EmailSender
    reporter: LoggingErrorReporter
    dispatcher: DispatcherPort
    fanout: NotificationFanout
    book_appointment: BookAppointmentUseCase
    available_slots: AvailableSlotsUseCase
    lifecycle: StatusLifecycle


_container: Container | None = None
_container_lock = threading.Lock()


def get_directory() -> DirectoryPort:
    if settings.DIRECTORY_SEED_PATH:
        return load_directory(settings.DIRECTORY_SEED_PATH, default_timezone=settings.DEFAULT_TIMEZONE)
    return MemoryDirectory()


def get_store() -> AppointmentStorePort:
    if settings.STORE_PROVIDER.lower() == "json":
        return JsonAppointmentStore(data_dir=settings.DATA_DIR)
    return MemoryAppointmentStore()


def get_email_sender() -> EmailSender:
    logger = logging.getLogger(__name__)
    if not settings.RESEND_API_KEY or settings.ENV.lower() in {"dev", "local"}:
        logger.info("Using MockEmailSender (ENV=%s, key present=%s)", settings.ENV, bool(settings.RESEND_API_KEY))
        return MockEmailSender()
    return ResendEmailSender(
        api_key=settings.RESEND_API_KEY,
        from_email=settings.EMAIL_FROM,
        base_url=settings.RESEND_BASE_URL,
    )


def build_container(
    directory: DirectoryPort | None = None,
    store: AppointmentStorePort | None = None,
    email_sender: EmailSender | None = None,
    dispatcher: DispatcherPort | None = None,
    policy_name: str | None = None,
) -> Container:
    directory = directory or get_directory()
    store = store or get_store()
    email_sender = email_sender or get_email_sender()
    dispatcher = dispatcher or ThreadPoolDispatcher(max_workers=settings.NOTIFICATION_WORKERS)
    inbox = MemoryInbox()
    reporter = LoggingErrorReporter()

    fanout = NotificationFanout(
        directory=directory,
        notifier=Notifier(email_sender=email_sender, inbox=inbox),
        dispatcher=dispatcher,
        reporter=reporter,
    )
    availability = AvailabilityIndex(store=store, directory=directory)
    book_appointment = BookAppointmentUseCase(
        directory=directory,
        store=store,
        availability=availability,
        policy=get_policy(policy_name or settings.ASSIGNMENT_POLICY),
        fanout=fanout,
    )
    return Container(
        directory=directory,
        store=store,
        inbox=inbox,
        email_sender=email_sender,
        reporter=reporter,
        dispatcher=dispatcher,
        fanout=fanout,
        book_appointment=book_appointment,
        available_slots=AvailableSlotsUseCase(directory=directory, availability=availability),
        lifecycle=StatusLifecycle(store=store, fanout=fanout),
    )


def get_container() -> Container:
    global _container
    with _container_lock:
        if _container is None:
            _container = build_container()
        return _container


def set_container(container: Container | None) -> None:
    global _container
    with _container_lock:
        _container = container


def shutdown_container() -> None:
    global _container
    with _container_lock:
        container, _container = _container, None
    if container is None:
        return
    container.dispatcher.shutdown(wait=True)
    close = getattr(container.email_sender, "close", None)
    if close is not None:
        close()


def get_book_appointment_use_case() -> BookAppointmentUseCase:
    return get_container().book_appointment


def get_available_slots_use_case() -> AvailableSlotsUseCase:
    return get_container().available_slots


def get_status_lifecycle() -> StatusLifecycle:
    return get_container().lifecycle


def get_appointment_store() -> AppointmentStorePort:
    return get_container().store
