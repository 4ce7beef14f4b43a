from __future__ import annotations

import logging

from booking_engine.application.exceptions import AppointmentNotFound, InvalidTransition
from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.application.use_cases.notification_fanout import NotificationFanout
from booking_engine.domain.entities.appointment import (
    Appointment,
    AppointmentStatus,
    CancellationInitiator,
)
from booking_engine.domain.entities.notification import LifecycleEvent, LifecycleEventKind

S = AppointmentStatus

INITIAL_STATUS = S.PENDING

TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.CHECKED_IN, S.IN_PROGRESS, S.COMPLETED, S.CANCELLED, S.NO_SHOW}),
    S.CHECKED_IN: frozenset({S.IN_PROGRESS, S.COMPLETED, S.NO_SHOW}),
    S.IN_PROGRESS: frozenset({S.COMPLETED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    # Same-state moves are never edges, so repeats are rejected rather than ignored.
    return target in TRANSITIONS.get(current, frozenset())


class StatusLifecycle:
    def __init__(self, store: AppointmentStorePort, fanout: NotificationFanout) -> None:
        self._store = store
        self._fanout = fanout
        self._logger = logging.getLogger(__name__)

    def transition(
        self,
        appointment_id: str,
        new_status: AppointmentStatus | str,
        initiator: CancellationInitiator | None = None,
    ) -> Appointment:
        target = _coerce_status(new_status)
        current = self._store.get_appointment(appointment_id)
        if current is None:
            raise AppointmentNotFound(f"Appointment {appointment_id} not found")

        if not can_transition(current.status, target):
            raise InvalidTransition(f"Cannot move appointment from {current.status.value} to {target.value}")

        cancelled_by = None
        if target == S.CANCELLED:
            cancelled_by = initiator or CancellationInitiator.BUSINESS

        updated = self._store.update_status(
            appointment_id,
            new_status=target,
            expected_status=current.status,
            cancelled_by=cancelled_by,
        )
        if updated is None:
            # Another caller changed the status between our read and write.
            latest = self._store.get_appointment(appointment_id)
            latest_status = latest.status.value if latest else "unknown"
            raise InvalidTransition(
                f"Appointment {appointment_id} changed to {latest_status} concurrently; "
                f"cannot move to {target.value}"
            )

        self._logger.info(
            "Appointment status changed",
            extra={"appointment_id": appointment_id, "status": target.value, "previous": current.status.value},
        )

        if target == S.CONFIRMED:
            self._fanout.publish(LifecycleEvent(kind=LifecycleEventKind.CONFIRMED, appointment=updated))
        elif target == S.CANCELLED:
            self._fanout.publish(
                LifecycleEvent(kind=LifecycleEventKind.CANCELLED, appointment=updated, initiator=cancelled_by)
            )
        return updated

    def cancel(self, appointment_id: str, initiator: CancellationInitiator | str) -> Appointment:
        try:
            who = CancellationInitiator(initiator)
        except ValueError as e:
            raise InvalidTransition(f"Unknown cancellation initiator {initiator!r}") from e
        return self.transition(appointment_id, S.CANCELLED, initiator=who)


def _coerce_status(value: AppointmentStatus | str) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value
    try:
        return AppointmentStatus(str(value).strip().upper())
    except ValueError as e:
        raise InvalidTransition(f"Unknown appointment status {value!r}") from e
