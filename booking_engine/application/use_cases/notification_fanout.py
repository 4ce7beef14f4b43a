from __future__ import annotations

import logging
from functools import partial
from typing import Any

from booking_engine.application.ports.directory import DirectoryPort
from booking_engine.application.ports.dispatcher import DispatcherPort
from booking_engine.application.ports.notifier import NotifierPort
from booking_engine.application.ports.observability import ErrorReporterPort
from booking_engine.domain.entities.appointment import Appointment, CancellationInitiator
from booking_engine.domain.entities.business import UserContact
from booking_engine.domain.entities.notification import (
    Channel,
    Delivery,
    LifecycleEvent,
    LifecycleEventKind,
    RecipientRole,
)

IN_APP_CONFIRMED = "APPOINTMENT_CONFIRMED"
IN_APP_CANCELLED = "APPOINTMENT_CANCELLED"
IN_APP_NEW = "NEW_APPOINTMENT"

EMAIL_RECEIVED = "appointment_received"
EMAIL_CONFIRMED = "appointment_confirmed"
EMAIL_NEW = "new_appointment"
EMAIL_CANCELLED = "appointment_cancelled"


class NotificationFanout:
    """
    Turns a lifecycle event into independent email/in-app deliveries.

    Everything runs on the dispatcher after the triggering write committed.
    A failing delivery is logged and reported; it never stops the other
    deliveries and never reaches the booking or transition caller.
    """

    def __init__(
        self,
        directory: DirectoryPort,
        notifier: NotifierPort,
        dispatcher: DispatcherPort,
        reporter: ErrorReporterPort,
    ) -> None:
        self._directory = directory
        self._notifier = notifier
        self._dispatcher = dispatcher
        self._reporter = reporter
        self._logger = logging.getLogger(__name__)

    def publish(self, event: LifecycleEvent) -> None:
        try:
            self._dispatcher.submit(partial(self._fan_out, event))
        except Exception as e:
            self._logger.error(
                "Could not schedule notifications",
                extra={"appointment_id": event.appointment.id, "event": event.kind.value, "error": str(e)},
            )
            self._reporter.report(e, {"appointment_id": event.appointment.id, "event": event.kind.value})

    def _fan_out(self, event: LifecycleEvent) -> None:
        try:
            deliveries = self.plan(event)
        except Exception as e:
            self._logger.error(
                "Could not plan notifications",
                extra={"appointment_id": event.appointment.id, "event": event.kind.value, "error": str(e)},
            )
            self._reporter.report(e, {"appointment_id": event.appointment.id, "event": event.kind.value})
            return

        for delivery in deliveries:
            try:
                self._dispatcher.submit(partial(self._deliver, event, delivery))
            except RuntimeError as e:
                # Dispatcher is shutting down; this worker still runs, so deliver here.
                self._logger.warning(
                    "Dispatcher closed, delivering inline",
                    extra={"appointment_id": event.appointment.id, "event": event.kind.value, "error": str(e)},
                )
                self._deliver(event, delivery)

    def _deliver(self, event: LifecycleEvent, delivery: Delivery) -> bool:
        context = {
            "appointment_id": event.appointment.id,
            "event": event.kind.value,
            "channel": delivery.channel.value,
            "role": delivery.role.value,
            "recipient": delivery.recipient,
            "template": delivery.template,
        }
        try:
            if delivery.channel == Channel.EMAIL:
                self._notifier.send_email(delivery.template, delivery.recipient, delivery.data)
            else:
                self._notifier.create_in_app_notification(delivery.recipient, delivery.template, delivery.data)
        except Exception as e:
            self._logger.error("Notification delivery failed", extra={**context, "error": str(e)})
            self._reporter.report(e, context)
            return False
        self._logger.info("Notification delivered", extra=context)
        return True

    def plan(self, event: LifecycleEvent) -> list[Delivery]:
        appointment = event.appointment
        data = self._template_data(appointment)
        customer = self._customer_contact(appointment)
        owner = self._owner_contact(appointment.business_id)
        staff_user_id = self._staff_user_id(appointment.staff_member_id)

        deliveries: list[Delivery] = []

        def email(role: RecipientRole, contact: UserContact | None, template: str, **extra: Any) -> None:
            if contact is None or not contact.email:
                self._logger.info(
                    "Skipping email without address",
                    extra={"appointment_id": appointment.id, "role": role.value, "template": template},
                )
                return
            deliveries.append(Delivery(Channel.EMAIL, role, contact.email, template, {**data, **extra}))

        def in_app(role: RecipientRole, user_id: str | None, type_: str, **extra: Any) -> None:
            if not user_id:
                return
            deliveries.append(Delivery(Channel.IN_APP, role, user_id, type_, {**data, **extra}))

        if event.kind == LifecycleEventKind.BOOKING_CREATED:
            email(RecipientRole.CUSTOMER, customer, EMAIL_RECEIVED)
            email(RecipientRole.OWNER, owner, EMAIL_NEW)
            in_app(RecipientRole.OWNER, owner.id if owner else None, IN_APP_NEW)
            in_app(RecipientRole.STAFF, staff_user_id, IN_APP_NEW)

        elif event.kind == LifecycleEventKind.CONFIRMED:
            email(RecipientRole.CUSTOMER, customer, EMAIL_CONFIRMED)
            in_app(RecipientRole.CUSTOMER, appointment.client_id, IN_APP_CONFIRMED)
            in_app(RecipientRole.OWNER, owner.id if owner else None, IN_APP_NEW, status="CONFIRMED")
            in_app(RecipientRole.STAFF, staff_user_id, IN_APP_NEW, status="CONFIRMED")

        elif event.kind == LifecycleEventKind.CANCELLED:
            initiator = event.initiator or CancellationInitiator.BUSINESS
            extra = {"cancelled_by": initiator.value}
            if initiator == CancellationInitiator.CUSTOMER:
                email(RecipientRole.OWNER, owner, EMAIL_CANCELLED, **extra)
                in_app(RecipientRole.OWNER, owner.id if owner else None, IN_APP_CANCELLED, **extra)
                in_app(RecipientRole.STAFF, staff_user_id, IN_APP_CANCELLED, **extra)
            else:
                email(RecipientRole.CUSTOMER, customer, EMAIL_CANCELLED, **extra)
            in_app(RecipientRole.CUSTOMER, appointment.client_id, IN_APP_CANCELLED, **extra)

        return _dedupe(deliveries)

    def _template_data(self, appointment: Appointment) -> dict[str, Any]:
        business = self._directory.get_business(appointment.business_id)
        service = self._directory.get_service(appointment.service_id)
        staff = self._directory.get_staff_member(appointment.staff_member_id)
        customer = self._customer_contact(appointment)
        return {
            "appointment_id": appointment.id,
            "business_name": business.name if business else "",
            "address": business.address if business else None,
            "currency": business.currency if business else None,
            "service_name": service.name if service else "",
            "staff_name": staff.display_name if staff else "",
            "customer_name": customer.full_name if customer else "",
            "customer_phone": customer.phone if customer else None,
            "date": appointment.date.isoformat(),
            "time": appointment.start_time,
            "end_time": appointment.end_time,
            "price": str(appointment.price),
        }

    def _customer_contact(self, appointment: Appointment) -> UserContact | None:
        if appointment.client_id:
            return self._directory.get_user_contact(appointment.client_id)
        guest = appointment.guest
        if guest is None:
            return None
        return UserContact(id="", email=guest.email, first_name=guest.name, phone=guest.phone)

    def _owner_contact(self, business_id: str) -> UserContact | None:
        business = self._directory.get_business(business_id)
        if business is None:
            return None
        return self._directory.get_user_contact(business.owner_id) or UserContact(id=business.owner_id, email=None)

    def _staff_user_id(self, staff_member_id: str) -> str | None:
        staff = self._directory.get_staff_member(staff_member_id)
        return staff.user_id if staff else None


def _dedupe(deliveries: list[Delivery]) -> list[Delivery]:
    # The owner can also be the assigned staff member; notify that user once.
    seen: set[tuple[Channel, str]] = set()
    unique: list[Delivery] = []
    for delivery in deliveries:
        key = (delivery.channel, delivery.recipient)
        if key in seen:
            continue
        seen.add(key)
        unique.append(delivery)
    return unique
