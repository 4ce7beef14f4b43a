from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from booking_engine.domain.entities.notification import InAppNotification


def _title_and_message(type_: str, payload: dict[str, Any]) -> tuple[str, str]:
    business = payload.get("business_name", "")
    service = payload.get("service_name", "")
    when = f"{payload.get('date', '')} at {payload.get('time', '')}"
    if type_ == "APPOINTMENT_CONFIRMED":
        return "Appointment confirmed", f"Your appointment at {business} for {service} on {when} is confirmed"
    if type_ == "APPOINTMENT_CANCELLED":
        if payload.get("cancelled_by") == "customer":
            return "Appointment cancelled", f"{payload.get('customer_name') or 'The customer'} cancelled {service} on {when}"
        return "Appointment cancelled", f"Your appointment at {business} for {service} on {when} was cancelled"
    if type_ == "NEW_APPOINTMENT":
        return "New booking", f"{payload.get('customer_name', '')} booked {service} on {when}"
    return type_.replace("_", " ").title(), ""


class MemoryInbox:
    """In-app notification inbox per user."""

    def __init__(self) -> None:
        self._items: dict[str, list[InAppNotification]] = {}
        self._lock = threading.Lock()

    def add(self, user_id: str, type_: str, payload: dict[str, Any]) -> InAppNotification:
        title, message = _title_and_message(type_, payload)
        notification = InAppNotification(
            id=uuid.uuid4().hex,
            user_id=user_id,
            type=type_,
            title=title,
            message=message,
            data={"appointment_id": payload.get("appointment_id")},
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._items.setdefault(user_id, []).append(notification)
        return notification

    def for_user(self, user_id: str, unread_only: bool = False) -> list[InAppNotification]:
        with self._lock:
            items = list(self._items.get(user_id, []))
        if unread_only:
            items = [n for n in items if not n.is_read]
        return sorted(items, key=lambda n: n.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
