from __future__ import annotations

from typing import Any, Protocol

from booking_engine.application.ports.notifier import NotifierPort
from booking_engine.infrastructure.notifications.memory_inbox import MemoryInbox


class EmailSender(Protocol):
    def send(self, template: str, recipient: str, data: dict[str, Any]) -> str: ...


class Notifier(NotifierPort):
    def __init__(self, email_sender: EmailSender, inbox: MemoryInbox) -> None:
        self._email_sender = email_sender
        self._inbox = inbox

    def send_email(self, template: str, recipient: str, data: dict[str, Any]) -> None:
        self._email_sender.send(template=template, recipient=recipient, data=data)

    def create_in_app_notification(self, user_id: str, type: str, payload: dict[str, Any]) -> None:
        self._inbox.add(user_id, type, payload)
