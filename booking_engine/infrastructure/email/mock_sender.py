from __future__ import annotations

import logging
import threading
from typing import Any

from booking_engine.infrastructure.email.templates import render


class MockEmailSender:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def send(self, template: str, recipient: str, data: dict[str, Any]) -> str:
        subject, text = render(template, data)
        with self._lock:
            email_id = f"mock_email_{len(self.sent) + 1}"
            self.sent.append({"id": email_id, "to": recipient, "template": template, "subject": subject, "text": text})
        self._logger.info("Mock email sent", extra={"recipient": recipient, "template": template, "subject": subject})
        return email_id

    def close(self) -> None:
        pass
