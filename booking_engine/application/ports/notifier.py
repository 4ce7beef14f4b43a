from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class NotifierPort(ABC):
    @abstractmethod
    def send_email(self, template: str, recipient: str, data: dict[str, Any]) -> None:
        """Deliver one templated email. Raises on delivery failure."""
        raise NotImplementedError

    @abstractmethod
    def create_in_app_notification(self, user_id: str, type: str, payload: dict[str, Any]) -> None:
        """Record one in-app notification. Raises on failure."""
        raise NotImplementedError
