from __future__ import annotations

import logging
from typing import Callable

from booking_engine.application.ports.dispatcher import DispatcherPort


class InlineDispatcher(DispatcherPort):
    """Runs tasks immediately on the calling thread (tests, scripts)."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def submit(self, task: Callable[[], None]) -> None:
        try:
            task()
        except Exception as e:
            self._logger.error("Background task failed", extra={"error": str(e)})

    def shutdown(self, wait: bool = True) -> None:
        pass
