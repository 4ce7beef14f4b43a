from __future__ import annotations

import logging
import threading
from typing import Any

from booking_engine.application.ports.observability import ErrorReporterPort


class LoggingErrorReporter(ErrorReporterPort):
    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self.reported = 0

    def report(self, error: BaseException, context: dict[str, Any]) -> None:
        with self._lock:
            self.reported += 1
        self._logger.error(
            "Reported error",
            extra={"error": f"{type(error).__name__}: {error}", **{k: v for k, v in context.items() if k != "message"}},
        )
