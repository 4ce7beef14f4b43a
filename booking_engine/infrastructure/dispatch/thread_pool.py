from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from booking_engine.application.ports.dispatcher import DispatcherPort


class ThreadPoolDispatcher(DispatcherPort):
    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")
        self._logger = logging.getLogger(__name__)

    def submit(self, task: Callable[[], None]) -> None:
        future = self._executor.submit(task)
        future.add_done_callback(self._log_failure)

    def _log_failure(self, future: Future) -> None:
        error = future.exception()
        if error is not None:
            self._logger.error("Background task failed", extra={"error": str(error)})

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
