from abc import ABC, abstractmethod
from typing import Any


class ErrorReporterPort(ABC):
    @abstractmethod
    def report(self, error: BaseException, context: dict[str, Any]) -> None:
        raise NotImplementedError
