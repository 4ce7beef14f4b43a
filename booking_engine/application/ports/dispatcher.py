from abc import ABC, abstractmethod
from typing import Callable


class DispatcherPort(ABC):
    @abstractmethod
    def submit(self, task: Callable[[], None]) -> None:
        """
        Schedule a task to run after the caller returns; must not raise for
        task errors. Raises RuntimeError once shutdown has begun.
        """
        raise NotImplementedError

    @abstractmethod
    def shutdown(self, wait: bool = True) -> None:
        raise NotImplementedError
