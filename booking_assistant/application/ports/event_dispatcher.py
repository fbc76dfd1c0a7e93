from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class EventDispatcherPort(ABC):
    @abstractmethod
    def dispatch(self, handler: Callable[[Any], None], event: Any) -> None:
        """Run ``handler(event)`` without letting its failure reach the caller."""
        raise NotImplementedError
