from abc import ABC, abstractmethod
from typing import Any


class NotifierPort(ABC):
    @abstractmethod
    def notify(self, kind: str, recipient: str, payload: dict[str, Any]) -> None:
        """Deliver an email or SMS notification. Failures raise; callers log and continue."""
        raise NotImplementedError
