from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from booking_assistant.domain.entities.business_profile import BusinessProfile


class BusinessDirectoryPort(ABC):
    @abstractmethod
    def get_business_profile(self, business_id: str) -> BusinessProfile | None:
        raise NotImplementedError

    @abstractmethod
    def get_business_hours(self, business_id: str) -> str | dict[str, Any] | None:
        """Raw schedule as stored for the business (JSON string or mapping)."""
        raise NotImplementedError
