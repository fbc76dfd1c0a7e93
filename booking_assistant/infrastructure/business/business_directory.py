from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from booking_assistant.application.ports.business_directory import BusinessDirectoryPort
from booking_assistant.domain.entities.business_profile import BusinessProfile
from booking_assistant.infrastructure.business.business_directory_data import DEMO_BUSINESSES


class InMemoryBusinessDirectory(BusinessDirectoryPort):
    def __init__(self, businesses: dict[str, dict[str, Any]] | None = None) -> None:
        self._businesses = dict(DEMO_BUSINESSES if businesses is None else businesses)

    def get_business_profile(self, business_id: str) -> BusinessProfile | None:
        payload = self._businesses.get(business_id)
        if payload is None:
            return None
        return BusinessProfile.from_payload(business_id, payload)

    def get_business_hours(self, business_id: str) -> str | dict[str, Any] | None:
        payload = self._businesses.get(business_id)
        return payload.get("hours") if payload else None

    def add(self, business_id: str, payload: dict[str, Any]) -> None:
        self._businesses[business_id] = payload


def load_business_directory(path: str | None) -> InMemoryBusinessDirectory:
    """Load ``{business_id: profile}`` from a JSON file, or the demo businesses."""
    logger = logging.getLogger(__name__)
    if not path:
        return InMemoryBusinessDirectory()

    file_path = Path(path)
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Business directory {file_path} must contain a JSON object keyed by business id")

    logger.info("Loaded business directory", extra={"reason": f"{file_path} ({len(data)} businesses)"})
    return InMemoryBusinessDirectory(data)
