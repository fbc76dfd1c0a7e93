from __future__ import annotations

import logging
from typing import Any

from booking_assistant.application.ports.notifier import NotifierPort


class LoggingNotifier(NotifierPort):
    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def notify(self, kind: str, recipient: str, payload: dict[str, Any]) -> None:
        self._logger.info(
            "Mock notification",
            extra={"reason": kind, "appointment_id": payload.get("id"), "business_id": payload.get("business_id")},
        )
