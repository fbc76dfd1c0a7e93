from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_assistant.application.ports.notifier import NotifierPort


class WebhookNotifier(NotifierPort):
    """Hands email/SMS notifications to a delivery webhook as JSON."""

    def __init__(self, endpoint: str, client: httpx.Client | None = None, timeout_seconds: float = 10.0) -> None:
        self._endpoint = endpoint
        self._client = client or httpx.Client(timeout=timeout_seconds)
        self._logger = logging.getLogger(__name__)

    def notify(self, kind: str, recipient: str, payload: dict[str, Any]) -> None:
        channel = "email" if "@" in recipient else "sms"
        body = {"kind": kind, "channel": channel, "recipient": recipient, "data": payload}
        resp = self._client.post(self._endpoint, json=body)
        if resp.status_code >= 400:
            self._logger.error(
                "Notification webhook failed",
                extra={
                    "status": resp.status_code,
                    "reason": kind,
                    "appointment_id": payload.get("id"),
                    "error": resp.text[:200],
                },
            )
            resp.raise_for_status()
