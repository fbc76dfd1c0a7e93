from __future__ import annotations

import logging
import threading
import time
from abc import abstractmethod
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import Any

from booking_assistant.application.exceptions import NotFound, PersistenceUncertain
from booking_assistant.application.ports.appointment_store import AppointmentStorePort
from booking_assistant.application.utils.date_parser import normalize_time
from booking_assistant.domain.entities.appointment import Appointment


class DocumentAppointmentStore(AppointmentStorePort):
    """
    Appointment storage over chat-room documents.

    Subclasses provide the record primitives; this class owns duplicate
    suppression on create and the read-after-write verification on update.
    """

    def __init__(
        self,
        clock: Callable[[], datetime],
        duplicate_window_minutes: int = 5,
        verify_attempts: int = 3,
        retry_backoff_seconds: float = 0.05,
    ) -> None:
        self._clock = clock
        self._duplicate_window = timedelta(minutes=duplicate_window_minutes)
        self._verify_attempts = max(1, verify_attempts)
        self._retry_backoff_seconds = retry_backoff_seconds
        self._create_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @abstractmethod
    def _load_records(self, chat_room_id: str) -> list[dict[str, Any]]:
        """Appointment records of one chat room; raises NotFound for an unknown room."""
        raise NotImplementedError

    @abstractmethod
    def _insert_record(self, chat_room_id: str, record: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def _apply_patch(self, chat_room_id: str, appointment_id: str, patch: dict[str, Any]) -> bool:
        """Atomically merge ``patch`` into one record; False when the record is absent."""
        raise NotImplementedError

    @abstractmethod
    def _iter_all_records(self) -> Iterable[dict[str, Any]]:
        raise NotImplementedError

    def create(self, appointment: Appointment) -> Appointment:
        now = self._clock()
        with self._create_lock:
            existing = self._find_recent_duplicate(appointment, now)
            if existing is not None:
                self._logger.info(
                    "Duplicate appointment suppressed",
                    extra={"chat_room_id": appointment.chat_room_id, "appointment_id": existing.id},
                )
                return existing

            record = appointment.to_dict()
            record["created_at"] = (appointment.created_at or now).isoformat()
            record["updated_at"] = now.isoformat()
            self._insert_record(appointment.chat_room_id, record)

        self._logger.info(
            "Appointment created",
            extra={"chat_room_id": appointment.chat_room_id, "appointment_id": appointment.id},
        )
        return Appointment.from_dict(record)

    def find_by_id(self, chat_room_id: str, appointment_id: str) -> Appointment | None:
        record = self._find_record(chat_room_id, appointment_id)
        return Appointment.from_dict(record) if record is not None else None

    def update(self, chat_room_id: str, appointment_id: str, patch: dict[str, Any]) -> Appointment:
        patch = dict(patch)
        patch["updated_at"] = self._clock().isoformat()

        for attempt in range(1, self._verify_attempts + 1):
            if not self._apply_patch(chat_room_id, appointment_id, patch):
                raise NotFound(f"Appointment {appointment_id} not found in chat room {chat_room_id}")

            record = self._find_record(chat_room_id, appointment_id)
            if record is not None and _patch_landed(record, patch):
                return Appointment.from_dict(record)

            self._logger.warning(
                "Update not visible on re-read, retrying",
                extra={"chat_room_id": chat_room_id, "appointment_id": appointment_id, "reason": f"attempt {attempt}"},
            )
            if attempt < self._verify_attempts:
                time.sleep(self._retry_backoff_seconds)

        self._logger.error(
            "Update could not be verified",
            extra={"chat_room_id": chat_room_id, "appointment_id": appointment_id},
        )
        raise PersistenceUncertain(chat_room_id, appointment_id, self._verify_attempts)

    def list_for_chat_room(self, chat_room_id: str) -> list[Appointment]:
        return [Appointment.from_dict(record) for record in self._load_records(chat_room_id)]

    def find_for_slot(self, business_id: str, date: str, time: str) -> list[Appointment]:
        wanted = normalize_time(time) or time
        return [
            Appointment.from_dict(record)
            for record in self._iter_all_records()
            if record.get("business_id") == business_id
            and record.get("preferred_date") == date
            and (normalize_time(record.get("preferred_time")) or record.get("preferred_time")) == wanted
        ]

    def _find_record(self, chat_room_id: str, appointment_id: str) -> dict[str, Any] | None:
        for record in self._load_records(chat_room_id):
            if record.get("id") == appointment_id:
                return record
        return None

    def _find_recent_duplicate(self, appointment: Appointment, now: datetime) -> Appointment | None:
        try:
            records = self._load_records(appointment.chat_room_id)
        except NotFound:
            return None

        key = _duplicate_key(appointment.to_dict())
        cutoff = now - self._duplicate_window
        for record in records:
            if _duplicate_key(record) != key:
                continue
            touched = [
                datetime.fromisoformat(value)
                for value in (record.get("created_at"), record.get("updated_at"))
                if value
            ]
            if touched and max(touched) >= cutoff:
                return Appointment.from_dict(record)
        return None


def _duplicate_key(record: dict[str, Any]) -> tuple[str, str, str, str]:
    return (
        (record.get("service") or "").strip().lower(),
        record.get("preferred_date") or "",
        normalize_time(record.get("preferred_time")) or (record.get("preferred_time") or ""),
        (record.get("customer_name") or "").strip().lower(),
    )


def _patch_landed(record: dict[str, Any], patch: dict[str, Any]) -> bool:
    return all(record.get(key) == value for key, value in patch.items())
