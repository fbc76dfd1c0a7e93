from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from booking_assistant.domain.entities.appointment import Appointment


class AppointmentStorePort(ABC):
    @abstractmethod
    def create(self, appointment: Appointment) -> Appointment:
        """Insert an appointment, or return a matching one created in the duplicate window."""
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, chat_room_id: str, appointment_id: str) -> Appointment | None:
        raise NotImplementedError

    @abstractmethod
    def update(self, chat_room_id: str, appointment_id: str, patch: dict[str, Any]) -> Appointment:
        """
        Apply ``patch`` to one appointment and verify it by re-reading.

        Raises:
            NotFound: the appointment is not in that chat room
            PersistenceUncertain: the patch could not be verified after retries
        """
        raise NotImplementedError

    @abstractmethod
    def list_for_chat_room(self, chat_room_id: str) -> list[Appointment]:
        raise NotImplementedError

    @abstractmethod
    def find_for_slot(self, business_id: str, date: str, time: str) -> list[Appointment]:
        """All appointments of a business booked at that date and (normalized) time."""
        raise NotImplementedError
