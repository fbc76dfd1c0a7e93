from abc import ABC, abstractmethod

from booking_assistant.domain.entities.appointment_draft import AppointmentDraft
from booking_assistant.domain.entities.chat_room import ChatRoom
from booking_assistant.domain.entities.message import Turn


class ConversationStorePort(ABC):
    @abstractmethod
    def create_chat_room(self, business_id: str, user_id: str | None = None) -> ChatRoom:
        raise NotImplementedError

    @abstractmethod
    def get_chat_room(self, chat_room_id: str) -> ChatRoom | None:
        raise NotImplementedError

    @abstractmethod
    def get_draft(self, chat_room_id: str) -> AppointmentDraft:
        raise NotImplementedError

    @abstractmethod
    def set_draft(self, chat_room_id: str, draft: AppointmentDraft) -> None:
        raise NotImplementedError

    @abstractmethod
    def append_message(self, chat_room_id: str, role: str, content: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_recent_messages(self, chat_room_id: str, limit: int = 10) -> list[Turn]:
        """
        Get recent messages for context.
        Returns the last N turns of the chat room, oldest first.
        """
        raise NotImplementedError
