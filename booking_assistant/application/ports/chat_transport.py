from abc import ABC, abstractmethod


class ChatTransportPort(ABC):
    @abstractmethod
    def post_message(self, chat_room_id: str, sender_type: str, content: str) -> None:
        """Append a system-authored message to a chat room ("BUSINESS" or "USER" sender)."""
        raise NotImplementedError
