from __future__ import annotations

import copy
import threading
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from booking_assistant.application.exceptions import NotFound
from booking_assistant.application.ports.chat_transport import ChatTransportPort
from booking_assistant.application.ports.conversation_store import ConversationStorePort
from booking_assistant.domain.entities.appointment_draft import AppointmentDraft
from booking_assistant.domain.entities.chat_room import ChatRoom
from booking_assistant.domain.entities.message import Turn
from booking_assistant.infrastructure.store.base import DocumentAppointmentStore


class MemoryChatRoomStore(DocumentAppointmentStore, ConversationStorePort, ChatTransportPort):
    def __init__(
        self,
        clock: Callable[[], datetime],
        history_limit: int = 50,
        duplicate_window_minutes: int = 5,
        verify_attempts: int = 3,
        retry_backoff_seconds: float = 0.05,
    ) -> None:
        super().__init__(clock, duplicate_window_minutes, verify_attempts, retry_backoff_seconds)
        self._rooms: dict[str, dict[str, Any]] = {}
        self._history_limit = history_limit
        self._lock = threading.RLock()

    def create_chat_room(self, business_id: str, user_id: str | None = None) -> ChatRoom:
        room_id = uuid.uuid4().hex
        with self._lock:
            self._rooms[room_id] = {
                "id": room_id,
                "business_id": business_id,
                "user_id": user_id,
                "draft": AppointmentDraft().to_dict(),
                "messages": [],
                "appointments": [],
                "created_at": self._clock().isoformat(),
            }
        return ChatRoom(id=room_id, business_id=business_id, user_id=user_id)

    def get_chat_room(self, chat_room_id: str) -> ChatRoom | None:
        room = self._rooms.get(chat_room_id)
        if room is None:
            return None
        return ChatRoom(id=room["id"], business_id=room["business_id"], user_id=room.get("user_id"))

    def get_draft(self, chat_room_id: str) -> AppointmentDraft:
        return AppointmentDraft.from_dict(self._room(chat_room_id).get("draft"))

    def set_draft(self, chat_room_id: str, draft: AppointmentDraft) -> None:
        with self._lock:
            self._room(chat_room_id)["draft"] = draft.to_dict()

    def append_message(self, chat_room_id: str, role: str, content: str) -> None:
        self._append(chat_room_id, {"role": role, "content": content})

    def post_message(self, chat_room_id: str, sender_type: str, content: str) -> None:
        self._append(chat_room_id, {"role": "system", "sender_type": sender_type, "content": content})

    def get_recent_messages(self, chat_room_id: str, limit: int = 10) -> list[Turn]:
        messages = self._room(chat_room_id)["messages"][-limit:]
        return [Turn(role=m["role"], content=m["content"]) for m in messages]

    def _append(self, chat_room_id: str, message: dict[str, Any]) -> None:
        message["created_at"] = self._clock().isoformat()
        with self._lock:
            room = self._room(chat_room_id)
            room["messages"].append(message)
            if len(room["messages"]) > self._history_limit:
                room["messages"] = room["messages"][-self._history_limit :]

    def _room(self, chat_room_id: str) -> dict[str, Any]:
        room = self._rooms.get(chat_room_id)
        if room is None:
            raise NotFound(f"Chat room {chat_room_id} not found")
        return room

    def _load_records(self, chat_room_id: str) -> list[dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._room(chat_room_id)["appointments"])

    def _insert_record(self, chat_room_id: str, record: dict[str, Any]) -> None:
        with self._lock:
            self._room(chat_room_id)["appointments"].append(copy.deepcopy(record))

    def _apply_patch(self, chat_room_id: str, appointment_id: str, patch: dict[str, Any]) -> bool:
        with self._lock:
            for record in self._room(chat_room_id)["appointments"]:
                if record.get("id") == appointment_id:
                    record.update(copy.deepcopy(patch))
                    return True
        return False

    def _iter_all_records(self) -> Iterable[dict[str, Any]]:
        with self._lock:
            records = [record for room in self._rooms.values() for record in room["appointments"]]
            return copy.deepcopy(records)
