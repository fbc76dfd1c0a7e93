from __future__ import annotations

import json
import logging
import threading
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from booking_assistant.application.exceptions import NotFound
from booking_assistant.application.ports.chat_transport import ChatTransportPort
from booking_assistant.application.ports.conversation_store import ConversationStorePort
from booking_assistant.domain.entities.appointment_draft import AppointmentDraft
from booking_assistant.domain.entities.chat_room import ChatRoom
from booking_assistant.domain.entities.message import Turn
from booking_assistant.infrastructure.store.base import DocumentAppointmentStore


class JsonChatRoomStore(DocumentAppointmentStore, ConversationStorePort, ChatTransportPort):
    """One JSON document per chat room holding its draft, messages and appointments."""

    def __init__(
        self,
        clock: Callable[[], datetime],
        data_dir: str = "./data/chat_rooms",
        history_limit: int = 50,
        duplicate_window_minutes: int = 5,
        verify_attempts: int = 3,
        retry_backoff_seconds: float = 0.05,
    ) -> None:
        super().__init__(clock, duplicate_window_minutes, verify_attempts, retry_backoff_seconds)
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._history_limit = history_limit
        self._locks: dict[str, threading.RLock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._json_logger = logging.getLogger(__name__)

    def _get_lock(self, chat_room_id: str) -> threading.RLock:
        """Get or create a lock for a chat_room_id."""
        with self._lock_lock:
            if chat_room_id not in self._locks:
                self._locks[chat_room_id] = threading.RLock()
            return self._locks[chat_room_id]

    def _get_file_path(self, chat_room_id: str) -> Path:
        return self._data_dir / f"{chat_room_id}.json"

    def _load_room(self, chat_room_id: str) -> dict[str, Any]:
        file_path = self._get_file_path(chat_room_id)
        if not file_path.exists():
            raise NotFound(f"Chat room {chat_room_id} not found")
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data.setdefault("messages", [])
        data.setdefault("appointments", [])
        return data

    def _save_room(self, chat_room_id: str, data: dict[str, Any]) -> None:
        """Save chat room data to JSON file atomically."""
        file_path = self._get_file_path(chat_room_id)
        temp_path = file_path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise

    def create_chat_room(self, business_id: str, user_id: str | None = None) -> ChatRoom:
        room_id = uuid.uuid4().hex
        with self._get_lock(room_id):
            self._save_room(
                room_id,
                {
                    "id": room_id,
                    "business_id": business_id,
                    "user_id": user_id,
                    "draft": AppointmentDraft().to_dict(),
                    "messages": [],
                    "appointments": [],
                    "created_at": self._clock().isoformat(),
                    "version": 1,
                },
            )
        return ChatRoom(id=room_id, business_id=business_id, user_id=user_id)

    def get_chat_room(self, chat_room_id: str) -> ChatRoom | None:
        try:
            data = self._load_room(chat_room_id)
        except NotFound:
            return None
        return ChatRoom(id=data["id"], business_id=data["business_id"], user_id=data.get("user_id"))

    def get_draft(self, chat_room_id: str) -> AppointmentDraft:
        return AppointmentDraft.from_dict(self._load_room(chat_room_id).get("draft"))

    def set_draft(self, chat_room_id: str, draft: AppointmentDraft) -> None:
        with self._get_lock(chat_room_id):
            data = self._load_room(chat_room_id)
            data["draft"] = draft.to_dict()
            self._save_room(chat_room_id, data)

    def append_message(self, chat_room_id: str, role: str, content: str) -> None:
        self._append(chat_room_id, {"role": role, "content": content})

    def post_message(self, chat_room_id: str, sender_type: str, content: str) -> None:
        self._append(chat_room_id, {"role": "system", "sender_type": sender_type, "content": content})

    def get_recent_messages(self, chat_room_id: str, limit: int = 10) -> list[Turn]:
        messages = self._load_room(chat_room_id)["messages"][-limit:]
        return [Turn(role=m["role"], content=m["content"]) for m in messages]

    def _append(self, chat_room_id: str, message: dict[str, Any]) -> None:
        message["created_at"] = self._clock().isoformat()
        with self._get_lock(chat_room_id):
            data = self._load_room(chat_room_id)
            messages = data["messages"]
            messages.append(message)
            data["messages"] = messages[-self._history_limit :]
            self._save_room(chat_room_id, data)

    def _load_records(self, chat_room_id: str) -> list[dict[str, Any]]:
        return self._load_room(chat_room_id)["appointments"]

    def _insert_record(self, chat_room_id: str, record: dict[str, Any]) -> None:
        with self._get_lock(chat_room_id):
            data = self._load_room(chat_room_id)
            data["appointments"].append(record)
            self._save_room(chat_room_id, data)

    def _apply_patch(self, chat_room_id: str, appointment_id: str, patch: dict[str, Any]) -> bool:
        with self._get_lock(chat_room_id):
            data = self._load_room(chat_room_id)
            for record in data["appointments"]:
                if record.get("id") == appointment_id:
                    record.update(patch)
                    self._save_room(chat_room_id, data)
                    return True
        return False

    def _iter_all_records(self) -> Iterable[dict[str, Any]]:
        for file_path in sorted(self._data_dir.glob("*.json")):
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                self._json_logger.warning(
                    "Skipping unreadable chat room file",
                    extra={"chat_room_id": file_path.stem, "error": str(e)},
                )
                continue
            yield from data.get("appointments", [])
