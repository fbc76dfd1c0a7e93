from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChatRoom:
    id: str
    business_id: str
    user_id: str | None = None
