from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class AppointmentStatus(str, Enum):
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    CANCELED = "canceled"
    RESCHEDULE_REQUESTED = "reschedule_requested"
    COMPLETED = "completed"


LIVE_STATUSES = frozenset({AppointmentStatus.REQUESTED, AppointmentStatus.CONFIRMED})


@dataclass(frozen=True)
class SuggestedTime:
    date: str
    time: str
    suggested_at: datetime | None = None

    def same_slot(self, other: "SuggestedTime | None") -> bool:
        return other is not None and self.date == other.date and self.time == other.time

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "time": self.time,
            "suggested_at": self.suggested_at.isoformat() if self.suggested_at else None,
        }

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> "SuggestedTime | None":
        if not data or not data.get("date") or not data.get("time"):
            return None
        suggested_at = data.get("suggested_at")
        return SuggestedTime(
            date=str(data["date"]),
            time=str(data["time"]),
            suggested_at=datetime.fromisoformat(suggested_at) if suggested_at else None,
        )


@dataclass(frozen=True)
class Appointment:
    id: str
    chat_room_id: str
    business_id: str
    service: str
    preferred_date: str
    preferred_time: str
    customer_name: str
    customer_phone: str
    status: AppointmentStatus = AppointmentStatus.REQUESTED
    user_id: str | None = None
    customer_email: str | None = None
    notes: str = ""
    address: str | None = None
    suggested_time: SuggestedTime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def current_suggestion(self) -> SuggestedTime | None:
        """A lingering suggestion only counts while the negotiation is open."""
        if self.status is AppointmentStatus.RESCHEDULE_REQUESTED:
            return self.suggested_time
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chat_room_id": self.chat_room_id,
            "business_id": self.business_id,
            "user_id": self.user_id,
            "service": self.service,
            "preferred_date": self.preferred_date,
            "preferred_time": self.preferred_time,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "notes": self.notes,
            "address": self.address,
            "status": self.status.value,
            "suggested_time": self.suggested_time.to_dict() if self.suggested_time else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Appointment":
        created_at = data.get("created_at")
        updated_at = data.get("updated_at")
        return Appointment(
            id=str(data["id"]),
            chat_room_id=str(data["chat_room_id"]),
            business_id=str(data["business_id"]),
            user_id=data.get("user_id"),
            service=data.get("service") or "",
            preferred_date=data.get("preferred_date") or "",
            preferred_time=data.get("preferred_time") or "",
            customer_name=data.get("customer_name") or "",
            customer_phone=data.get("customer_phone") or "",
            customer_email=data.get("customer_email"),
            notes=data.get("notes") or "",
            address=data.get("address"),
            status=AppointmentStatus(data.get("status") or AppointmentStatus.REQUESTED.value),
            suggested_time=SuggestedTime.from_dict(data.get("suggested_time")),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )
