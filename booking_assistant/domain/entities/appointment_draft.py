from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class DraftField(str, Enum):
    SERVICE = "service"
    DATE = "date"
    TIME = "time"
    NAME = "name"
    PHONE = "phone"
    ADDRESS = "address"
    NOTES = "notes"


class NextStep(str, Enum):
    SERVICE = "service"
    DATE = "date"
    TIME = "time"
    CUSTOMER_NAME = "customer_name"
    CUSTOMER_PHONE = "customer_phone"
    ADDRESS = "address"
    NOTES = "notes"
    REVIEW = "review"


class ServiceLocation(str, Enum):
    HOME = "home"
    BUSINESS = "business"


@dataclass(frozen=True)
class AppointmentDraft:
    service: str | None = None
    date: str | None = None  # YYYY-MM-DD
    time: str | None = None  # HH:MM, 24h
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    notes: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    is_home_service: bool = False
    service_location: ServiceLocation | None = None
    collected_fields: frozenset[DraftField] = frozenset()
    validation_errors: tuple[str, ...] = ()
    next_step: NextStep = NextStep.SERVICE
    is_appointment_request: bool = False

    def to_dict(self) -> dict:
        return {
            "service": self.service,
            "date": self.date,
            "time": self.time,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "notes": self.notes,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "is_home_service": self.is_home_service,
            "service_location": self.service_location.value if self.service_location else None,
            "collected_fields": sorted(f.value for f in self.collected_fields),
            "validation_errors": list(self.validation_errors),
            "next_step": self.next_step.value,
            "is_appointment_request": self.is_appointment_request,
        }

    @staticmethod
    def from_dict(data: dict | None) -> "AppointmentDraft":
        if not data:
            return AppointmentDraft()
        collected: set[DraftField] = set()
        for raw in data.get("collected_fields") or []:
            try:
                collected.add(DraftField(raw))
            except ValueError:
                continue
        location = data.get("service_location")
        try:
            next_step = NextStep(data.get("next_step") or NextStep.SERVICE.value)
        except ValueError:
            next_step = NextStep.SERVICE
        return AppointmentDraft(
            service=data.get("service"),
            date=data.get("date"),
            time=data.get("time"),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
            customer_email=data.get("customer_email"),
            notes=data.get("notes"),
            address=data.get("address"),
            city=data.get("city"),
            state=data.get("state"),
            zip_code=data.get("zip_code"),
            is_home_service=bool(data.get("is_home_service", False)),
            service_location=ServiceLocation(location) if location in {"home", "business"} else None,
            collected_fields=frozenset(collected),
            validation_errors=tuple(data.get("validation_errors") or ()),
            next_step=next_step,
            is_appointment_request=bool(data.get("is_appointment_request", False)),
        )


@dataclass(frozen=True)
class PartialDraft:
    """Fields reported by the language extraction service for a single message."""

    is_appointment_request: bool = False
    service: str | None = None
    date: str | None = None
    time: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    notes: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    service_location: ServiceLocation | None = None
    collected_fields: frozenset[DraftField] = field(default_factory=frozenset)
    validation_errors: tuple[str, ...] = ()

    def has_any_field(self) -> bool:
        return any(
            (self.service, self.date, self.time, self.customer_name, self.customer_phone, self.address)
        ) or bool(self.collected_fields)
