from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from booking_assistant.domain.entities.appointment_draft import DraftField, PartialDraft, ServiceLocation

FIELD_ALIASES = {
    "customername": DraftField.NAME,
    "customer_name": DraftField.NAME,
    "customerphone": DraftField.PHONE,
    "customer_phone": DraftField.PHONE,
}


class ExtractionPayloadDTO(BaseModel):
    """Lenient view of the extraction service's JSON output."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    is_appointment_request: bool = Field(default=False, alias="isAppointmentRequest")
    service: str | None = None
    date: str | None = None
    time: str | None = None
    customer_name: str | None = Field(default=None, alias="customerName")
    customer_phone: str | None = Field(default=None, alias="customerPhone")
    notes: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = Field(default=None, alias="zipCode")
    service_location: str | None = Field(default=None, alias="serviceLocation")
    previously_collected: list[str] = Field(default_factory=list, alias="previouslyCollected")
    validation_errors: list[str] = Field(default_factory=list, alias="validationErrors")

    @field_validator(
        "service", "date", "time", "customer_name", "customer_phone", "notes",
        "address", "city", "state", "zip_code", "service_location",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            return None
        value = value.strip()
        if value.lower() in {"null", "none", "n/a"}:
            return None
        return value

    @field_validator("previously_collected", "validation_errors", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item is not None and str(item).strip()]

    @field_validator("is_appointment_request", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        return value is True or (isinstance(value, str) and value.strip().lower() == "true")

    def to_partial_draft(self) -> PartialDraft:
        collected: set[DraftField] = set()
        for raw in self.previously_collected:
            key = raw.strip().lower()
            if key in FIELD_ALIASES:
                collected.add(FIELD_ALIASES[key])
                continue
            try:
                collected.add(DraftField(key))
            except ValueError:
                continue

        location = (self.service_location or "").lower()
        return PartialDraft(
            is_appointment_request=self.is_appointment_request,
            service=self.service,
            date=self.date,
            time=self.time,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            notes=self.notes,
            address=self.address,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
            service_location=ServiceLocation(location) if location in {"home", "business"} else None,
            collected_fields=frozenset(collected),
            validation_errors=tuple(self.validation_errors),
        )
