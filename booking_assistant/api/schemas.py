from typing import Any

from pydantic import BaseModel, Field

from booking_assistant.domain.entities.appointment import AppointmentStatus


class UserContextSchema(BaseModel):
    user_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None


class CreateChatRoomRequestSchema(BaseModel):
    business_id: str = Field(min_length=1)
    user_id: str | None = None


class ChatRoomSchema(BaseModel):
    id: str
    business_id: str
    user_id: str | None = None


class DraftSchema(BaseModel):
    service: str | None = None
    date: str | None = None
    time: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    notes: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    is_home_service: bool = False
    service_location: str | None = None
    collected_fields: list[str] = Field(default_factory=list)
    validation_errors: list[str] = Field(default_factory=list)
    next_step: str = "service"
    is_appointment_request: bool = False


class TurnRequestSchema(BaseModel):
    message: str = Field(min_length=1)
    user_context: UserContextSchema | None = None


class SuggestedTimeSchema(BaseModel):
    date: str
    time: str
    suggested_at: str | None = None


class AppointmentSchema(BaseModel):
    id: str
    chat_room_id: str
    business_id: str
    user_id: str | None = None
    service: str
    preferred_date: str
    preferred_time: str
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    notes: str = ""
    address: str | None = None
    status: AppointmentStatus
    suggested_time: SuggestedTimeSchema | None = None
    created_at: str | None = None
    updated_at: str | None = None


class TurnResponseSchema(BaseModel):
    draft: DraftSchema
    reply_text: str
    appointment: AppointmentSchema | None = None


class BookRequestSchema(BaseModel):
    draft: DraftSchema


class StatusChangeRequestSchema(BaseModel):
    status: str
    suggested_time: SuggestedTimeSchema | None = None


class AppointmentResponseSchema(BaseModel):
    appointment: AppointmentSchema


class AvailabilityResponseSchema(BaseModel):
    date: str
    slots: list[str] = Field(default_factory=list)
    known: bool


def appointment_schema(data: dict[str, Any]) -> AppointmentSchema:
    return AppointmentSchema.model_validate(data)
