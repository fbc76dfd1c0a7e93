from fastapi import APIRouter, Depends, HTTPException

from booking_assistant.api.schemas import (
    AppointmentResponseSchema,
    BookRequestSchema,
    StatusChangeRequestSchema,
    appointment_schema,
)
from booking_assistant.application.exceptions import (
    IncompleteDraft,
    InvalidTransition,
    NotFound,
    PersistenceUncertain,
)
from booking_assistant.application.ports.appointment_store import AppointmentStorePort
from booking_assistant.application.use_cases.book_appointment import BookAppointmentUseCase
from booking_assistant.application.use_cases.status_transition import StatusTransitionService
from booking_assistant.domain.entities.appointment import Appointment, SuggestedTime
from booking_assistant.domain.entities.appointment_draft import AppointmentDraft
from booking_assistant.wiring.dependencies import (
    get_book_appointment_use_case,
    get_chat_room_store,
    get_status_transition_service,
)

router = APIRouter()

UNCERTAIN_DETAIL = "The update could not be verified. Re-query the appointment before retrying."


def _response(appointment: Appointment) -> AppointmentResponseSchema:
    return AppointmentResponseSchema(appointment=appointment_schema(appointment.to_dict()))


@router.post("/chat-rooms/{chat_room_id}/appointments", response_model=AppointmentResponseSchema, status_code=201)
def book_appointment(
    chat_room_id: str,
    req: BookRequestSchema,
    uc: BookAppointmentUseCase = Depends(get_book_appointment_use_case),
):
    try:
        appointment = uc.execute(chat_room_id, AppointmentDraft.from_dict(req.draft.model_dump()))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IncompleteDraft as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _response(appointment)


@router.get("/chat-rooms/{chat_room_id}/appointments/{appointment_id}", response_model=AppointmentResponseSchema)
def get_appointment(
    chat_room_id: str,
    appointment_id: str,
    store: AppointmentStorePort = Depends(get_chat_room_store),
):
    try:
        appointment = store.find_by_id(chat_room_id, appointment_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    if appointment is None:
        raise HTTPException(status_code=404, detail=f"Appointment {appointment_id} not found")
    return _response(appointment)


@router.post(
    "/chat-rooms/{chat_room_id}/appointments/{appointment_id}/status",
    response_model=AppointmentResponseSchema,
)
def change_status(
    chat_room_id: str,
    appointment_id: str,
    req: StatusChangeRequestSchema,
    service: StatusTransitionService = Depends(get_status_transition_service),
):
    suggestion = (
        SuggestedTime(date=req.suggested_time.date, time=req.suggested_time.time) if req.suggested_time else None
    )
    return _run(lambda: service.transition(chat_room_id, appointment_id, req.status, suggestion))


@router.post(
    "/chat-rooms/{chat_room_id}/appointments/{appointment_id}/reschedule/accept",
    response_model=AppointmentResponseSchema,
)
def accept_reschedule(
    chat_room_id: str,
    appointment_id: str,
    service: StatusTransitionService = Depends(get_status_transition_service),
):
    return _run(lambda: service.accept_reschedule(chat_room_id, appointment_id))


@router.post(
    "/chat-rooms/{chat_room_id}/appointments/{appointment_id}/reschedule/decline",
    response_model=AppointmentResponseSchema,
)
def decline_reschedule(
    chat_room_id: str,
    appointment_id: str,
    service: StatusTransitionService = Depends(get_status_transition_service),
):
    return _run(lambda: service.decline_reschedule(chat_room_id, appointment_id))


def _run(action) -> AppointmentResponseSchema:
    try:
        appointment = action()
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceUncertain as e:
        raise HTTPException(status_code=503, detail=f"{UNCERTAIN_DETAIL} ({e})")
    return _response(appointment)
