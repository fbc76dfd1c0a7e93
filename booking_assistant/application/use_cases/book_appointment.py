from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime

from booking_assistant.application.exceptions import IncompleteDraft, NotFound
from booking_assistant.application.ports.appointment_store import AppointmentStorePort
from booking_assistant.application.ports.conversation_store import ConversationStorePort
from booking_assistant.application.ports.event_dispatcher import EventDispatcherPort
from booking_assistant.application.use_cases.draft_merger import determine_next_step
from booking_assistant.domain.entities.appointment import Appointment, AppointmentStatus
from booking_assistant.domain.entities.appointment_draft import AppointmentDraft, NextStep
from booking_assistant.domain.entities.transition_event import AppointmentCreatedEvent


class BookAppointmentUseCase:
    def __init__(
        self,
        conversations: ConversationStorePort,
        store: AppointmentStorePort,
        dispatcher: EventDispatcherPort,
        on_created: Callable[[AppointmentCreatedEvent], None],
        clock: Callable[[], datetime],
    ) -> None:
        self._conversations = conversations
        self._store = store
        self._dispatcher = dispatcher
        self._on_created = on_created
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def execute(self, chat_room_id: str, draft: AppointmentDraft) -> Appointment:
        room = self._conversations.get_chat_room(chat_room_id)
        if room is None:
            raise NotFound(f"Chat room {chat_room_id} not found")

        missing = determine_next_step(draft)
        if missing is not NextStep.REVIEW:
            raise IncompleteDraft(f"Cannot book yet: {missing.value} is still missing")

        appointment = Appointment(
            id=uuid.uuid4().hex,
            chat_room_id=chat_room_id,
            business_id=room.business_id,
            user_id=room.user_id,
            service=draft.service or "",
            preferred_date=draft.date or "",
            preferred_time=draft.time or "",
            customer_name=draft.customer_name or "",
            customer_phone=draft.customer_phone or "",
            customer_email=draft.customer_email,
            notes=draft.notes or "",
            address=draft.address if draft.is_home_service else None,
            status=AppointmentStatus.REQUESTED,
            created_at=self._clock(),
        )
        stored = self._store.create(appointment)
        if stored.id != appointment.id:
            return stored

        try:
            self._dispatcher.dispatch(self._on_created, AppointmentCreatedEvent(stored))
        except Exception as e:
            self._logger.error(
                "Failed to dispatch appointment created event",
                extra={"appointment_id": stored.id, "error": str(e)},
            )
        return stored
