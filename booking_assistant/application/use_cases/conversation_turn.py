from __future__ import annotations

import logging
from dataclasses import dataclass

from booking_assistant.application.exceptions import NotFound
from booking_assistant.application.ports.business_directory import BusinessDirectoryPort
from booking_assistant.application.ports.conversation_store import ConversationStorePort
from booking_assistant.application.use_cases.book_appointment import BookAppointmentUseCase
from booking_assistant.application.use_cases.reply_composer import booking_confirmation_text
from booking_assistant.application.use_cases.slot_filling import SlotFillingEngine
from booking_assistant.application.utils.confirmation import is_confirmation
from booking_assistant.domain.entities.appointment import Appointment
from booking_assistant.domain.entities.appointment_draft import AppointmentDraft, NextStep
from booking_assistant.domain.entities.message import UserContext


@dataclass(frozen=True)
class ConversationTurnResult:
    draft: AppointmentDraft
    reply_text: str
    appointment: Appointment | None = None


class ConversationTurnUseCase:
    def __init__(
        self,
        conversations: ConversationStorePort,
        directory: BusinessDirectoryPort,
        engine: SlotFillingEngine,
        booking: BookAppointmentUseCase,
        history_limit: int = 10,
    ) -> None:
        self._conversations = conversations
        self._directory = directory
        self._engine = engine
        self._booking = booking
        self._history_limit = history_limit
        self._logger = logging.getLogger(__name__)

    def handle(
        self,
        chat_room_id: str,
        message: str,
        user_context: UserContext | None = None,
    ) -> ConversationTurnResult:
        room = self._conversations.get_chat_room(chat_room_id)
        if room is None:
            raise NotFound(f"Chat room {chat_room_id} not found")

        prior = self._conversations.get_draft(chat_room_id)
        recent = self._conversations.get_recent_messages(chat_room_id, limit=self._history_limit)
        self._conversations.append_message(chat_room_id, "user", message)
        business = self._directory.get_business_profile(room.business_id)

        if prior.next_step is NextStep.REVIEW and is_confirmation(message):
            appointment = self._booking.execute(chat_room_id, prior)
            reply_text = booking_confirmation_text(prior, business)
            self._conversations.set_draft(chat_room_id, AppointmentDraft())
            self._conversations.append_message(chat_room_id, "assistant", reply_text)
            self._logger.info(
                "Appointment booked from conversation",
                extra={"chat_room_id": chat_room_id, "appointment_id": appointment.id},
            )
            return ConversationTurnResult(AppointmentDraft(), reply_text, appointment)

        result = self._engine.process_turn(message, prior, recent, business, user_context)
        self._conversations.set_draft(chat_room_id, result.draft)
        self._conversations.append_message(chat_room_id, "assistant", result.reply_text)
        return ConversationTurnResult(result.draft, result.reply_text)
