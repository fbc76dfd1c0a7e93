from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from booking_assistant.application.exceptions import InvalidTransition, NotFound
from booking_assistant.application.ports.appointment_store import AppointmentStorePort
from booking_assistant.application.ports.event_dispatcher import EventDispatcherPort
from booking_assistant.application.utils.date_parser import normalize_time, parse_iso_date
from booking_assistant.domain.entities.appointment import Appointment, AppointmentStatus, SuggestedTime
from booking_assistant.domain.entities.transition_event import TransitionEvent

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.REQUESTED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELED, AppointmentStatus.RESCHEDULE_REQUESTED}
    ),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED}),
    AppointmentStatus.RESCHEDULE_REQUESTED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELED, AppointmentStatus.REQUESTED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELED: frozenset(),
}

TERMINAL_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED})


class StatusTransitionService:
    def __init__(
        self,
        store: AppointmentStorePort,
        dispatcher: EventDispatcherPort,
        on_transition: Callable[[TransitionEvent], None],
        clock: Callable[[], datetime],
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._on_transition = on_transition
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def transition(
        self,
        chat_room_id: str,
        appointment_id: str,
        target_status: AppointmentStatus | str,
        suggested_time: SuggestedTime | None = None,
        actor: str = "business",
    ) -> Appointment:
        """
        Move an appointment along the status state machine.

        Repeating a transition that already took effect returns the stored record
        and emits nothing. A business may revise its proposal while a reschedule
        is pending by sending reschedule_requested again with a different time.

        Raises:
            InvalidTransition: illegal edge, terminal source, or a reschedule
                without a proposed date and time
            NotFound: no such appointment in the chat room
            PersistenceUncertain: the store could not verify the write
        """
        target = _coerce_status(target_status)
        current = self._load(chat_room_id, appointment_id)

        if target is AppointmentStatus.RESCHEDULE_REQUESTED:
            suggested_time = _validated_suggestion(suggested_time)

        if current.status is target:
            if target is not AppointmentStatus.RESCHEDULE_REQUESTED or suggested_time.same_slot(current.suggested_time):
                self._logger.info(
                    "Transition already applied",
                    extra={"appointment_id": appointment_id, "status": target.value},
                )
                return current
        elif target not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidTransition(_rejection_message(current.status, target))

        patch: dict[str, Any] = {"status": target.value}
        if suggested_time is not None:
            stamped = SuggestedTime(date=suggested_time.date, time=suggested_time.time, suggested_at=self._clock())
            patch["suggested_time"] = stamped.to_dict()

        return self._apply(current, target, patch, actor)

    def accept_reschedule(self, chat_room_id: str, appointment_id: str) -> Appointment:
        """Customer takes the proposed time: it becomes the booked slot and the appointment is confirmed."""
        current = self._load(chat_room_id, appointment_id)
        suggestion = current.suggested_time

        if current.status is AppointmentStatus.CONFIRMED and suggestion is not None and (
            current.preferred_date == suggestion.date and current.preferred_time == suggestion.time
        ):
            return current
        if current.status is not AppointmentStatus.RESCHEDULE_REQUESTED or suggestion is None:
            raise InvalidTransition("There is no proposed time to accept for this appointment")

        patch = {
            "status": AppointmentStatus.CONFIRMED.value,
            "preferred_date": suggestion.date,
            "preferred_time": suggestion.time,
        }
        return self._apply(current, AppointmentStatus.CONFIRMED, patch, actor="customer")

    def decline_reschedule(self, chat_room_id: str, appointment_id: str) -> Appointment:
        """Customer cannot make the proposed time: the appointment is canceled."""
        current = self._load(chat_room_id, appointment_id)
        if current.status is AppointmentStatus.CANCELED:
            return current
        if current.status is not AppointmentStatus.RESCHEDULE_REQUESTED:
            raise InvalidTransition("There is no proposed time to decline for this appointment")

        patch = {"status": AppointmentStatus.CANCELED.value}
        return self._apply(current, AppointmentStatus.CANCELED, patch, actor="customer")

    def _load(self, chat_room_id: str, appointment_id: str) -> Appointment:
        appointment = self._store.find_by_id(chat_room_id, appointment_id)
        if appointment is None:
            raise NotFound(f"Appointment {appointment_id} not found in chat room {chat_room_id}")
        return appointment

    def _apply(
        self,
        current: Appointment,
        target: AppointmentStatus,
        patch: dict[str, Any],
        actor: str,
    ) -> Appointment:
        updated = self._store.update(current.chat_room_id, current.id, patch)
        self._logger.info(
            "Appointment status changed",
            extra={
                "chat_room_id": current.chat_room_id,
                "appointment_id": current.id,
                "status": f"{current.status.value}->{target.value}",
            },
        )

        event = TransitionEvent(
            appointment_id=current.id,
            from_status=current.status,
            to_status=target,
            appointment=updated,
            actor=actor,
        )
        try:
            self._dispatcher.dispatch(self._on_transition, event)
        except Exception as e:
            self._logger.error(
                "Failed to dispatch transition event",
                extra={"appointment_id": current.id, "error": str(e)},
            )
        return updated


def _coerce_status(value: AppointmentStatus | str) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value
    try:
        return AppointmentStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidTransition(f"Unknown appointment status '{value}'") from None


def _validated_suggestion(suggested_time: SuggestedTime | None) -> SuggestedTime:
    if suggested_time is None or not suggested_time.date or not suggested_time.time:
        raise InvalidTransition("Cannot reschedule without a proposed date and time")
    normalized_time = normalize_time(suggested_time.time)
    if parse_iso_date(suggested_time.date) is None or normalized_time is None:
        raise InvalidTransition("The proposed time must be a YYYY-MM-DD date and a valid time")
    return SuggestedTime(date=suggested_time.date.strip(), time=normalized_time)


def _rejection_message(current: AppointmentStatus, target: AppointmentStatus) -> str:
    if current in TERMINAL_STATUSES:
        return f"Cannot change an appointment that is already {current.value}"
    return f"Cannot move an appointment from {current.value} to {target.value}"
