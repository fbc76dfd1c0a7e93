"""
Tests for the appointment status state machine and reschedule negotiation.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from booking_assistant.application.exceptions import InvalidTransition, NotFound
from booking_assistant.application.use_cases.status_transition import StatusTransitionService
from booking_assistant.domain.entities.appointment import Appointment, AppointmentStatus, SuggestedTime
from booking_assistant.domain.entities.transition_event import TransitionEvent
from booking_assistant.infrastructure.events.dispatchers import InlineEventDispatcher
from booking_assistant.infrastructure.store.memory_store import MemoryChatRoomStore

NOW = datetime(2025, 6, 10, 9, 0)


def _setup(status: AppointmentStatus = AppointmentStatus.REQUESTED, on_transition=None):
    store = MemoryChatRoomStore(lambda: NOW)
    room = store.create_chat_room("biz")
    store.create(
        Appointment(
            id="a1",
            chat_room_id=room.id,
            business_id="biz",
            service="Leak Repair",
            preferred_date="2025-06-11",
            preferred_time="10:00",
            customer_name="Ana",
            customer_phone="5550101",
            status=status,
        )
    )
    events: list[TransitionEvent] = []
    service = StatusTransitionService(
        store=store,
        dispatcher=InlineEventDispatcher(),
        on_transition=on_transition or events.append,
        clock=lambda: NOW,
    )
    return service, store, room.id, events


def test_reschedule_without_proposed_time_is_rejected():
    service, store, room_id, events = _setup()
    with pytest.raises(InvalidTransition, match="proposed"):
        service.transition(room_id, "a1", AppointmentStatus.RESCHEDULE_REQUESTED, None)
    assert store.find_by_id(room_id, "a1").status is AppointmentStatus.REQUESTED
    assert events == []


def test_reschedule_with_proposed_time_is_stored():
    service, store, room_id, events = _setup()

    result = service.transition(
        room_id, "a1", AppointmentStatus.RESCHEDULE_REQUESTED, SuggestedTime(date="2025-06-20", time="2:00 PM")
    )

    assert result.status is AppointmentStatus.RESCHEDULE_REQUESTED
    reread = store.find_by_id(room_id, "a1")
    assert reread.status is AppointmentStatus.RESCHEDULE_REQUESTED
    assert reread.suggested_time == SuggestedTime(date="2025-06-20", time="14:00", suggested_at=NOW)
    assert len(events) == 1
    assert events[0].from_status is AppointmentStatus.REQUESTED
    assert events[0].to_status is AppointmentStatus.RESCHEDULE_REQUESTED


def test_malformed_proposed_time_is_rejected():
    service, _, room_id, _ = _setup()
    with pytest.raises(InvalidTransition):
        service.transition(room_id, "a1", "reschedule_requested", SuggestedTime(date="June 20", time="14:00"))


@pytest.mark.parametrize("terminal", [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED])
def test_terminal_states_are_immutable(terminal):
    service, store, room_id, events = _setup(status=terminal)
    with pytest.raises(InvalidTransition, match="already"):
        service.transition(room_id, "a1", AppointmentStatus.CONFIRMED)
    assert store.find_by_id(room_id, "a1").status is terminal
    assert events == []


def test_illegal_edge_is_rejected():
    service, _, room_id, _ = _setup()
    with pytest.raises(InvalidTransition):
        service.transition(room_id, "a1", AppointmentStatus.COMPLETED)


def test_unknown_status_is_rejected():
    service, _, room_id, _ = _setup()
    with pytest.raises(InvalidTransition):
        service.transition(room_id, "a1", "declined")


def test_repeating_a_transition_is_a_no_op():
    service, _, room_id, events = _setup()
    first = service.transition(room_id, "a1", "confirmed")
    second = service.transition(room_id, "a1", "confirmed")
    assert first == second
    assert len(events) == 1


def test_repeating_a_reschedule_with_same_time_is_a_no_op():
    service, _, room_id, events = _setup()
    suggestion = SuggestedTime(date="2025-06-20", time="14:00")
    first = service.transition(room_id, "a1", AppointmentStatus.RESCHEDULE_REQUESTED, suggestion)
    second = service.transition(room_id, "a1", AppointmentStatus.RESCHEDULE_REQUESTED, suggestion)
    assert first == second
    assert len(events) == 1


def test_business_can_revise_a_pending_proposal():
    service, store, room_id, events = _setup()
    service.transition(room_id, "a1", "reschedule_requested", SuggestedTime(date="2025-06-20", time="14:00"))
    service.transition(room_id, "a1", "reschedule_requested", SuggestedTime(date="2025-06-21", time="09:30"))
    assert store.find_by_id(room_id, "a1").suggested_time.date == "2025-06-21"
    assert len(events) == 2


def test_failing_side_effect_does_not_revert_transition():
    def explode(event):
        raise RuntimeError("smtp down")

    service, store, room_id, _ = _setup(on_transition=explode)
    result = service.transition(room_id, "a1", "canceled")
    assert result.status is AppointmentStatus.CANCELED
    assert store.find_by_id(room_id, "a1").status is AppointmentStatus.CANCELED


def test_accepting_a_proposal_books_the_new_slot():
    service, store, room_id, events = _setup()
    service.transition(room_id, "a1", "reschedule_requested", SuggestedTime(date="2025-06-20", time="14:00"))

    accepted = service.accept_reschedule(room_id, "a1")

    assert accepted.status is AppointmentStatus.CONFIRMED
    assert (accepted.preferred_date, accepted.preferred_time) == ("2025-06-20", "14:00")
    assert accepted.current_suggestion is None
    assert events[-1].actor == "customer"
    assert service.accept_reschedule(room_id, "a1") == store.find_by_id(room_id, "a1")
    assert len(events) == 2


def test_declining_a_proposal_cancels():
    service, _, room_id, events = _setup()
    service.transition(room_id, "a1", "reschedule_requested", SuggestedTime(date="2025-06-20", time="14:00"))

    declined = service.decline_reschedule(room_id, "a1")

    assert declined.status is AppointmentStatus.CANCELED
    assert declined.preferred_date == "2025-06-11"
    assert events[-1].actor == "customer"


def test_accept_without_pending_proposal_is_rejected():
    service, _, room_id, _ = _setup()
    with pytest.raises(InvalidTransition):
        service.accept_reschedule(room_id, "a1")
    with pytest.raises(InvalidTransition):
        service.decline_reschedule(room_id, "a1")


def test_customer_can_send_request_back_from_reschedule():
    service, _, room_id, _ = _setup()
    service.transition(room_id, "a1", "reschedule_requested", SuggestedTime(date="2025-06-20", time="14:00"))
    assert service.transition(room_id, "a1", "requested").status is AppointmentStatus.REQUESTED


def test_missing_appointment_raises_not_found():
    service, _, room_id, _ = _setup()
    with pytest.raises(NotFound):
        service.transition(room_id, "nope", "confirmed")
