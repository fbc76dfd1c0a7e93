"""
End-to-end tests of the HTTP surface with in-memory adapters and a fixed clock.
"""

from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from booking_assistant.application.use_cases.availability import AvailabilityChecker
from booking_assistant.application.use_cases.book_appointment import BookAppointmentUseCase
from booking_assistant.application.use_cases.conversation_turn import ConversationTurnUseCase
from booking_assistant.application.use_cases.notifications import AppointmentNotifier
from booking_assistant.application.use_cases.slot_filling import SlotFillingEngine
from booking_assistant.application.use_cases.status_transition import StatusTransitionService
from booking_assistant.infrastructure.business.business_directory import InMemoryBusinessDirectory
from booking_assistant.infrastructure.events.dispatchers import InlineEventDispatcher
from booking_assistant.infrastructure.llm.mock_extractor import MockExtractor
from booking_assistant.infrastructure.notifications.logging_notifier import LoggingNotifier
from booking_assistant.infrastructure.store.memory_store import MemoryChatRoomStore
from booking_assistant.main import app
from booking_assistant.wiring import dependencies

USER = {"user_id": "u1", "customer_name": "Ana Lima", "customer_phone": "555 010 1234"}


def _clock() -> datetime:
    return datetime(2025, 6, 10, 9, 0)


@pytest.fixture
def client():
    store = MemoryChatRoomStore(_clock)
    directory = InMemoryBusinessDirectory()
    directory.add("no-hours", {"name": "Pop-up Barber", "services": ["Beard Trim"]})
    dispatcher = InlineEventDispatcher()
    notifier = AppointmentNotifier(store, LoggingNotifier(), directory)
    availability = AvailabilityChecker(store, directory)
    booking = BookAppointmentUseCase(store, store, dispatcher, notifier.handle_created, _clock)
    turns = ConversationTurnUseCase(
        store,
        directory,
        SlotFillingEngine(MockExtractor(), availability, _clock),
        booking,
    )
    transitions = StatusTransitionService(store, dispatcher, notifier.handle_transition, _clock)

    app.dependency_overrides = {
        dependencies.get_chat_room_store: lambda: store,
        dependencies.get_business_directory: lambda: directory,
        dependencies.get_availability_checker: lambda: availability,
        dependencies.get_book_appointment_use_case: lambda: booking,
        dependencies.get_conversation_turn_use_case: lambda: turns,
        dependencies.get_status_transition_service: lambda: transitions,
    }
    yield TestClient(app)
    app.dependency_overrides = {}


def _turn(client: TestClient, room_id: str, message: str) -> dict:
    resp = client.post(f"/chat-rooms/{room_id}/turns", json={"message": message, "user_context": USER})
    assert resp.status_code == 200, resp.text
    return resp.json()


def _book_through_chat(client: TestClient) -> tuple[str, dict]:
    room_id = client.post("/chat-rooms", json={"business_id": "demo-plumbing", "user_id": "u1"}).json()["id"]

    body = _turn(client, room_id, "I'd like to book Leak Repair")
    assert body["draft"]["service"] == "Leak Repair"
    assert body["draft"]["next_step"] == "date"

    body = _turn(client, room_id, "2025-06-11 at 10:00 am")
    assert body["draft"]["time"] == "10:00"
    assert body["draft"]["next_step"] == "address"

    body = _turn(client, room_id, "123 Main Street, Springfield IL 62701")
    assert body["draft"]["next_step"] == "notes"

    body = _turn(client, room_id, "no notes")
    assert body["draft"]["notes"] == ""
    assert body["draft"]["next_step"] == "review"
    assert body["reply_text"].count("?") == 1

    body = _turn(client, room_id, "yes")
    assert body["appointment"] is not None
    assert body["draft"]["next_step"] == "service"
    return room_id, body["appointment"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_conversation_books_appointment(client):
    room_id, appointment = _book_through_chat(client)

    assert appointment["status"] == "requested"
    assert appointment["customer_name"] == "Ana Lima"
    assert appointment["address"] == "123 Main Street, Springfield IL 62701"

    fetched = client.get(f"/chat-rooms/{room_id}/appointments/{appointment['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["appointment"]["preferred_date"] == "2025-06-11"


def test_reschedule_negotiation_over_http(client):
    room_id, appointment = _book_through_chat(client)
    base = f"/chat-rooms/{room_id}/appointments/{appointment['id']}"

    missing = client.post(f"{base}/status", json={"status": "reschedule_requested"})
    assert missing.status_code == 400
    assert "proposed" in missing.json()["detail"]

    proposed = client.post(
        f"{base}/status",
        json={"status": "reschedule_requested", "suggested_time": {"date": "2025-06-20", "time": "14:00"}},
    )
    assert proposed.status_code == 200
    assert proposed.json()["appointment"]["suggested_time"]["date"] == "2025-06-20"

    accepted = client.post(f"{base}/reschedule/accept")
    assert accepted.status_code == 200
    assert accepted.json()["appointment"]["status"] == "confirmed"
    assert accepted.json()["appointment"]["preferred_date"] == "2025-06-20"

    assert client.post(f"{base}/status", json={"status": "completed"}).status_code == 200
    terminal = client.post(f"{base}/status", json={"status": "confirmed"})
    assert terminal.status_code == 400


def test_booking_incomplete_draft_is_rejected(client):
    room_id = client.post("/chat-rooms", json={"business_id": "demo-salon"}).json()["id"]
    resp = client.post(f"/chat-rooms/{room_id}/appointments", json={"draft": {"service": "Haircut"}})
    assert resp.status_code == 400


def test_unknown_chat_room_and_appointment(client):
    assert client.post("/chat-rooms/nope/turns", json={"message": "hi"}).status_code == 404
    assert client.get("/chat-rooms/nope/appointments/a1").status_code == 404
    assert client.post("/chat-rooms/nope/appointments/a1/status", json={"status": "confirmed"}).status_code == 404
    assert client.post("/chat-rooms", json={"business_id": "missing"}).status_code == 404


def test_empty_message_is_a_validation_error(client):
    room_id = client.post("/chat-rooms", json={"business_id": "demo-salon"}).json()["id"]
    assert client.post(f"/chat-rooms/{room_id}/turns", json={"message": ""}).status_code == 422


def test_availability_endpoint(client):
    sunday = client.get("/businesses/demo-plumbing/availability", params={"date": "2025-06-15"}).json()
    assert sunday == {"date": "2025-06-15", "slots": [], "known": True}

    monday = client.get("/businesses/demo-plumbing/availability", params={"date": "2025-06-16"}).json()
    assert monday["slots"][0] == "09:00"
    assert monday["slots"][-1] == "17:00"

    unknown = client.get("/businesses/no-hours/availability", params={"date": "2025-06-16"}).json()
    assert unknown == {"date": "2025-06-16", "slots": [], "known": False}

    assert client.get("/businesses/demo-plumbing/availability", params={"date": "soon"}).status_code == 422


def test_shutdown_drains_event_dispatcher():
    dispatcher = dependencies.get_event_dispatcher()

    with TestClient(app) as client:
        assert client.get("/health").status_code == 200

    assert dependencies.get_event_dispatcher.cache_info().currsize == 0
    with pytest.raises(RuntimeError):
        dispatcher.dispatch(lambda event: None, None)
