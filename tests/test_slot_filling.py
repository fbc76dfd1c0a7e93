"""
Tests for a full slot-filling turn: extraction, fallback and reply composition.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Any

from booking_assistant.application.exceptions import LLMContractError, LLMUpstreamError
from booking_assistant.application.ports.extraction import ExtractionPort
from booking_assistant.application.use_cases.availability import AvailabilityChecker
from booking_assistant.application.use_cases.reply_composer import AvailabilityHint, ReplyComposer
from booking_assistant.application.use_cases.slot_filling import SlotFillingEngine
from booking_assistant.domain.entities.appointment_draft import AppointmentDraft, DraftField, NextStep
from booking_assistant.domain.entities.message import UserContext
from booking_assistant.infrastructure.business.business_directory import InMemoryBusinessDirectory
from booking_assistant.infrastructure.store.memory_store import MemoryChatRoomStore

TODAY = date(2025, 6, 10)


def _clock() -> datetime:
    return datetime(2025, 6, 10, 9, 0)


class ScriptedExtractor(ExtractionPort):
    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    def extract(self, system_prompt: str, message: str) -> dict[str, Any]:
        self.calls.append((system_prompt, message))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _engine(extractor: ExtractionPort):
    directory = InMemoryBusinessDirectory()
    availability = AvailabilityChecker(MemoryChatRoomStore(_clock), directory)
    engine = SlotFillingEngine(extractor, availability, _clock)
    return engine, directory.get_business_profile("demo-plumbing")


def test_turn_merges_extraction_and_asks_one_question():
    extractor = ScriptedExtractor({"isAppointmentRequest": True, "service": "Drain Cleaning", "time": "10:00 AM"})
    engine, business = _engine(extractor)
    user = UserContext(user_id="u1", customer_name="Ana Lima", customer_phone="555 010 1234", customer_email="ana@example.com")

    result = engine.process_turn("I need drain cleaning tomorrow at 10am", AppointmentDraft(), [], business, user)

    draft = result.draft
    assert draft.service == "Drain Cleaning"
    assert draft.date == "2025-06-11"
    assert draft.time == "10:00"
    assert draft.customer_name == "Ana Lima"
    assert draft.customer_email == "ana@example.com"
    assert draft.is_home_service
    assert draft.next_step is NextStep.ADDRESS
    assert result.reply_text.count("?") == 1
    assert "Here's what I have so far" in result.reply_text
    assert "- Service: Drain Cleaning" in result.reply_text


def test_prompt_lists_business_services_and_missing_fields():
    extractor = ScriptedExtractor({"isAppointmentRequest": True})
    engine, business = _engine(extractor)
    engine.process_turn("hi there", AppointmentDraft(), [], business)

    prompt, message = extractor.calls[0]
    assert message == "hi there"
    assert "  - Leak Repair" in prompt
    assert "\"tomorrow\" (or misspellings like \"tommorow\") = 2025-06-11" in prompt
    assert "Still missing:" in prompt


def test_relative_date_with_known_service_skips_extraction():
    extractor = ScriptedExtractor()
    engine, business = _engine(extractor)
    prior = AppointmentDraft(
        service="Leak Repair",
        collected_fields=frozenset({DraftField.SERVICE}),
        next_step=NextStep.DATE,
        is_home_service=True,
    )

    result = engine.process_turn("tomorrow", prior, [], business)

    assert extractor.calls == []
    assert result.draft.date == "2025-06-11"
    assert result.draft.next_step is NextStep.TIME
    assert "Here are some available time slots" in result.reply_text
    assert "- 09:00" in result.reply_text
    assert "...and additional times available" in result.reply_text
    assert result.reply_text.count("?") == 1


def test_extraction_failure_keeps_prior_draft_and_apologises():
    engine, business = _engine(ScriptedExtractor(LLMUpstreamError("timeout")))
    prior = AppointmentDraft(service="Leak Repair", collected_fields=frozenset({DraftField.SERVICE}), next_step=NextStep.DATE)

    result = engine.process_turn("hmm what about the other thing", prior, [], business)

    assert result.draft.service == "Leak Repair"
    assert result.draft.date is None
    assert result.extraction_error == "LLMUpstreamError"
    assert result.reply_text.startswith("Sorry")
    assert result.reply_text.count("?") == 1


def test_extraction_failure_falls_back_to_relative_date():
    engine, business = _engine(ScriptedExtractor(LLMContractError("not json")))
    prior = AppointmentDraft(service="Leak Repair", collected_fields=frozenset({DraftField.SERVICE}), next_step=NextStep.DATE)

    result = engine.process_turn("ok book for tomorrow then, that works for me", prior, [], business)

    assert result.draft.date == "2025-06-11"
    assert result.extraction_error == "LLMContractError"


def test_malformed_payload_is_treated_as_extraction_failure():
    engine, business = _engine(ScriptedExtractor(["not", "an", "object"]))
    result = engine.process_turn("hello", AppointmentDraft(), [], business)
    assert result.draft.service is None
    assert result.draft.next_step is NextStep.SERVICE
    assert result.extraction_error == "ValidationError"


def test_every_step_asks_exactly_one_question():
    composer = ReplyComposer()
    business = InMemoryBusinessDirectory().get_business_profile("demo-plumbing")
    base = AppointmentDraft(
        service="Leak Repair",
        date="2025-06-11",
        time="10:00",
        customer_name="Ana",
        customer_phone="5550101",
        address="12 Elm Street",
        notes="Side gate",
        is_home_service=True,
        collected_fields=frozenset(DraftField),
        validation_errors=("Did you mean 2025?",),
    )
    for step in NextStep:
        draft = replace(base, next_step=step)
        reply = composer.compose(draft, TODAY, business=business)
        assert reply.text.count("?") == 1, step
        assert reply.error is None


def test_time_step_reports_fully_booked_and_closed_days():
    composer = ReplyComposer()
    draft = AppointmentDraft(service="Haircut", date="2025-06-15", next_step=NextStep.TIME)

    closed = composer.compose(draft, TODAY, availability=AvailabilityHint(date="2025-06-15", slots=(), is_open=False))
    booked = composer.compose(
        draft, TODAY, availability=AvailabilityHint(date="2025-06-15", slots=(), open="09:00", close="17:00")
    )

    assert "not open on 2025-06-15" in closed.text
    assert "fully booked on 2025-06-15" in booked.text
    assert closed.text.count("?") == booked.text.count("?") == 1


def test_past_date_reply_offers_tomorrow():
    composer = ReplyComposer()
    draft = AppointmentDraft(
        service="Haircut",
        next_step=NextStep.DATE,
        validation_errors=("2025-06-01 is in the past",),
    )
    reply = composer.compose(draft, TODAY)
    assert "tomorrow (2025-06-11)" in reply.text
    assert "- 2025-06-01 is in the past" in reply.text
