"""
Tests for merging extracted fields into the conversation draft.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from booking_assistant.application.use_cases.draft_merger import DraftMerger, determine_next_step
from booking_assistant.domain.entities.appointment_draft import (
    AppointmentDraft,
    DraftField,
    NextStep,
    PartialDraft,
)
from booking_assistant.domain.entities.message import Turn

STEP_ATTRS = {
    NextStep.SERVICE: "service",
    NextStep.DATE: "date",
    NextStep.TIME: "time",
    NextStep.CUSTOMER_NAME: "customer_name",
    NextStep.CUSTOMER_PHONE: "customer_phone",
    NextStep.ADDRESS: "address",
}


def _merger() -> DraftMerger:
    return DraftMerger(lambda: datetime(2025, 6, 10, 9, 0))


def test_book_for_tomorrow_resolves_date():
    """'book for tomorrow' on 2025-06-10 collects 2025-06-11."""
    draft = _merger().merge(AppointmentDraft(), PartialDraft(), "book for tomorrow")
    assert draft.date == "2025-06-11"
    assert DraftField.DATE in draft.collected_fields
    assert draft.is_appointment_request


def test_relative_date_wins_over_extracted_date():
    draft = _merger().merge(AppointmentDraft(), PartialDraft(date="2024-06-11"), "tomorrow")
    assert draft.date == "2025-06-11"


def test_tomorrow_mentioned_in_a_sentence_is_used_when_extraction_has_no_date():
    draft = _merger().merge(AppointmentDraft(), PartialDraft(), "could someone come out tomorrow afternoon")
    assert draft.date == "2025-06-11"


def test_month_jump_with_same_day_is_rejected():
    """Prior 2025-04-09 survives a 2025-10-09 candidate."""
    prior = AppointmentDraft(service="Haircut", date="2025-04-09", collected_fields=frozenset({DraftField.SERVICE, DraftField.DATE}))
    draft = _merger().merge(prior, PartialDraft(date="2025-10-09"), "October 9th please")
    assert draft.date == "2025-04-09"


def test_stale_year_is_normalized():
    draft = _merger().merge(AppointmentDraft(), PartialDraft(date="2023-07-15"), "July 15th")
    assert draft.date == "2025-07-15"


def test_past_date_is_refused_with_a_validation_error():
    prior = AppointmentDraft(service="Haircut", collected_fields=frozenset({DraftField.SERVICE}))
    draft = _merger().merge(prior, PartialDraft(date="2025-06-01"), "June 1st")
    assert draft.date is None
    assert draft.next_step is NextStep.DATE
    assert "2025-06-01 is in the past" in draft.validation_errors


def test_empty_extracted_values_never_erase_prior_values():
    prior = AppointmentDraft(service="Haircut", time="14:00", customer_name="Ana")
    draft = _merger().merge(prior, PartialDraft(service="", time=None, customer_name="   "), "hmm")
    assert draft.service == "Haircut"
    assert draft.time == "14:00"
    assert draft.customer_name == "Ana"


def test_time_is_normalized_to_24_hours():
    draft = _merger().merge(AppointmentDraft(), PartialDraft(time="2:30 PM"), "2:30 PM")
    assert draft.time == "14:30"


def test_no_notes_clears_notes_and_marks_collected():
    """'no notes' always yields empty notes, whatever was there before."""
    prior = AppointmentDraft(notes="Gate code 1234", collected_fields=frozenset({DraftField.NOTES}))
    draft = _merger().merge(prior, PartialDraft(notes="Gate code 1234"), "no notes")
    assert draft.notes == ""
    assert DraftField.NOTES in draft.collected_fields


def test_whole_message_becomes_notes_after_notes_question():
    prior = AppointmentDraft(
        service="Leak Repair",
        date="2025-06-11",
        time="10:00",
        customer_name="Ana",
        customer_phone="5550101",
        next_step=NextStep.NOTES,
    )
    message = "The leak is under the kitchen sink, please park on the street"
    draft = _merger().merge(prior, PartialDraft(notes="kitchen sink"), message)
    assert draft.notes == message
    assert draft.next_step is NextStep.REVIEW


def test_notes_question_in_recent_turns_counts_as_pending():
    turns = [Turn(role="assistant", content="Would you like to add any notes or specific requirements?")]
    draft = _merger().merge(AppointmentDraft(), PartialDraft(), "Bring extra towels", turns)
    assert draft.notes == "Bring extra towels"


def test_acknowledgement_is_not_taken_as_notes():
    prior = replace(AppointmentDraft(service="Haircut"), next_step=NextStep.NOTES)
    draft = _merger().merge(prior, PartialDraft(), "ok")
    assert draft.notes is None
    assert DraftField.NOTES not in draft.collected_fields


def test_introductory_phrase_extracts_notes():
    draft = _merger().merge(AppointmentDraft(), PartialDraft(service="Haircut"), "Haircut please. Also, I have curly hair")
    assert draft.notes == "I have curly hair"


def test_several_fields_at_once_converge_to_next_missing_one():
    extracted = PartialDraft(
        service="Haircut",
        date="2025-06-12",
        time="3pm",
        customer_name="Ana Lima",
        is_appointment_request=True,
    )
    draft = _merger().merge(AppointmentDraft(), extracted, "Haircut on the 12th at 3pm, I'm Ana Lima")
    assert draft.next_step is NextStep.CUSTOMER_PHONE
    assert {DraftField.SERVICE, DraftField.DATE, DraftField.TIME, DraftField.NAME} <= draft.collected_fields


def test_address_is_only_asked_for_home_services():
    base = dict(service="Leak Repair", date="2025-06-11", time="10:00", customer_name="Ana", customer_phone="5550101")
    assert determine_next_step(AppointmentDraft(**base)) is NextStep.NOTES
    assert determine_next_step(AppointmentDraft(**base, is_home_service=True)) is NextStep.ADDRESS


def test_next_step_never_points_at_a_filled_field():
    """Across a sequence of merges the next step is always the first empty field."""
    merger = _merger()
    script = [
        (PartialDraft(time="10am"), "10am"),
        (PartialDraft(customer_phone="555 010 1234"), "555 010 1234"),
        (PartialDraft(service="Haircut"), "a haircut"),
        (PartialDraft(), "tomorrow"),
        (PartialDraft(customer_name="Ana"), "Ana"),
        (PartialDraft(), "no notes"),
    ]
    draft = AppointmentDraft()
    for extracted, message in script:
        draft = merger.merge(draft, extracted, message)
        attr = STEP_ATTRS.get(draft.next_step)
        if attr is not None:
            assert not getattr(draft, attr)
            for step, earlier in STEP_ATTRS.items():
                if step is draft.next_step:
                    break
                if step is not NextStep.ADDRESS:
                    assert getattr(draft, earlier)
    assert draft.next_step is NextStep.REVIEW


def test_appointment_request_flag_is_sticky():
    merger = _merger()
    draft = merger.merge(AppointmentDraft(), PartialDraft(is_appointment_request=True), "I want to book")
    draft = merger.merge(draft, PartialDraft(is_appointment_request=False), "hmm let me think")
    assert draft.is_appointment_request


def _review_prior(notes: str) -> AppointmentDraft:
    return AppointmentDraft(
        service="Haircut",
        date="2025-06-12",
        time="11:00",
        customer_name="Ana Lima",
        customer_phone="555 010 1234",
        notes=notes,
        collected_fields=frozenset(
            {DraftField.SERVICE, DraftField.DATE, DraftField.TIME, DraftField.NAME, DraftField.PHONE, DraftField.NOTES}
        ),
        next_step=NextStep.REVIEW,
        is_appointment_request=True,
    )


REVIEW_TURNS = [
    Turn(role="assistant", content="Would you like to add any notes or specific requirements?"),
    Turn(role="user", content="no notes"),
    Turn(role="assistant", content="Great! I've got everything I need. Shall I send this appointment request?"),
]


def test_acknowledgement_at_review_keeps_answered_notes():
    """'thanks' after answering 'no notes' leaves the draft at review."""
    draft = _merger().merge(_review_prior(""), PartialDraft(), "thanks", REVIEW_TURNS)
    assert draft.notes == ""
    assert DraftField.NOTES in draft.collected_fields
    assert draft.next_step is NextStep.REVIEW


def test_correction_at_review_keeps_existing_notes():
    draft = _merger().merge(_review_prior("Gate code 1234"), PartialDraft(time="15:00"), "actually make it 3pm", REVIEW_TURNS)
    assert draft.time == "15:00"
    assert draft.notes == "Gate code 1234"
    assert draft.next_step is NextStep.REVIEW
