from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import date, datetime, timedelta

from booking_assistant.application.utils.date_parser import (
    check_date_consistency,
    format_date,
    is_past_date,
    mentions_tomorrow,
    normalize_time,
    normalize_year,
    resolve_relative_date,
)
from booking_assistant.application.utils.notes_rules import (
    extract_notes_from_patterns,
    is_noise_note,
    is_notes_negation,
    was_asked_for_notes,
)
from booking_assistant.domain.entities.appointment_draft import (
    AppointmentDraft,
    DraftField,
    NextStep,
    PartialDraft,
    ServiceLocation,
)
from booking_assistant.domain.entities.message import Turn

CANONICAL_ORDER = (
    (NextStep.SERVICE, "service"),
    (NextStep.DATE, "date"),
    (NextStep.TIME, "time"),
    (NextStep.CUSTOMER_NAME, "customer_name"),
    (NextStep.CUSTOMER_PHONE, "customer_phone"),
    (NextStep.ADDRESS, "address"),
)

VALUE_FIELDS = {
    DraftField.SERVICE: "service",
    DraftField.DATE: "date",
    DraftField.TIME: "time",
    DraftField.NAME: "customer_name",
    DraftField.PHONE: "customer_phone",
    DraftField.ADDRESS: "address",
    DraftField.NOTES: "notes",
}


def determine_next_step(draft: AppointmentDraft) -> NextStep:
    """First empty field in canonical order; address only counts for home services."""
    for step, attr in CANONICAL_ORDER:
        if step is NextStep.ADDRESS and not draft.is_home_service:
            continue
        if not getattr(draft, attr):
            return step
    if not draft.notes and DraftField.NOTES not in draft.collected_fields:
        return NextStep.NOTES
    return NextStep.REVIEW


def _pick(new: str | None, old: str | None) -> str | None:
    if new is not None and new.strip() != "":
        return new.strip()
    return old


class DraftMerger:
    def __init__(self, clock: Callable[[], datetime]) -> None:
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def merge(
        self,
        prior: AppointmentDraft,
        extracted: PartialDraft,
        raw_message: str,
        recent_turns: Sequence[Turn] = (),
    ) -> AppointmentDraft:
        today = self._clock().date()
        errors = list(extracted.validation_errors)

        date_value = self._reconcile_date(prior.date, extracted.date, raw_message, today, errors)

        time_value = prior.time
        if extracted.time and extracted.time.strip():
            time_value = normalize_time(extracted.time) or extracted.time.strip()

        # Extraction bookkeeping only counts for fields that end up with a value,
        # except an explicit empty notes answer.
        collected = set(prior.collected_fields)
        if DraftField.NOTES in extracted.collected_fields and extracted.notes is not None and not extracted.notes.strip():
            collected.add(DraftField.NOTES)

        merged = AppointmentDraft(
            service=_pick(extracted.service, prior.service),
            date=date_value,
            time=time_value,
            customer_name=_pick(extracted.customer_name, prior.customer_name),
            customer_phone=_pick(extracted.customer_phone, prior.customer_phone),
            customer_email=prior.customer_email,
            notes=_pick(extracted.notes, prior.notes),
            address=_pick(extracted.address, prior.address),
            city=_pick(extracted.city, prior.city),
            state=_pick(extracted.state, prior.state),
            zip_code=_pick(extracted.zip_code, prior.zip_code),
            is_home_service=prior.is_home_service,
            service_location=extracted.service_location or prior.service_location,
            next_step=prior.next_step,
        )
        if merged.is_home_service and merged.service_location is None:
            merged = replace(merged, service_location=ServiceLocation.HOME)

        notes, collected = self._resolve_notes(prior, merged.notes, raw_message, recent_turns, collected)

        for field, attr in VALUE_FIELDS.items():
            value = notes if field is DraftField.NOTES else getattr(merged, attr)
            if value:
                collected.add(field)

        is_request = (
            prior.is_appointment_request
            or extracted.is_appointment_request
            or extracted.has_any_field()
            or bool(collected)
        )

        merged = replace(
            merged,
            notes=notes,
            collected_fields=frozenset(collected),
            validation_errors=tuple(errors),
            is_appointment_request=is_request,
        )
        return replace(merged, next_step=determine_next_step(merged))

    def _reconcile_date(
        self,
        prior_date: str | None,
        extracted_date: str | None,
        raw_message: str,
        today: date,
        errors: list[str],
    ) -> str | None:
        candidate = resolve_relative_date(raw_message, today) or (extracted_date or "").strip() or None
        if candidate is None and mentions_tomorrow(raw_message):
            candidate = format_date(today + timedelta(days=1))
        if candidate is None:
            return prior_date

        candidate = normalize_year(candidate, today)
        candidate = check_date_consistency(candidate, prior_date)

        if candidate != prior_date and is_past_date(candidate, today):
            self._logger.info("Rejected past date", extra={"reason": candidate})
            errors.append(f"{candidate} is in the past")
            return prior_date
        return candidate

    def _resolve_notes(
        self,
        prior: AppointmentDraft,
        merged_notes: str | None,
        raw_message: str,
        recent_turns: Sequence[Turn],
        collected: set[DraftField],
    ) -> tuple[str | None, set[DraftField]]:
        notes_answered = prior.next_step is NextStep.REVIEW and DraftField.NOTES in prior.collected_fields
        notes_pending = not notes_answered and (
            was_asked_for_notes(recent_turns) or prior.next_step is NextStep.NOTES
        )
        message = raw_message.strip()

        if is_notes_negation(message, notes_pending):
            collected.add(DraftField.NOTES)
            return "", collected

        notes = merged_notes
        if notes_pending and message:
            notes = message
        elif not notes:
            notes = extract_notes_from_patterns(message) or notes

        if notes and is_noise_note(notes):
            self._logger.info("Discarded acknowledgement as notes", extra={"reason": notes})
            if DraftField.NOTES not in prior.collected_fields:
                collected.discard(DraftField.NOTES)
            notes = prior.notes
        return notes, collected
