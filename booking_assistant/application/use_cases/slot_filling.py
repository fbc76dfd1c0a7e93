from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime

from pydantic import ValidationError

from booking_assistant.application.dto.extraction_payload import ExtractionPayloadDTO
from booking_assistant.application.exceptions import AvailabilityUnknown, ExtractionFailure
from booking_assistant.application.ports.extraction import ExtractionPort
from booking_assistant.application.use_cases.availability import AvailabilityChecker
from booking_assistant.application.use_cases.draft_merger import DraftMerger, determine_next_step
from booking_assistant.application.use_cases.reply_composer import AvailabilityHint, ReplyComposer
from booking_assistant.application.utils.business_hours import weekday_name
from booking_assistant.application.utils.date_parser import resolve_relative_date
from booking_assistant.application.utils.extraction_prompt import build_extraction_prompt
from booking_assistant.domain.entities.appointment_draft import (
    AppointmentDraft,
    DraftField,
    NextStep,
    PartialDraft,
    ServiceLocation,
)
from booking_assistant.domain.entities.business_hours import BusinessHoursIndex
from booking_assistant.domain.entities.business_profile import BusinessProfile
from booking_assistant.domain.entities.message import Turn, UserContext

# A relative-date answer longer than this is treated as a sentence and sent to extraction.
SHORT_CIRCUIT_MAX_WORDS = 5


@dataclass(frozen=True)
class TurnResult:
    draft: AppointmentDraft
    reply_text: str
    extraction_error: str | None = None


class SlotFillingEngine:
    def __init__(
        self,
        extractor: ExtractionPort,
        availability: AvailabilityChecker,
        clock: Callable[[], datetime],
        composer: ReplyComposer | None = None,
    ) -> None:
        self._extractor = extractor
        self._availability = availability
        self._clock = clock
        self._merger = DraftMerger(clock)
        self._composer = composer or ReplyComposer()
        self._logger = logging.getLogger(__name__)

    def process_turn(
        self,
        message: str,
        prior_draft: AppointmentDraft,
        recent_turns: Sequence[Turn],
        business: BusinessProfile | None,
        user_context: UserContext | None = None,
    ) -> TurnResult:
        """
        Advance the draft by one user message and compose the next question.

        Extraction problems never escape: the turn falls back to a relative date
        when the message holds one, otherwise the prior draft is returned with an
        apology and the same question.
        """
        today = self._clock().date()
        prior = self._prefill(prior_draft, business, user_context)
        relative_date = resolve_relative_date(message, today)
        extraction_error: str | None = None

        if relative_date and prior.service and len(message.split()) <= SHORT_CIRCUIT_MAX_WORDS:
            self._logger.info("Relative date short-circuit", extra={"reason": relative_date})
            extracted = PartialDraft(is_appointment_request=True, date=relative_date)
        else:
            try:
                raw = self._extractor.extract(build_extraction_prompt(today, business, prior), message)
                extracted = ExtractionPayloadDTO.model_validate(raw).to_partial_draft()
            except (ExtractionFailure, ValidationError) as e:
                extraction_error = type(e).__name__
                self._logger.warning("Extraction failed", extra={"error": str(e)})
                if not relative_date:
                    hours = self._hours(business)
                    reply = self._composer.compose(
                        prior,
                        today,
                        business=business,
                        hours=hours,
                        availability=self._availability_hint(business, prior, hours),
                        apology=True,
                    )
                    return TurnResult(prior, reply.text, extraction_error)
                extracted = PartialDraft(is_appointment_request=True, date=relative_date)

        draft = self._merger.merge(prior, extracted, message, recent_turns)
        hours = self._hours(business)
        reply = self._composer.compose(
            draft,
            today,
            business=business,
            hours=hours,
            availability=self._availability_hint(business, draft, hours),
        )
        self._logger.info(
            "Turn processed",
            extra={"next_step": draft.next_step.value, "business_id": business.business_id if business else None},
        )
        return TurnResult(draft, reply.text, extraction_error)

    def _prefill(
        self,
        draft: AppointmentDraft,
        business: BusinessProfile | None,
        user_context: UserContext | None,
    ) -> AppointmentDraft:
        collected = set(draft.collected_fields)
        name = draft.customer_name
        phone = draft.customer_phone
        email = draft.customer_email
        if user_context is not None:
            if not name and user_context.customer_name:
                name = user_context.customer_name
                collected.add(DraftField.NAME)
            if not phone and user_context.customer_phone:
                phone = user_context.customer_phone
                collected.add(DraftField.PHONE)
            email = email or user_context.customer_email

        is_home = business.is_home_service if business else draft.is_home_service
        location = draft.service_location
        if is_home and location is None:
            location = ServiceLocation.HOME

        prefilled = replace(
            draft,
            customer_name=name,
            customer_phone=phone,
            customer_email=email,
            is_home_service=is_home,
            service_location=location,
            collected_fields=frozenset(collected),
        )
        if prefilled != draft:
            prefilled = replace(prefilled, next_step=determine_next_step(prefilled))
        return prefilled

    def _hours(self, business: BusinessProfile | None) -> BusinessHoursIndex | None:
        if business is None:
            return None
        return self._availability.hours_for(business.business_id)

    def _availability_hint(
        self,
        business: BusinessProfile | None,
        draft: AppointmentDraft,
        hours: BusinessHoursIndex | None,
    ) -> AvailabilityHint | None:
        if business is None or hours is None or draft.next_step is not NextStep.TIME or not draft.date:
            return None

        weekday = weekday_name(draft.date)
        day_hours = hours.for_weekday(weekday) if weekday else None
        try:
            slots = self._availability.list_available_slots(business.business_id, draft.date, hours=hours)
        except AvailabilityUnknown as e:
            self._logger.info("Availability unknown", extra={"business_id": business.business_id, "reason": str(e)})
            return AvailabilityHint(date=draft.date, slots=None)

        is_open = day_hours is not None and day_hours.is_open
        return AvailabilityHint(
            date=draft.date,
            slots=tuple(slots),
            is_open=is_open,
            open=day_hours.open if day_hours else None,
            close=day_hours.close if day_hours else None,
        )
