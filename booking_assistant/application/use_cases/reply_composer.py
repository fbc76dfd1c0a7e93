from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from booking_assistant.application.utils.date_parser import format_date
from booking_assistant.domain.entities.appointment_draft import AppointmentDraft, NextStep
from booking_assistant.domain.entities.business_hours import BusinessHoursIndex
from booking_assistant.domain.entities.business_profile import BusinessProfile

FALLBACK_REPLY = "I'd be happy to help you schedule an appointment. What service can I help you with?"

NOTES_EXAMPLES = (
    "Specific issues to address (like 'leaking faucet', 'broken pipe')",
    "Access instructions (gate codes, entry points, parking information)",
    "Special considerations (pets, children, allergies)",
    "Areas to focus on (which rooms, specific fixtures)",
    "Any urgency or priority information",
)


@dataclass(frozen=True)
class AvailabilityHint:
    date: str
    slots: tuple[str, ...] | None  # None when hours are unknown
    is_open: bool = True
    open: str | None = None
    close: str | None = None


@dataclass(frozen=True)
class ComposedReply:
    text: str
    error: str | None = None


class ReplyComposer:
    """Builds the assistant's reply: echo what is collected, ask one question."""

    def __init__(self, max_displayed_slots: int = 8) -> None:
        self._max_displayed_slots = max_displayed_slots
        self._logger = logging.getLogger(__name__)

    def compose(
        self,
        draft: AppointmentDraft,
        today: date,
        business: BusinessProfile | None = None,
        hours: BusinessHoursIndex | None = None,
        availability: AvailabilityHint | None = None,
        apology: bool = False,
    ) -> ComposedReply:
        try:
            blocks: list[str] = []
            if apology:
                blocks.append("Sorry, I had trouble understanding that message.")

            if draft.next_step is NextStep.REVIEW:
                blocks.append("Great! I've got everything I need to schedule your appointment:\n" + _summary(draft))
                blocks.append(_review_question(business))
            else:
                blocks.append(_intro(draft))
                if draft.collected_fields:
                    blocks.append("Here's what I have so far:\n" + _summary(draft))
                blocks.append(self._question(draft, today, business, hours, availability))

            if draft.validation_errors:
                issues = "\n".join(f"- {_as_statement(error)}" for error in draft.validation_errors)
                blocks.append("I noticed a couple things we need to address:\n" + issues)

            return ComposedReply("\n\n".join(block for block in blocks if block))
        except Exception as e:
            self._logger.exception("Error composing reply", extra={"error": str(e)})
            return ComposedReply(FALLBACK_REPLY, f"compose_failed_{type(e).__name__}")

    def _question(
        self,
        draft: AppointmentDraft,
        today: date,
        business: BusinessProfile | None,
        hours: BusinessHoursIndex | None,
        availability: AvailabilityHint | None,
    ) -> str:
        step = draft.next_step

        if step is NextStep.SERVICE:
            text = "What type of service are you looking to schedule?"
            if business and business.services:
                text += "\n\nWe specialize in:\n" + "\n".join(f"- {name}" for name in business.services)
            return text

        if step is NextStep.DATE:
            text = f"When would you like to book your {draft.service or 'service'}?"
            if hours and hours.known:
                open_days = [
                    f"- {day.capitalize()}: {day_hours.open} - {day_hours.close}"
                    for day, day_hours in hours.open_days()
                    if day_hours.has_hours
                ]
                if open_days:
                    text += "\n\nWe're available:\n" + "\n".join(open_days)
            if any("past" in error for error in draft.validation_errors):
                tomorrow = format_date(today + timedelta(days=1))
                text += f"\n\nI can schedule you for tomorrow ({tomorrow}) or any day after that."
            return text

        if step is NextStep.TIME:
            text = f"What time would work best for you on {draft.date}?"
            if availability is not None:
                text += "\n\n" + self._availability_block(availability)
            return text

        if step is NextStep.CUSTOMER_NAME:
            return "Could I get your name for the appointment?"

        if step is NextStep.CUSTOMER_PHONE:
            return "What's the best phone number for us to reach you at?"

        if step is NextStep.ADDRESS:
            return (
                "Since this service will be performed at your location, what's your complete address "
                "(street, city, state and zip code)?"
            )

        return (
            "Would you like to add any notes or specific requirements for your appointment? For example:\n"
            + "\n".join(f"- {example}" for example in NOTES_EXAMPLES)
            + "\n\nIf you don't have any special notes, just say 'no notes' and we'll proceed with scheduling."
        )

    def _availability_block(self, availability: AvailabilityHint) -> str:
        if not availability.is_open:
            return f"Unfortunately we're not open on {availability.date}. Just tell me another date and I'll check it for you."
        if availability.slots is None:
            return "I can't confirm exact openings for that day yet, but I'll pass your preferred time along."

        lines = []
        if availability.open and availability.close:
            lines.append(
                f"We have appointments available between {availability.open} and {availability.close} on that day."
            )
        if not availability.slots:
            lines.append(
                f"We're fully booked on {availability.date}. If another day suits you, just tell me the new date."
            )
            return "\n\n".join(lines)

        displayed = [f"- {slot}" for slot in availability.slots[: self._max_displayed_slots]]
        if len(availability.slots) > self._max_displayed_slots:
            displayed.append("- ...and additional times available")
        lines.append("Here are some available time slots:\n" + "\n".join(displayed))
        return "\n\n".join(lines)


def _intro(draft: AppointmentDraft) -> str:
    count = len(draft.collected_fields)
    if count == 0:
        return "I'd love to help you schedule an appointment! Let me get that set up for you."
    if count == 1:
        return "Thanks! Just a few more quick details and we'll have you all set."
    if count == 2:
        return "Thanks! We're almost there. Just a couple more things to finalize your appointment."
    return "Thanks! Almost done. Just a few final details to get you scheduled."


def _summary(draft: AppointmentDraft) -> str:
    rows = [
        ("Service", draft.service),
        ("Date", draft.date),
        ("Time", draft.time),
        ("Name", draft.customer_name),
        ("Phone", draft.customer_phone),
        ("Service Address", draft.address if draft.is_home_service else None),
        ("Notes", draft.notes),
    ]
    return "\n".join(f"- {label}: {value}" for label, value in rows if value)


def _review_question(business: BusinessProfile | None) -> str:
    name = business.name if business else "the business"
    return f"Shall I send this appointment request to {name}? Just reply 'yes' to confirm."


def _as_statement(text: str) -> str:
    return text.replace("?", ".").strip()


def booking_confirmation_text(draft: AppointmentDraft, business: BusinessProfile | None) -> str:
    name = business.name if business else "the business"
    return (
        f"Your appointment request has been sent to {name}:\n"
        + _summary(draft)
        + "\n\nYou'll receive a confirmation once the business reviews it. Anything else I can help you with?"
    )
