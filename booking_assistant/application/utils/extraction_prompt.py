from __future__ import annotations

from datetime import date, timedelta

from booking_assistant.application.utils.date_parser import format_date
from booking_assistant.domain.entities.appointment_draft import AppointmentDraft, DraftField
from booking_assistant.domain.entities.business_profile import BusinessProfile


def build_extraction_prompt(
    today: date,
    business: BusinessProfile | None,
    prior: AppointmentDraft,
) -> str:
    tomorrow = format_date(today + timedelta(days=1))
    day_after = format_date(today + timedelta(days=2))
    year = today.year

    services = list(business.services) if business else []
    services_block = "\n".join(f"  - {name}" for name in services) if services else "  (not listed)"
    business_name = business.name if business else "the business"
    collected = sorted(f.value for f in prior.collected_fields)

    return (
        f"You are an assistant helping customers schedule appointments with {business_name}.\n"
        "Analyze the user message and decide whether it is (or continues) an appointment request.\n"
        "Return ONLY valid JSON. No markdown. No extra text.\n"
        "\n"
        "Output schema:\n"
        "{\n"
        "  \"isAppointmentRequest\": boolean,\n"
        "  \"service\": string | null,\n"
        "  \"date\": string | null,          // YYYY-MM-DD\n"
        "  \"time\": string | null,          // HH:MM AM/PM\n"
        "  \"customerName\": string | null,\n"
        "  \"customerPhone\": string | null,\n"
        "  \"address\": string | null,       // street, city, state and zip in one field\n"
        "  \"notes\": string | null,\n"
        "  \"previouslyCollected\": string[],  // subset of [\"service\",\"date\",\"time\",\"name\",\"phone\",\"address\",\"notes\"]\n"
        "  \"validationErrors\": string[]\n"
        "}\n"
        "\n"
        "Date rules:\n"
        f"  - Use the current year {year} unless the user states another year.\n"
        "  - \"April 9th\" is month 04, day 09. Never swap month and day.\n"
        f"  - \"today\" = {format_date(today)}, \"tomorrow\" (or misspellings like \"tommorow\") = {tomorrow}, "
        f"\"day after tomorrow\" = {day_after}.\n"
        "  - Report a date in the past as a validation error.\n"
        "\n"
        "Notes rules:\n"
        "  - Notes are specific issues, access instructions (gate codes, parking), special considerations\n"
        "    (pets, allergies), areas to focus on, equipment needs or urgency.\n"
        "  - Text after \"notes:\", \"also,\", \"by the way\", \"please note\" or \"additionally\" is a note.\n"
        "  - If the user says \"no notes\" or similar, set notes to \"\" and include \"notes\" in previouslyCollected.\n"
        "  - Only set fields that appear in THIS message; use null for everything else.\n"
        "\n"
        "Services offered:\n"
        f"{services_block}\n"
        "Match the requested service to one of these names when possible.\n"
        "\n"
        f"Already collected in this conversation: {collected}\n"
        f"Still missing: {describe_missing(prior)}\n"
    )


def describe_missing(draft: AppointmentDraft) -> list[str]:
    missing = []
    for field in DraftField:
        if field is DraftField.ADDRESS and not draft.is_home_service:
            continue
        if field not in draft.collected_fields:
            missing.append(field.value)
    return missing
