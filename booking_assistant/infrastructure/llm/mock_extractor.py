from __future__ import annotations

import re
from typing import Any

from booking_assistant.application.ports.extraction import ExtractionPort
from booking_assistant.application.utils.notes_rules import is_notes_negation

SERVICES_HEADER = "Services offered:"
PHONE_PATTERN = re.compile(r"(\+?\d[\d\s().-]{8,}\d)")
ISO_DATE_PATTERN = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")
TIME_PATTERN = re.compile(r"\b(\d{1,2}(?::\d{2})?\s*(?:am|pm|a\.m\.|p\.m\.)|\d{1,2}:\d{2})", re.IGNORECASE)
NAME_PATTERN = re.compile(r"\b(?:my name is|name's|this is|i am|i'm)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)")
ADDRESS_PATTERN = re.compile(
    r"\b(\d+\s+[\w\s.]+?\b(?:st|street|ave|avenue|rd|road|blvd|boulevard|ln|lane|dr|drive|way|ct|court)\b[^\n]*)",
    re.IGNORECASE,
)


class MockExtractor(ExtractionPort):
    """Rule-based stand-in for the language service, used without an API key."""

    def extract(self, system_prompt: str, message: str) -> dict[str, Any]:
        text = message.strip()
        lowered = text.lower()

        service = None
        for name in _services_from_prompt(system_prompt):
            if name.lower() in lowered:
                service = name
                break

        date_match = ISO_DATE_PATTERN.search(text)
        time_match = TIME_PATTERN.search(text)
        name_match = NAME_PATTERN.search(text)
        address_match = ADDRESS_PATTERN.search(text)

        phone = None
        without_slots = TIME_PATTERN.sub(" ", ISO_DATE_PATTERN.sub(" ", text))
        for candidate in PHONE_PATTERN.findall(without_slots):
            if len(re.sub(r"\D", "", candidate)) >= 10:
                phone = candidate.strip()
                break

        collected: list[str] = []
        notes = None
        if is_notes_negation(text):
            notes = ""
            collected.append("notes")

        payload = {
            "isAppointmentRequest": any(word in lowered for word in ("book", "appointment", "schedule")),
            "service": service,
            "date": date_match.group(1) if date_match else None,
            "time": time_match.group(1) if time_match else None,
            "customerName": name_match.group(1) if name_match else None,
            "customerPhone": phone,
            "address": address_match.group(1).strip() if address_match else None,
            "notes": notes,
            "previouslyCollected": collected,
            "validationErrors": [],
        }
        return payload


def _services_from_prompt(prompt: str) -> list[str]:
    services: list[str] = []
    lines = prompt.splitlines()
    try:
        start = lines.index(SERVICES_HEADER) + 1
    except ValueError:
        return services
    for line in lines[start:]:
        stripped = line.strip()
        if not stripped.startswith("- "):
            break
        services.append(stripped[2:].strip())
    return services
