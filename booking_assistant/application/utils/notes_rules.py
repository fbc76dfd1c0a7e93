from __future__ import annotations

import re
from collections.abc import Sequence

from booking_assistant.domain.entities.message import Turn

NOTES_NEGATION_PHRASES = (
    "no notes",
    "no special requirements",
    "no additional notes",
    "no specific notes",
    "nothing to add",
    "nothing special",
    "no requirements",
)

# Bare refusals only count as "no notes" when the notes question was just asked.
BARE_NEGATIONS = frozenset({"no", "nope", "none", "nothing", "n/a", "no thanks", "no thank you"})

NOTES_QUESTION_PHRASES = (
    "would you like to add any notes",
    "any notes or specific requirements",
    "any special requirements",
    "notes or requirements",
    "add any notes",
)

NOTES_PATTERNS = (
    re.compile(r"\bby the way[,:]?\s+(.*)", re.IGNORECASE),
    re.compile(r"\bplease note[,:]?\s+(.*)", re.IGNORECASE),
    re.compile(r"(?:^|[.!?]\s+)also[,:]?\s+(.*)", re.IGNORECASE),
    re.compile(r"\bnotes?\s*[:\-]\s*(.*)", re.IGNORECASE),
    re.compile(r"\bspecial instructions?[,:]?\s+(.*)", re.IGNORECASE),
    re.compile(r"(?:^|[.!?]\s+)additional(?:ly)?[,:]?\s+(.*)", re.IGNORECASE),
    re.compile(r"\boh and[,:]?\s+(.*)", re.IGNORECASE),
    re.compile(r"\bone more thing[,:]?\s+(.*)", re.IGNORECASE),
    re.compile(r"\bmake sure\s+(.*)", re.IGNORECASE),
    re.compile(r"\bspecifically\s+(.*)", re.IGNORECASE),
)

GENERIC_ACKNOWLEDGEMENTS = frozenset(
    {"yes", "no", "ok", "okay", "sure", "fine", "good", "thanks", "thank you", "yep", "yeah", "great", "cool"}
)


def _normalize(text: str) -> str:
    return " ".join(text.lower().strip().split())


def is_notes_negation(message: str, notes_question_pending: bool = False) -> bool:
    text = _normalize(message)
    if any(phrase in text for phrase in NOTES_NEGATION_PHRASES):
        return True
    return notes_question_pending and text.rstrip(".!") in BARE_NEGATIONS


def was_asked_for_notes(recent_turns: Sequence[Turn]) -> bool:
    """Only the latest assistant turn counts; a later reply moves the conversation on."""
    for turn in reversed(list(recent_turns)):
        if turn.role == "user":
            continue
        content = turn.content.lower()
        return any(phrase in content for phrase in NOTES_QUESTION_PHRASES)
    return False


def extract_notes_from_patterns(message: str) -> str | None:
    for pattern in NOTES_PATTERNS:
        match = pattern.search(message)
        if match and match.group(1) and match.group(1).strip():
            return match.group(1).strip()
    return None


def is_noise_note(notes: str) -> bool:
    """A short generic acknowledgement ("ok", "thanks") is not a note."""
    words = notes.split()
    if len(words) >= 3:
        return False
    cleaned = _normalize(re.sub(r"[^\w\s]", "", notes))
    if cleaned not in GENERIC_ACKNOWLEDGEMENTS:
        return False
    return not _has_proper_noun(words)


def _has_proper_noun(words: Sequence[str]) -> bool:
    for word in words:
        token = re.sub(r"[^\w]", "", word)
        if re.fullmatch(r"[A-Z][a-z]+", token) and token.lower() not in GENERIC_ACKNOWLEDGEMENTS:
            return True
    return False
