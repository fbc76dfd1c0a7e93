from __future__ import annotations

import re

CONFIRMATIONS = (
    "yes",
    "yeah",
    "yep",
    "sure",
    "ok",
    "okay",
    "confirm",
    "book it",
    "sounds good",
    "looks good",
    "perfect",
)

NEGATIONS = ("no", "not", "don't", "dont", "wait", "change")


def is_confirmation(text: str) -> bool:
    normalized = " ".join(re.sub(r"[^a-z'\s]", " ", text.lower()).split())
    if not normalized:
        return False
    words = set(normalized.split())
    if words & set(NEGATIONS):
        return False
    padded = f" {normalized} "
    return any(f" {phrase} " in padded for phrase in CONFIRMATIONS)
