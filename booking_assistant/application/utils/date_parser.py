from __future__ import annotations

import logging
import re
from datetime import date, timedelta

logger = logging.getLogger(__name__)

ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
TIME_PATTERN = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(a\.?\s*m\.?|p\.?\s*m\.?)?(?![\d:])", re.IGNORECASE)

TOMORROW_SPELLINGS = ("tomorrow", "tommorow", "tommorrow", "tomorow")
TOMORROW_PHRASES = ("book for tomorrow", "schedule for tomorrow", "book tomorrow", "schedule tomorrow")
TODAY_PHRASES = ("book for today", "schedule for today", "book today", "schedule today")

MAX_YEARS_AHEAD = 10
MAX_MONTH_JUMP = 2


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def parse_iso_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def resolve_relative_date(message: str, today: date) -> str | None:
    """Resolve "today" / "tomorrow" / "day after tomorrow" messages to YYYY-MM-DD.

    Only whole-message terms or explicit booking phrases count, so that a
    sentence that merely mentions tomorrow is left to the extraction service.
    """
    text = " ".join(message.lower().split())

    if "day after tomorrow" in text:
        return format_date(today + timedelta(days=2))
    if text in TOMORROW_SPELLINGS or any(phrase in text for phrase in TOMORROW_PHRASES):
        return format_date(today + timedelta(days=1))
    if text == "today" or any(phrase in text for phrase in TODAY_PHRASES):
        return format_date(today)
    return None


def mentions_tomorrow(message: str) -> bool:
    text = message.lower()
    return any(spelling in text for spelling in TOMORROW_SPELLINGS) and "day after" not in text


def normalize_year(date_str: str | None, today: date) -> str | None:
    """Rewrite stale or implausibly distant years to the current year."""
    if not date_str:
        return date_str
    match = ISO_DATE_PATTERN.match(date_str.strip())
    if not match:
        return date_str

    year = int(match.group(1))
    current_year = today.year
    if year < current_year or year > current_year + MAX_YEARS_AHEAD:
        normalized = f"{current_year}-{match.group(2)}-{match.group(3)}"
        logger.info("Normalized date year", extra={"reason": f"{date_str}->{normalized}"})
        return normalized
    return date_str.strip()


def check_date_consistency(candidate: str | None, previous: str | None) -> str | None:
    """Return the date to keep when a new candidate replaces a known date.

    Rejects (keeps ``previous``) candidates that look like a single-field
    misread: invalid month, month/day transposition, or a month jump of more
    than two with the same day.
    """
    if not candidate or not previous or candidate == previous:
        return candidate

    new_match = ISO_DATE_PATTERN.match(candidate)
    prev_match = ISO_DATE_PATTERN.match(previous)
    if not new_match or not prev_match:
        return candidate

    prev_month, prev_day = int(prev_match.group(2)), int(prev_match.group(3))
    new_month, new_day = int(new_match.group(2)), int(new_match.group(3))

    reason = None
    if new_month > 12:
        reason = "invalid_month"
    elif prev_month == new_day and prev_day == new_month:
        reason = "month_day_swapped"
    elif prev_day == new_day and abs(prev_month - new_month) > MAX_MONTH_JUMP:
        reason = "month_jump"

    if reason:
        logger.info(
            "Rejected date change, keeping previous date",
            extra={"reason": f"{reason}:{previous}->{candidate}"},
        )
        return previous
    return candidate


def is_past_date(date_str: str | None, today: date) -> bool:
    parsed = parse_iso_date(date_str)
    return parsed is not None and parsed < today


def normalize_time(value: str | None) -> str | None:
    """Normalize a time-of-day string to 24-hour zero-padded HH:MM.

    Accepts "2pm", "2:30 PM", "14:00", "9"; minutes default to 0. Returns None
    when nothing time-like can be read.
    """
    if not value:
        return None
    text = value.strip().lower()
    if text == "noon":
        return "12:00"
    if text == "midnight":
        return "00:00"

    match = TIME_PATTERN.search(text)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2)) if match.group(2) else 0
    period = (match.group(3) or "").replace(".", "").replace(" ", "")

    if period == "pm" and hours < 12:
        hours += 12
    elif period == "am" and hours == 12:
        hours = 0

    if hours > 23 or minutes > 59:
        return None
    return f"{hours:02d}:{minutes:02d}"


def add_minutes(hhmm: str, minutes: int) -> str | None:
    """Add minutes to an HH:MM value; None once the result leaves the day."""
    hours, mins = (int(part) for part in hhmm.split(":"))
    total = hours * 60 + mins + minutes
    if total >= 24 * 60:
        return None
    return f"{total // 60:02d}:{total % 60:02d}"
