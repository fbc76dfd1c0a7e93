from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any

from booking_assistant.application.utils.date_parser import normalize_time
from booking_assistant.domain.entities.business_hours import WEEKDAYS, BusinessHoursIndex, DayHours

logger = logging.getLogger(__name__)


def parse_business_hours(raw: str | dict[str, Any] | None) -> BusinessHoursIndex:
    """Build a BusinessHoursIndex from a raw schedule (JSON string or mapping).

    Each weekday entry looks like ``{"open": "9:00 AM", "close": "17:00", "isOpen": true}``.
    Missing ``isOpen`` means closed.
    """
    if raw is None or raw == "":
        return BusinessHoursIndex(days={}, known=False)

    data: Any = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Unparseable business hours", extra={"reason": "invalid_json"})
            return BusinessHoursIndex(days={}, known=False)

    if not isinstance(data, dict):
        logger.warning("Unparseable business hours", extra={"reason": "not_an_object"})
        return BusinessHoursIndex(days={}, known=False)

    days: dict[str, DayHours] = {}
    for key, value in data.items():
        day = str(key).strip().lower()
        if day not in WEEKDAYS or not isinstance(value, dict):
            continue
        open_raw = str(value.get("open") or "").strip()
        close_raw = str(value.get("close") or "").strip()
        days[day] = DayHours(
            open=normalize_time(open_raw) if open_raw else None,
            close=normalize_time(close_raw) if close_raw else None,
            is_open=bool(value.get("isOpen", value.get("is_open", False))),
        )

    return BusinessHoursIndex(days=days, known=bool(days))


def weekday_name(iso_date: str | None) -> str | None:
    try:
        return WEEKDAYS[date.fromisoformat(iso_date or "").weekday()]
    except ValueError:
        return None
