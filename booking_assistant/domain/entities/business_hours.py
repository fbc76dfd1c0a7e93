from __future__ import annotations

from dataclasses import dataclass

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class DayHours:
    open: str | None  # HH:MM
    close: str | None  # HH:MM
    is_open: bool

    @property
    def has_hours(self) -> bool:
        return bool(self.open and self.close)


@dataclass(frozen=True)
class BusinessHoursIndex:
    """Normalized weekday -> hours lookup.

    ``known`` is False when the raw schedule was missing or unparseable, in
    which case availability can only be checked against existing bookings.
    """

    days: dict[str, DayHours]
    known: bool = True

    def for_weekday(self, weekday: str) -> DayHours | None:
        return self.days.get(weekday.lower())

    def open_days(self) -> list[tuple[str, DayHours]]:
        return [(day, self.days[day]) for day in WEEKDAYS if day in self.days and self.days[day].is_open]
