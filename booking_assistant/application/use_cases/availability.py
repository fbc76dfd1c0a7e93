from __future__ import annotations

import logging

from booking_assistant.application.exceptions import AvailabilityUnknown
from booking_assistant.application.ports.appointment_store import AppointmentStorePort
from booking_assistant.application.ports.business_directory import BusinessDirectoryPort
from booking_assistant.application.utils.business_hours import parse_business_hours, weekday_name
from booking_assistant.application.utils.date_parser import add_minutes, normalize_time
from booking_assistant.domain.entities.appointment import LIVE_STATUSES
from booking_assistant.domain.entities.business_hours import BusinessHoursIndex


class AvailabilityChecker:
    def __init__(
        self,
        store: AppointmentStorePort,
        directory: BusinessDirectoryPort,
        slot_interval_minutes: int = 30,
    ) -> None:
        self._store = store
        self._directory = directory
        self._slot_interval_minutes = slot_interval_minutes
        self._logger = logging.getLogger(__name__)

    def hours_for(self, business_id: str) -> BusinessHoursIndex:
        return parse_business_hours(self._directory.get_business_hours(business_id))

    def is_available(
        self,
        business_id: str,
        date: str,
        time: str,
        hours: BusinessHoursIndex | None = None,
    ) -> bool:
        normalized_time = normalize_time(time)
        weekday = weekday_name(date)
        if normalized_time is None or weekday is None:
            self._logger.info(
                "Cannot check availability for malformed slot",
                extra={"business_id": business_id, "reason": f"{date} {time}"},
            )
            return False

        index = hours if hours is not None else self.hours_for(business_id)

        if not index.known:
            # No usable schedule: only Sunday defaults to closed.
            if weekday == "sunday":
                return False
        else:
            day_hours = index.for_weekday(weekday)
            if day_hours is None or not day_hours.is_open:
                return False
            if day_hours.has_hours and not (day_hours.open <= normalized_time <= day_hours.close):
                return False

        return not self._has_live_booking(business_id, date, normalized_time)

    def list_available_slots(
        self,
        business_id: str,
        date: str,
        interval_minutes: int | None = None,
        hours: BusinessHoursIndex | None = None,
    ) -> list[str]:
        """
        Walk the day's opening hours in fixed steps and keep the bookable times.

        Raises:
            AvailabilityUnknown: the schedule (or that day's hours) is missing, so
                slots cannot be enumerated; callers should not treat this as "closed".
        """
        step = interval_minutes or self._slot_interval_minutes
        index = hours if hours is not None else self.hours_for(business_id)
        weekday = weekday_name(date)
        if weekday is None:
            return []
        if not index.known:
            raise AvailabilityUnknown(f"No business hours configured for business {business_id}")

        day_hours = index.for_weekday(weekday)
        if day_hours is None or not day_hours.is_open:
            return []
        if not day_hours.has_hours:
            raise AvailabilityUnknown(f"Business {business_id} is open on {weekday} but has no hours set")

        slots: list[str] = []
        current: str | None = day_hours.open
        while current is not None and current <= day_hours.close:
            if self.is_available(business_id, date, current, hours=index):
                slots.append(current)
            current = add_minutes(current, step)

        self._logger.info(
            "Listed available slots",
            extra={"business_id": business_id, "reason": f"{date}:{len(slots)}"},
        )
        return slots

    def _has_live_booking(self, business_id: str, date: str, time: str) -> bool:
        return any(
            appointment.status in LIVE_STATUSES
            for appointment in self._store.find_for_slot(business_id, date, time)
        )
