from __future__ import annotations

from dataclasses import dataclass

from booking_assistant.domain.entities.appointment import Appointment, AppointmentStatus


@dataclass(frozen=True)
class TransitionEvent:
    appointment_id: str
    from_status: AppointmentStatus
    to_status: AppointmentStatus
    appointment: Appointment
    actor: str = "business"  # "business" | "customer"


@dataclass(frozen=True)
class AppointmentCreatedEvent:
    appointment: Appointment
