from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from booking_assistant.application.ports.business_directory import BusinessDirectoryPort
from booking_assistant.application.ports.chat_transport import ChatTransportPort
from booking_assistant.application.ports.notifier import NotifierPort
from booking_assistant.domain.entities.appointment import Appointment, AppointmentStatus
from booking_assistant.domain.entities.transition_event import AppointmentCreatedEvent, TransitionEvent

SENDER_BUSINESS = "BUSINESS"
SENDER_USER = "USER"
SENDER_SYSTEM = "SYSTEM"


class AppointmentNotifier:
    """Fans appointment events out to the chat room, email and SMS; each channel fails alone."""

    def __init__(
        self,
        chat: ChatTransportPort,
        notifier: NotifierPort,
        directory: BusinessDirectoryPort,
        app_base_url: str = "",
    ) -> None:
        self._chat = chat
        self._notifier = notifier
        self._directory = directory
        self._app_base_url = app_base_url.rstrip("/")
        self._logger = logging.getLogger(__name__)

    def handle_transition(self, event: TransitionEvent) -> None:
        appointment = event.appointment
        business_name, business_email = self._business_contact(appointment.business_id)
        payload = self._payload(appointment, business_name)
        where = f"{appointment.service} on {appointment.preferred_date} at {appointment.preferred_time}"

        if event.actor == "customer":
            self._handle_customer_action(event, payload, business_email)
            return

        status = event.to_status
        if status is AppointmentStatus.CONFIRMED:
            self._post(appointment, SENDER_BUSINESS, f"Your appointment with {business_name} for {where} has been confirmed.")
            self._send("appointment_confirmed", appointment.customer_email, payload, appointment)
            self._send("appointment_confirmed", appointment.customer_phone, payload, appointment)
        elif status is AppointmentStatus.CANCELED:
            self._post(appointment, SENDER_BUSINESS, f"{business_name} has canceled your appointment for {where}.")
            self._send("appointment_canceled", appointment.customer_email, payload, appointment)
            self._send("appointment_canceled", business_email, payload, appointment)
        elif status is AppointmentStatus.COMPLETED:
            self._post(
                appointment,
                SENDER_BUSINESS,
                f"Your appointment with {business_name} for {where} has been marked as completed. "
                "Thank you for your business!",
            )
        elif status is AppointmentStatus.RESCHEDULE_REQUESTED and appointment.suggested_time is not None:
            suggestion = appointment.suggested_time
            self._post(
                appointment,
                SENDER_BUSINESS,
                f"{business_name} has proposed a new time for your {appointment.service} appointment: "
                f"{suggestion.date} at {suggestion.time}. You can accept or decline it from your appointments page.",
            )
            self._send("reschedule_requested", appointment.customer_email, payload, appointment)
        else:
            self._logger.info(
                "No notifications for transition",
                extra={"appointment_id": appointment.id, "status": status.value},
            )

    def handle_created(self, event: AppointmentCreatedEvent) -> None:
        appointment = event.appointment
        business_name, business_email = self._business_contact(appointment.business_id)
        self._post(
            appointment,
            SENDER_SYSTEM,
            f"New appointment request: {appointment.service} on {appointment.preferred_date} at "
            f"{appointment.preferred_time} for {appointment.customer_name} ({appointment.customer_phone}).",
        )
        self._send("new_appointment", business_email, self._payload(appointment, business_name), appointment)

    def _handle_customer_action(self, event: TransitionEvent, payload: dict[str, Any], business_email: str | None) -> None:
        appointment = event.appointment
        if event.to_status is AppointmentStatus.CONFIRMED:
            self._post(
                appointment,
                SENDER_USER,
                f"{appointment.customer_name} has accepted your request to reschedule the {appointment.service} "
                f"appointment to {appointment.preferred_date} at {appointment.preferred_time}.",
            )
            self._send("reschedule_accepted", business_email, payload, appointment)
        elif event.to_status is AppointmentStatus.CANCELED:
            self._post(
                appointment,
                SENDER_USER,
                f"{appointment.customer_name} has canceled the appointment for {appointment.service} on "
                f"{appointment.preferred_date} at {appointment.preferred_time}.",
            )
            self._send("appointment_canceled", business_email, payload, appointment)

    def _business_contact(self, business_id: str) -> tuple[str, str | None]:
        try:
            profile = self._directory.get_business_profile(business_id)
        except Exception as e:
            self._logger.warning("Business lookup failed", extra={"business_id": business_id, "error": str(e)})
            profile = None
        if profile is None:
            return "The business", None
        return profile.name, profile.email

    def _payload(self, appointment: Appointment, business_name: str) -> dict[str, Any]:
        payload = appointment.to_dict()
        payload["business_name"] = business_name
        if self._app_base_url:
            payload["chat_url"] = f"{self._app_base_url}/chat/{appointment.chat_room_id}"
        return payload

    def _post(self, appointment: Appointment, sender_type: str, content: str) -> None:
        self._attempt(
            lambda: self._chat.post_message(appointment.chat_room_id, sender_type, content),
            "chat",
            appointment,
        )

    def _send(self, kind: str, recipient: str | None, payload: dict[str, Any], appointment: Appointment) -> None:
        if not recipient:
            self._logger.info(
                "Skipping notification without recipient",
                extra={"appointment_id": appointment.id, "reason": kind},
            )
            return
        self._attempt(lambda: self._notifier.notify(kind, recipient, payload), kind, appointment)

    def _attempt(self, action: Callable[[], None], channel: str, appointment: Appointment) -> None:
        try:
            action()
        except Exception as e:
            self._logger.error(
                "Notification channel failed",
                extra={"appointment_id": appointment.id, "reason": channel, "error": str(e)},
            )
