class ExtractionFailure(RuntimeError):
    """Raised when the language extraction service cannot produce a usable result."""
    pass


class LLMUpstreamError(ExtractionFailure):
    """Raised when LLM provider fails (timeouts, network errors, service unavailable)."""
    pass


class LLMContractError(ExtractionFailure):
    """Raised when LLM adapter violates contract (bad format or missing data)."""
    pass


class InvalidTransition(ValueError):
    """Raised for an illegal status change or a reschedule without a proposed time."""
    pass


class NotFound(LookupError):
    """Raised when a chat room or appointment does not exist."""
    pass


class PersistenceUncertain(RuntimeError):
    """Raised when an update could not be verified after bounded retries.

    The write may still have landed; callers must re-query before assuming failure.
    """

    def __init__(self, chat_room_id: str, appointment_id: str, attempts: int) -> None:
        super().__init__(
            f"Could not verify update of appointment {appointment_id} in chat room {chat_room_id} "
            f"after {attempts} attempts"
        )
        self.chat_room_id = chat_room_id
        self.appointment_id = appointment_id
        self.attempts = attempts


class AvailabilityUnknown(RuntimeError):
    """Raised when business hours are absent or unparseable, so slots cannot be enumerated."""
    pass


class IncompleteDraft(ValueError):
    """Raised when booking is attempted before every required field is collected."""
    pass
