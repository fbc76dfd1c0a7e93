from collections.abc import Callable
from datetime import datetime
from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from booking_assistant.core.config import settings
from booking_assistant.application.ports.extraction import ExtractionPort
from booking_assistant.application.ports.notifier import NotifierPort
from booking_assistant.application.use_cases.availability import AvailabilityChecker
from booking_assistant.application.use_cases.book_appointment import BookAppointmentUseCase
from booking_assistant.application.use_cases.conversation_turn import ConversationTurnUseCase
from booking_assistant.application.use_cases.notifications import AppointmentNotifier
from booking_assistant.application.use_cases.reply_composer import ReplyComposer
from booking_assistant.application.use_cases.slot_filling import SlotFillingEngine
from booking_assistant.application.use_cases.status_transition import StatusTransitionService
from booking_assistant.infrastructure.business.business_directory import (
    InMemoryBusinessDirectory,
    load_business_directory,
)
from booking_assistant.infrastructure.events.dispatchers import ThreadPoolEventDispatcher
from booking_assistant.infrastructure.llm.mock_extractor import MockExtractor
from booking_assistant.infrastructure.llm.openai_extractor import OpenAIExtractor
from booking_assistant.infrastructure.notifications.logging_notifier import LoggingNotifier
from booking_assistant.infrastructure.notifications.webhook_notifier import WebhookNotifier
from booking_assistant.infrastructure.store.json_store import JsonChatRoomStore
from booking_assistant.infrastructure.store.memory_store import MemoryChatRoomStore


def get_clock() -> Callable[[], datetime]:
    tz = ZoneInfo(settings.BUSINESS_TIMEZONE)
    return lambda: datetime.now(tz)


@lru_cache
def get_extractor() -> ExtractionPort:
    if settings.OPENAI_API_KEY and settings.OPENAI_API_KEY.strip():
        return OpenAIExtractor(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL_EXTRACT,
            temperature=settings.OPENAI_TEMPERATURE_EXTRACT,
            timeout_seconds=settings.EXTRACTION_TIMEOUT_SECONDS,
        )
    logging.getLogger(__name__).info("Using MockExtractor (OPENAI_API_KEY missing)")
    return MockExtractor()


@lru_cache
def get_chat_room_store() -> MemoryChatRoomStore | JsonChatRoomStore:
    options = dict(
        history_limit=settings.HISTORY_LIMIT,
        duplicate_window_minutes=settings.DUPLICATE_WINDOW_MINUTES,
        verify_attempts=settings.UPDATE_VERIFY_ATTEMPTS,
        retry_backoff_seconds=settings.UPDATE_RETRY_BACKOFF_SECONDS,
    )
    if settings.STORE_PROVIDER.lower() == "json":
        return JsonChatRoomStore(get_clock(), data_dir=settings.STORE_DATA_DIR, **options)
    return MemoryChatRoomStore(get_clock(), **options)


@lru_cache
def get_business_directory() -> InMemoryBusinessDirectory:
    return load_business_directory(settings.BUSINESS_DIRECTORY_PATH)


@lru_cache
def get_notifier() -> NotifierPort:
    if settings.NOTIFICATIONS_WEBHOOK_URL:
        return WebhookNotifier(settings.NOTIFICATIONS_WEBHOOK_URL)
    return LoggingNotifier()


@lru_cache
def get_event_dispatcher() -> ThreadPoolEventDispatcher:
    return ThreadPoolEventDispatcher(max_workers=settings.EVENT_WORKERS)


def get_availability_checker() -> AvailabilityChecker:
    return AvailabilityChecker(
        store=get_chat_room_store(),
        directory=get_business_directory(),
        slot_interval_minutes=settings.SLOT_INTERVAL_MINUTES,
    )


def get_appointment_notifier() -> AppointmentNotifier:
    return AppointmentNotifier(
        chat=get_chat_room_store(),
        notifier=get_notifier(),
        directory=get_business_directory(),
        app_base_url=settings.APP_BASE_URL,
    )


def get_book_appointment_use_case() -> BookAppointmentUseCase:
    return BookAppointmentUseCase(
        conversations=get_chat_room_store(),
        store=get_chat_room_store(),
        dispatcher=get_event_dispatcher(),
        on_created=get_appointment_notifier().handle_created,
        clock=get_clock(),
    )


def get_status_transition_service() -> StatusTransitionService:
    return StatusTransitionService(
        store=get_chat_room_store(),
        dispatcher=get_event_dispatcher(),
        on_transition=get_appointment_notifier().handle_transition,
        clock=get_clock(),
    )


def get_conversation_turn_use_case() -> ConversationTurnUseCase:
    clock = get_clock()
    engine = SlotFillingEngine(
        extractor=get_extractor(),
        availability=get_availability_checker(),
        clock=clock,
        composer=ReplyComposer(max_displayed_slots=settings.MAX_DISPLAYED_SLOTS),
    )
    return ConversationTurnUseCase(
        conversations=get_chat_room_store(),
        directory=get_business_directory(),
        engine=engine,
        booking=get_book_appointment_use_case(),
    )


def shutdown_event_dispatcher() -> None:
    """Drain pending notification handlers; a later call builds a fresh pool."""
    if get_event_dispatcher.cache_info().currsize:
        get_event_dispatcher().shutdown()
        get_event_dispatcher.cache_clear()
