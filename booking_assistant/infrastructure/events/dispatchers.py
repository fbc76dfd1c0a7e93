from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from booking_assistant.application.ports.event_dispatcher import EventDispatcherPort


class InlineEventDispatcher(EventDispatcherPort):
    """Runs handlers on the caller's thread; failures are logged and dropped."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def dispatch(self, handler: Callable[[Any], None], event: Any) -> None:
        try:
            handler(event)
        except Exception as e:
            self._logger.error(
                "Event handler failed",
                extra={"reason": type(event).__name__, "error": str(e)},
            )


class ThreadPoolEventDispatcher(EventDispatcherPort):
    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="events")
        self._logger = logging.getLogger(__name__)

    def dispatch(self, handler: Callable[[Any], None], event: Any) -> None:
        future = self._executor.submit(handler, event)
        future.add_done_callback(lambda f: self._log_failure(f, event))

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _log_failure(self, future: Future, event: Any) -> None:
        error = future.exception()
        if error is not None:
            self._logger.error(
                "Event handler failed",
                extra={"reason": type(event).__name__, "error": str(error)},
            )
