import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from booking_assistant.api.appointments import router as appointments_router
from booking_assistant.api.businesses import router as businesses_router
from booking_assistant.api.chat_rooms import router as chat_rooms_router
from booking_assistant.core.config import settings
from booking_assistant.wiring.dependencies import shutdown_event_dispatcher


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in (
            "chat_room_id",
            "appointment_id",
            "business_id",
            "status",
            "next_step",
            "reason",
            "error",
        ):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logging.getLogger(__name__).info("Shutting down, draining event dispatcher")
    shutdown_event_dispatcher()


app = FastAPI(title="Service Booking Assistant", version="1.0.0", lifespan=lifespan)

app.include_router(chat_rooms_router, tags=["chat-rooms"])
app.include_router(appointments_router, tags=["appointments"])
app.include_router(businesses_router, tags=["businesses"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
