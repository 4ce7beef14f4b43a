import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from booking_engine.api.appointments import router as appointments_router
from booking_engine.api.businesses import router as businesses_router
from booking_engine.core.config import settings
from booking_engine.wiring.dependencies import shutdown_container


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in (
            "appointment_id",
            "business_id",
            "staff_member_id",
            "status",
            "event",
            "channel",
            "recipient",
            "template",
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
    shutdown_container()


app = FastAPI(title="Marketplace Booking", version="1.0.0", lifespan=lifespan)

app.include_router(appointments_router, tags=["appointments"])
app.include_router(businesses_router, tags=["businesses"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
