import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .redis_client import redis_client
from .routers import bookings, closures, public, slots, working_hours
from .services.email import ResendEmailClient
from .services.email_consumer import email_consumer_loop, email_retry_loop
from .services.errors import BookingError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    tasks = []
    if settings.email_consumer_enabled:
        client = ResendEmailClient(settings.resend_api_key, settings.email_from)
        tasks.append(asyncio.create_task(email_consumer_loop(settings.redis_url, client)))
        tasks.append(asyncio.create_task(email_retry_loop(settings.redis_url)))
    yield
    for task in tasks:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


app = FastAPI(title="Slotbook API", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(public.router)
app.include_router(slots.router)
app.include_router(bookings.router)
app.include_router(working_hours.router)
app.include_router(closures.router)


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
