import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from salonbook.api.v1.router import api_router
from salonbook.core.config import settings
from salonbook.core.errors import register_error_handlers
from salonbook.services.reminders import shutdown_scheduler, start_scheduler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    if settings.REMINDERS_ENABLED:
        start_scheduler()
    yield
    shutdown_scheduler()


app = FastAPI(
    title="SalonBook API",
    description="Salon appointment booking: availability, multi-service bookings, payments and reminders",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if settings.APP_ENV == "production" else ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "salonbook-api"}
