# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from app.core.config import settings
from app.core.errors import UpstreamUnavailable
from app.core.middleware import CapabilityMiddleware
from app.db.sql import init_db
from app.routers import appointments, health, shifts, slots

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    The lifespan function is used to manage the FastAPI application lifecycle.
    Outside dev the schema is owned by Alembic migrations.
    """
    if settings.APP_ENV == "dev":
        await init_db()
    logger.info("Scheduling API started (env=%s, tz=%s)", settings.APP_ENV, settings.SCHEDULE_TZ)
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Hospital Appointment Scheduling API",
        lifespan=lifespan,
    )
    app.add_middleware(CapabilityMiddleware)

    # Routing
    app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])
    app.include_router(shifts.router, prefix=settings.API_PREFIX, tags=["shifts"])
    app.include_router(slots.router, prefix=settings.API_PREFIX, tags=["slots"])
    app.include_router(appointments.router, prefix=settings.API_PREFIX, tags=["appointments"])

    @app.exception_handler(UpstreamUnavailable)
    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    async def upstream_unavailable_handler(request: Request, exc: Exception):
        logger.error("Schedule store unavailable on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "schedule_store_unavailable"})

    @app.get("/")
    def root():
        return {"message": "Scheduling API running successfully"}

    return app


app = create_app()
