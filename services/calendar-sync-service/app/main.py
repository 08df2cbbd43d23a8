"""
Calendar Sync Service - Main Application.

Saves Google OAuth tokens, syncs upcoming Google Calendar events into the
managed database, and sends event reminders on behalf of an external timer.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.dependencies import close_google_client
from app.exceptions import CalendarServiceException
from app.logging_config import setup_logging
from app.metrics import metrics_endpoint, track_request_metrics
from app.metrics_middleware import PrometheusMiddleware
from app.routers import calendar_sync, events, reminders

setup_logging(settings.LOG_LEVEL)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "Starting Calendar Sync Service",
        version=settings.SERVICE_VERSION,
        supabase_configured=settings.supabase_configured,
        google_configured=settings.google_configured,
        reminder_channel=settings.REMINDER_CHANNEL,
    )

    yield

    logger.info("Shutting down Calendar Sync Service")
    await close_google_client()
    logger.info("Calendar Sync Service stopped")


app = FastAPI(
    title="Calendar Sync Service",
    description="Sync Google Calendar events and send event reminders",
    version=settings.SERVICE_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-Requested-With",
        "X-Client-Info",
        "Apikey",
    ],
    expose_headers=["Content-Length", "X-Request-ID"],
    max_age=600,
)

app.add_middleware(PrometheusMiddleware, track_func=track_request_metrics)

app.include_router(calendar_sync.router)
app.include_router(events.router)
app.include_router(reminders.router)


@app.exception_handler(CalendarServiceException)
async def calendar_service_exception_handler(
    request: Request, exc: CalendarServiceException
) -> JSONResponse:
    """Render service exceptions as {success, error, details}."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed",
        path=request.url.path,
        status=exc.status_code,
        error=exc.message,
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unexpected failures."""
    logger.exception("Unhandled error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "details": str(exc)},
    )


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return await metrics_endpoint()


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "supabase_configured": settings.supabase_configured,
        "google_configured": settings.google_configured,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
