import structlog
from fastapi import APIRouter, Depends

from app.auth import get_current_user
from app.dependencies import (
    get_event_repository,
    get_sync_service,
    require_sync_configuration,
)
from app.models import (
    AuthenticatedUser,
    CalendarSummary,
    ConnectionStatus,
    ErrorResponse,
    StoredEvent,
)
from app.repositories import EventRepository
from app.services import CalendarSyncService
from app.services.sync_service import utc_now

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["events"])


@router.get(
    "/events",
    response_model=list[StoredEvent],
    responses={401: {"description": "Unauthorized", "model": ErrorResponse}},
    summary="List upcoming synced events",
)
async def list_events(
    user: AuthenticatedUser = Depends(get_current_user),
    events: EventRepository = Depends(get_event_repository),
):
    """Return the caller's stored events that have not started yet, earliest first."""
    upcoming = events.list_upcoming(user.id, utc_now())
    logger.info("Events fetched", user_id=user.id, count=len(upcoming))
    return upcoming


@router.get(
    "/connection",
    response_model=ConnectionStatus,
    responses={401: {"description": "Unauthorized", "model": ErrorResponse}},
    summary="Check Google Calendar connection",
)
async def connection_status(
    user: AuthenticatedUser = Depends(get_current_user),
    service: CalendarSyncService = Depends(get_sync_service),
):
    """Report whether the caller has saved Google tokens."""
    return ConnectionStatus(connected=service.is_connected(user))


@router.get(
    "/calendars",
    response_model=list[CalendarSummary],
    dependencies=[Depends(require_sync_configuration)],
    responses={
        400: {"description": "Reconnect required", "model": ErrorResponse},
        401: {"description": "Unauthorized", "model": ErrorResponse},
    },
    summary="List Google calendars",
)
async def list_calendars(
    user: AuthenticatedUser = Depends(get_current_user),
    service: CalendarSyncService = Depends(get_sync_service),
):
    """List the calendars the caller's Google account can see."""
    return await service.list_calendars(user)
