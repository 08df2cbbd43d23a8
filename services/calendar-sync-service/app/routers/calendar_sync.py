from typing import Union

import structlog
from fastapi import APIRouter, Depends

from app.auth import get_current_user
from app.dependencies import get_sync_service, require_sync_configuration
from app.exceptions import InvalidRequestError
from app.models import (
    AuthenticatedUser,
    CalendarSyncRequest,
    ErrorResponse,
    SuccessResponse,
    SyncAction,
    SyncEventsResponse,
)
from app.services import CalendarSyncService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["calendar-sync"])


@router.post(
    "/calendar-sync",
    response_model=Union[SyncEventsResponse, SuccessResponse],
    dependencies=[Depends(require_sync_configuration)],
    responses={
        400: {"description": "Invalid action or reconnect required", "model": ErrorResponse},
        401: {"description": "Unauthorized", "model": ErrorResponse},
        500: {"description": "Server configuration or storage error", "model": ErrorResponse},
    },
    summary="Save Google tokens or sync Google Calendar events",
)
async def calendar_sync(
    request: CalendarSyncRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CalendarSyncService = Depends(get_sync_service),
):
    """
    Dispatch on `action`.

    - `saveTokens`: cache the Google OAuth tokens on the caller's profile.
    - `syncEvents`: pull upcoming events from Google Calendar and return
      how many were stored.
    """
    logger.info("Processing calendar sync request", user_id=user.id, action=request.action)

    if request.action == SyncAction.SAVE_TOKENS.value:
        service.save_tokens(
            user,
            access_token=request.access_token,
            refresh_token=request.refresh_token,
            expires_in=request.expires_in,
        )
        return SuccessResponse()

    if request.action == SyncAction.SYNC_EVENTS.value:
        result = await service.sync_events(user)
        return SyncEventsResponse.from_result(result)

    raise InvalidRequestError("Invalid action")
