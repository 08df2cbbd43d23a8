import structlog
from fastapi import APIRouter, Depends

from app.dependencies import get_reminder_service, verify_trigger_token
from app.models import ErrorResponse, ReminderRunResponse
from app.services import ReminderService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/reminders", tags=["reminders"])


@router.post(
    "/run",
    response_model=ReminderRunResponse,
    dependencies=[Depends(verify_trigger_token)],
    responses={
        401: {"description": "Invalid trigger token", "model": ErrorResponse},
        500: {"description": "Failed to fetch events", "model": ErrorResponse},
    },
    summary="Send due event reminders",
)
async def run_reminders(service: ReminderService = Depends(get_reminder_service)):
    """
    Send reminders for events whose reminder lead time has been reached.

    Meant to be called periodically by an external scheduler.
    """
    logger.info("Reminder run triggered")
    return await service.send_due_reminders()
