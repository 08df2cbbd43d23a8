"""
Dependency functions for the calendar sync service.

Builds repositories, clients and services per request from the shared
Supabase client and the process-wide Google HTTP client.
"""

import secrets
from typing import Optional

import structlog
from fastapi import Depends, Header

from app.channels import LogNotificationChannel, NotificationChannel, ResendEmailChannel
from app.config import settings
from app.exceptions import AuthenticationError, ConfigurationError
from app.google_calendar import GoogleCalendarClient
from app.repositories import EventRepository, ProfileRepository
from app.services import CalendarSyncService, ReminderService
from app.supabase_client import get_supabase_client

logger = structlog.get_logger(__name__)

_google_client: Optional[GoogleCalendarClient] = None


def require_sync_configuration() -> None:
    """
    Check the credentials the sync endpoint needs before anything else runs.

    Raises:
        ConfigurationError: If Supabase or Google credentials are missing
    """
    logger.debug(
        "Environment check",
        supabase_url=bool(settings.SUPABASE_URL),
        supabase_service_key=bool(settings.SUPABASE_SERVICE_KEY),
        google_client_id=bool(settings.GOOGLE_CLIENT_ID),
        google_client_secret=bool(settings.GOOGLE_CLIENT_SECRET),
    )
    if not settings.supabase_configured:
        logger.error("Missing Supabase environment variables")
        raise ConfigurationError("Supabase")
    if not settings.google_configured:
        logger.error("Missing Google environment variables")
        raise ConfigurationError("Google")


def get_google_client() -> GoogleCalendarClient:
    """Get the process-wide Google client (one connection pool)."""
    global _google_client
    if _google_client is None:
        _google_client = GoogleCalendarClient()
    return _google_client


async def close_google_client() -> None:
    """Close the Google client during shutdown."""
    global _google_client
    if _google_client is not None:
        await _google_client.close()
        _google_client = None


def get_profile_repository() -> ProfileRepository:
    return ProfileRepository(get_supabase_client())


def get_event_repository() -> EventRepository:
    return EventRepository(get_supabase_client())


def get_sync_service(
    profiles: ProfileRepository = Depends(get_profile_repository),
    events: EventRepository = Depends(get_event_repository),
    google: GoogleCalendarClient = Depends(get_google_client),
) -> CalendarSyncService:
    return CalendarSyncService(profiles=profiles, events=events, google=google)


def get_notification_channel() -> NotificationChannel:
    """Channel selected by REMINDER_CHANNEL."""
    if settings.REMINDER_CHANNEL == "email":
        if not settings.RESEND_API_KEY:
            raise ConfigurationError("Resend")
        return ResendEmailChannel()
    return LogNotificationChannel()


def get_reminder_service(
    events: EventRepository = Depends(get_event_repository),
    channel: NotificationChannel = Depends(get_notification_channel),
) -> ReminderService:
    return ReminderService(events=events, channel=channel)


def verify_trigger_token(x_trigger_token: Optional[str] = Header(None)) -> None:
    """
    Guard the reminder trigger when REMINDER_TRIGGER_TOKEN is configured.

    Raises:
        AuthenticationError: If the presented token does not match
    """
    expected = settings.REMINDER_TRIGGER_TOKEN
    if not expected:
        return
    if not x_trigger_token or not secrets.compare_digest(x_trigger_token, expected):
        logger.warning("Rejected reminder trigger with invalid token")
        raise AuthenticationError()


__all__ = [
    "close_google_client",
    "get_event_repository",
    "get_google_client",
    "get_notification_channel",
    "get_profile_repository",
    "get_reminder_service",
    "get_sync_service",
    "require_sync_configuration",
    "verify_trigger_token",
]
