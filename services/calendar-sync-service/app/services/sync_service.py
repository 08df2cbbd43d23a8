"""
Calendar sync service.

Keeps the user's Google access token usable and pulls upcoming Google
Calendar events into the events table.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from app.config import settings
from app.exceptions import (
    CalendarServiceException,
    InvalidRequestError,
    ProfileLookupError,
    ReauthenticationRequiredError,
    RepositoryError,
)
from app.google_calendar import GoogleCalendarClient, format_rfc3339
from app.metrics import record_events_processed, record_sync_run
from app.models import (
    AuthenticatedUser,
    CalendarSummary,
    EventUpsert,
    SaveError,
    SyncResult,
    TimeRange,
)
from app.repositories import EventRepository, ProfileRepository

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CalendarSyncService:
    """
    Token lifecycle and event synchronization for one user at a time.

    Failures reading the profile or refreshing the token abort the sync;
    failures saving a single event are collected and counted.
    """

    def __init__(
        self,
        profiles: ProfileRepository,
        events: EventRepository,
        google: GoogleCalendarClient,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.profiles = profiles
        self.events = events
        self.google = google
        self.clock = clock

    def save_tokens(
        self,
        user: AuthenticatedUser,
        access_token: Optional[str],
        refresh_token: Optional[str],
        expires_in: Optional[int] = None,
    ) -> None:
        """
        Cache Google OAuth tokens on the user's profile.

        Args:
            user: Authenticated caller
            access_token: Google access token (required)
            refresh_token: Google refresh token, if Google issued one
            expires_in: Access token lifetime in seconds

        Raises:
            InvalidRequestError: If no access token is given
            CalendarServiceException: If the profile upsert fails
        """
        if not access_token:
            raise InvalidRequestError("Access token is required")

        now = self.clock()
        lifetime = expires_in or settings.DEFAULT_TOKEN_LIFETIME_SECONDS
        logger.info("Saving Google OAuth tokens", user_id=user.id)

        try:
            self.profiles.save_google_tokens(
                user_id=user.id,
                email=user.email,
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=now + timedelta(seconds=lifetime),
                now=now,
            )
        except RepositoryError as e:
            raise CalendarServiceException(
                "Failed to save tokens", details=e.reason, status_code=500
            ) from e

    def is_connected(self, user: AuthenticatedUser) -> bool:
        """Whether the user's profile holds a Google access token."""
        credentials = self.profiles.get_google_credentials(user.id)
        return bool(credentials and credentials.access_token)

    async def get_valid_access_token(self, user: AuthenticatedUser) -> str:
        """
        Return a usable Google access token, refreshing it if expired.

        An expired token with a refresh token triggers exactly one refresh
        call. The refreshed token is persisted; a failure to persist it is
        logged and does not fail the caller.

        Raises:
            ProfileLookupError: If the profile cannot be read
            ReauthenticationRequiredError: If the user must reconnect Google
            TokenRefreshError: If Google refuses the refresh
        """
        try:
            credentials = self.profiles.get_google_credentials(user.id)
        except RepositoryError as e:
            raise ProfileLookupError(details=e.reason) from e

        logger.info(
            "Profile credentials loaded",
            user_id=user.id,
            has_profile=credentials is not None,
            has_access_token=bool(credentials and credentials.access_token),
            has_refresh_token=bool(credentials and credentials.refresh_token),
        )

        if credentials is None or not credentials.access_token:
            raise ReauthenticationRequiredError(
                "No Google access token found. "
                "Please connect your Google Calendar first."
            )

        now = self.clock()
        if not credentials.is_expired(now):
            logger.debug("Token is still valid", user_id=user.id)
            return credentials.access_token

        if not credentials.refresh_token:
            logger.info("Token expired and no refresh token available", user_id=user.id)
            raise ReauthenticationRequiredError(
                "Google access token expired and no refresh token available. "
                "Please reconnect your Google Calendar."
            )

        logger.info("Token expired, refreshing", user_id=user.id)
        grant = await self.google.refresh_access_token(credentials.refresh_token)
        logger.info("Token refreshed", user_id=user.id, expires_in=grant.expires_in)

        refreshed_at = self.clock()
        try:
            self.profiles.update_access_token(
                user_id=user.id,
                access_token=grant.access_token,
                expires_at=grant.expires_at(refreshed_at),
                now=refreshed_at,
            )
        except RepositoryError as e:
            logger.error(
                "Failed to update refreshed token",
                user_id=user.id,
                error=e.reason,
            )

        return grant.access_token

    async def list_calendars(self, user: AuthenticatedUser) -> list[CalendarSummary]:
        """List the calendars of the user's Google account."""
        access_token = await self.get_valid_access_token(user)
        entries = await self.google.list_calendars(access_token)
        return [CalendarSummary(**entry) for entry in entries if entry.get("id")]

    async def sync_events(self, user: AuthenticatedUser) -> SyncResult:
        """
        Pull upcoming Google events into the events table.

        Events are upserted one at a time, keyed by Google event id, so
        repeated syncs of the same events leave one row per event.

        Returns:
            SyncResult with saved, skipped and failed counts

        Raises:
            CalendarServiceException: If the token or event listing fails
        """
        logger.info("Starting event sync", user_id=user.id)

        try:
            result = await self._sync_events(user)
        except CalendarServiceException as e:
            record_sync_run(type(e).__name__)
            raise

        record_sync_run("success")
        return result

    async def _sync_events(self, user: AuthenticatedUser) -> SyncResult:
        access_token = await self.get_valid_access_token(user)

        time_min = self.clock()
        time_max = time_min + timedelta(days=settings.SYNC_WINDOW_DAYS)
        time_range = TimeRange(
            time_min=format_rfc3339(time_min),
            time_max=format_rfc3339(time_max),
        )
        logger.info(
            "Fetching calendar events",
            user_id=user.id,
            time_min=time_range.time_min,
            time_max=time_range.time_max,
        )

        calendar = await self.google.list_events(access_token, time_min, time_max)
        items = calendar["items"]
        logger.info("Processing events from Google Calendar", user_id=user.id, total=len(items))

        saved = 0
        skipped = 0
        save_errors: list[SaveError] = []

        for item in items:
            event_id = item.get("id")
            try:
                row = (
                    EventUpsert.from_google_event(user.id, item, self.clock()) if event_id else None
                )
            except ValidationError as e:
                logger.error("Event mapping failed", event_id=event_id, error=str(e))
                save_errors.append(SaveError(event_id=str(event_id), error=str(e)))
                continue

            if row is None:
                skipped += 1
                logger.info("Skipped event without start time", event_id=event_id)
                continue

            try:
                self.events.upsert_event(row)
            except RepositoryError as e:
                logger.error("Event save failed", event_id=event_id, error=e.reason)
                save_errors.append(SaveError(event_id=event_id, error=e.reason or e.message))
                continue

            saved += 1
            logger.debug("Saved event", event_id=event_id)

        record_events_processed(saved, skipped, len(save_errors))
        logger.info(
            "Event sync finished",
            user_id=user.id,
            total=len(items),
            saved=saved,
            skipped=skipped,
            save_errors=len(save_errors),
        )

        first_event_sample = None
        if items:
            first_event_sample = {
                "summary": items[0].get("summary"),
                "start": items[0].get("start"),
            }

        return SyncResult(
            events_count=saved,
            total_events=len(items),
            skipped_events=skipped,
            save_errors=save_errors,
            time_range=time_range,
            calendar_summary=calendar.get("summary"),
            first_event_sample=first_event_sample,
        )
