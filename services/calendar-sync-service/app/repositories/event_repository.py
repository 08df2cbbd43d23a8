"""
Event repository for synced calendar events.

One event row exists per Google event id, enforced by upserting on
google_event_id.
"""

from datetime import datetime
from typing import Any, Dict, List

import structlog
from pydantic import ValidationError
from supabase import Client

from app.exceptions import RepositoryError
from app.models import EventUpsert, PendingReminder, StoredEvent

logger = structlog.get_logger(__name__)

EVENTS_TABLE = "events"
PENDING_REMINDER_COLUMNS = (
    "id, title, start_time, reminder_time, profiles!inner(display_name, email)"
)


class EventRepository:
    """Supabase-backed access to the events table."""

    def __init__(self, client: Client):
        """
        Initialize event repository.

        Args:
            client: Service-role Supabase client
        """
        self.client = client

    def upsert_event(self, event: EventUpsert) -> None:
        """
        Insert or update one event keyed by its Google event id.

        Raises:
            RepositoryError: If the upsert fails
        """
        try:
            (
                self.client.table(EVENTS_TABLE)
                .upsert(event.model_dump(), on_conflict="google_event_id")
                .execute()
            )
        except Exception as e:
            raise RepositoryError("upsert_event", str(e)) from e

    def list_upcoming(self, user_id: str, since: datetime) -> List[StoredEvent]:
        """
        List a user's events starting at or after `since`, earliest first.

        Raises:
            RepositoryError: If the query fails
        """
        try:
            result = (
                self.client.table(EVENTS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .gte("start_time", since.isoformat())
                .order("start_time")
                .execute()
            )
        except Exception as e:
            logger.error("Events fetch failed", user_id=user_id, error=str(e))
            raise RepositoryError("list_upcoming", str(e)) from e

        return [StoredEvent.model_validate(row) for row in result.data or []]

    def find_pending_reminders(
        self, window_start: datetime, window_end: datetime
    ) -> List[PendingReminder]:
        """
        Find unsent events starting inside the window, across all users.

        Each result carries the owning profile's display name and email.

        Raises:
            RepositoryError: If the query fails
        """
        try:
            result = (
                self.client.table(EVENTS_TABLE)
                .select(PENDING_REMINDER_COLUMNS)
                .eq("notification_sent", False)
                .gte("start_time", window_start.isoformat())
                .lte("start_time", window_end.isoformat())
                .execute()
            )
        except Exception as e:
            logger.error("Pending reminders fetch failed", error=str(e))
            raise RepositoryError("find_pending_reminders", str(e)) from e

        try:
            return [self._to_pending_reminder(row) for row in result.data or []]
        except (KeyError, AttributeError, ValidationError) as e:
            logger.error("Pending reminder row is malformed", error=str(e))
            raise RepositoryError("find_pending_reminders", str(e)) from e

    @staticmethod
    def _to_pending_reminder(row: Dict[str, Any]) -> PendingReminder:
        profile = row.get("profiles") or {}
        # to-one embeds come back as an object, older servers return a list
        if isinstance(profile, list):
            profile = profile[0] if profile else {}
        return PendingReminder(
            id=row["id"],
            title=row.get("title") or "Untitled Event",
            start_time=row["start_time"],
            reminder_time=row.get("reminder_time"),
            email=profile.get("email"),
            display_name=profile.get("display_name"),
        )

    def mark_notification_sent(self, event_id: str) -> None:
        """
        Flag an event's reminder as delivered.

        Raises:
            RepositoryError: If the update fails
        """
        try:
            (
                self.client.table(EVENTS_TABLE)
                .update({"notification_sent": True})
                .eq("id", event_id)
                .execute()
            )
        except Exception as e:
            raise RepositoryError("mark_notification_sent", str(e)) from e
