"""Pydantic models for request/response validation and stored records."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _assume_utc(value: datetime) -> datetime:
    # timestamp columns without a zone are stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


class SyncAction(str, Enum):
    """Actions accepted by the calendar sync endpoint."""

    SAVE_TOKENS = "saveTokens"
    SYNC_EVENTS = "syncEvents"


class DeliveryStatus(str, Enum):
    """Notification delivery status."""

    SENT = "sent"
    FAILED = "failed"


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthenticatedUser(BaseModel):
    """User resolved from a validated access token."""

    id: str
    email: Optional[str] = None


class GoogleCredentials(BaseModel):
    """Google OAuth tokens cached on a user profile."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[UtcDatetime] = None

    def is_expired(self, now: datetime) -> bool:
        """A token without a known expiry is treated as still valid."""
        return self.expires_at is not None and now >= self.expires_at


class TokenGrant(BaseModel):
    """Access token issued by the Google token endpoint."""

    access_token: str
    expires_in: int

    def expires_at(self, now: datetime) -> datetime:
        return now + timedelta(seconds=self.expires_in)


class EventUpsert(BaseModel):
    """Row written to the events table for one Google event."""

    user_id: str
    google_event_id: str
    title: str = "Untitled Event"
    description: str = ""
    start_time: str
    end_time: str
    location: str = ""
    updated_at: str

    @classmethod
    def from_google_event(
        cls, user_id: str, event: Dict[str, Any], now: datetime
    ) -> Optional["EventUpsert"]:
        """
        Map a Google Calendar event resource to an events row.

        Returns None for events that have neither a start dateTime nor
        an all-day start date.
        """
        start = event.get("start") or {}
        start_time = start.get("dateTime") or start.get("date")
        if not start_time:
            return None

        end = event.get("end") or {}
        end_time = end.get("dateTime") or end.get("date") or start_time

        return cls(
            user_id=user_id,
            google_event_id=event["id"],
            title=event.get("summary") or "Untitled Event",
            description=event.get("description") or "",
            start_time=start_time,
            end_time=end_time,
            location=event.get("location") or "",
            updated_at=now.isoformat(),
        )


class StoredEvent(BaseModel):
    """Event as stored in the managed database."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    title: str
    description: Optional[str] = ""
    start_time: datetime
    end_time: datetime
    location: Optional[str] = ""
    reminder_time: Optional[int] = None
    notification_sent: bool = False


class PendingReminder(BaseModel):
    """Unsent event with the owning profile's contact details."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    title: str
    start_time: UtcDatetime
    reminder_time: Optional[int] = None
    email: Optional[str] = None
    display_name: Optional[str] = None

    def lead_minutes(self, default_minutes: int) -> int:
        """Unset or zero reminder times fall back to the default lead time."""
        return self.reminder_time or default_minutes

    def reminder_due_at(self, default_minutes: int) -> datetime:
        return self.start_time - timedelta(minutes=self.lead_minutes(default_minutes))


class CalendarSyncRequest(CamelModel):
    """Body of the calendar sync endpoint."""

    action: Optional[str] = Field(None, description="saveTokens or syncEvents")
    access_token: Optional[str] = Field(None, description="Google OAuth access token")
    refresh_token: Optional[str] = Field(None, description="Google OAuth refresh token")
    expires_in: Optional[int] = Field(
        None, ge=1, description="Access token lifetime in seconds"
    )


class SaveError(CamelModel):
    """Failure to store a single event."""

    event_id: str
    error: str


class TimeRange(CamelModel):
    """Sync window sent to Google."""

    time_min: str
    time_max: str


class SyncResult(BaseModel):
    """Outcome of one sync run."""

    events_count: int = 0
    total_events: int = 0
    skipped_events: int = 0
    save_errors: List[SaveError] = Field(default_factory=list)
    time_range: TimeRange
    calendar_summary: Optional[str] = None
    first_event_sample: Optional[Dict[str, Any]] = None


class SyncDebugInfo(CamelModel):
    """Diagnostic section of the sync response."""

    time_range: TimeRange
    calendar_summary: Optional[str] = None
    first_event_sample: Optional[Dict[str, Any]] = None


class SyncEventsResponse(CamelModel):
    """Response of the syncEvents action."""

    success: bool = True
    events_count: int
    total_events: int
    skipped_events: int
    save_errors: int
    debug: SyncDebugInfo

    @classmethod
    def from_result(cls, result: SyncResult) -> "SyncEventsResponse":
        return cls(
            events_count=result.events_count,
            total_events=result.total_events,
            skipped_events=result.skipped_events,
            save_errors=len(result.save_errors),
            debug=SyncDebugInfo(
                time_range=result.time_range,
                calendar_summary=result.calendar_summary,
                first_event_sample=result.first_event_sample,
            ),
        )


class SuccessResponse(BaseModel):
    """Generic success response."""

    success: bool = True


class ConnectionStatus(BaseModel):
    """Whether the user has connected Google Calendar."""

    connected: bool


class CalendarSummary(BaseModel):
    """Calendar visible to the user's Google account."""

    id: str
    summary: Optional[str] = None
    primary: bool = False


class ReminderRunResponse(BaseModel):
    """Response of a reminder run."""

    success: bool = True
    reminders_sent: int
    reminders_failed: int = 0


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error: str
    details: Optional[Any] = None
