"""
Event reminder service.

Invoked by an external timer; sends one reminder per event once the
event's reminder lead time has been reached.
"""

from datetime import datetime, timedelta
from typing import Optional

import structlog

from app.channels.base import NotificationChannel
from app.config import settings
from app.exceptions import CalendarServiceException, RepositoryError
from app.metrics import record_reminder
from app.models import DeliveryStatus, PendingReminder, ReminderRunResponse
from app.repositories import EventRepository
from app.services.sync_service import utc_now

logger = structlog.get_logger(__name__)


class ReminderService:
    """Finds events whose reminder is due and notifies their owners."""

    def __init__(
        self,
        events: EventRepository,
        channel: NotificationChannel,
        lookahead_minutes: Optional[int] = None,
        default_reminder_minutes: Optional[int] = None,
    ):
        self.events = events
        self.channel = channel
        self.lookahead = timedelta(
            minutes=lookahead_minutes or settings.REMINDER_LOOKAHEAD_MINUTES
        )
        self.default_reminder_minutes = (
            default_reminder_minutes
            if default_reminder_minutes is not None
            else settings.DEFAULT_REMINDER_MINUTES
        )

    async def send_due_reminders(self, now: Optional[datetime] = None) -> ReminderRunResponse:
        """
        Send reminders for unsent events starting within the lookahead window.

        An event is marked as notified only after its reminder was
        delivered, so failed deliveries are retried on the next run.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            ReminderRunResponse with sent and failed counts

        Raises:
            CalendarServiceException: If pending events cannot be fetched
        """
        now = now or utc_now()

        try:
            pending = self.events.find_pending_reminders(now, now + self.lookahead)
        except RepositoryError as e:
            raise CalendarServiceException(
                "Failed to fetch events", status_code=500
            ) from e

        logger.info("Checking event reminders", pending=len(pending))

        sent = 0
        failed = 0
        for reminder in pending:
            if now < reminder.reminder_due_at(self.default_reminder_minutes):
                continue

            if await self._deliver(reminder):
                sent += 1
            else:
                failed += 1

        logger.info("Reminder run completed", sent=sent, failed=failed)
        return ReminderRunResponse(reminders_sent=sent, reminders_failed=failed)

    async def _deliver(self, reminder: PendingReminder) -> bool:
        channel_name = self.channel.get_channel_name()
        minutes_before = reminder.lead_minutes(self.default_reminder_minutes)
        data = {
            "title": reminder.title,
            "start_time": reminder.start_time.isoformat(),
            "minutes_before": minutes_before,
            "user_name": reminder.display_name,
        }

        status, _ = await self.channel.send(reminder.email, data)
        if status != DeliveryStatus.SENT:
            logger.warning("Reminder delivery failed", event_id=reminder.id, channel=channel_name)
            record_reminder(channel_name, "failed")
            return False

        try:
            self.events.mark_notification_sent(reminder.id)
        except RepositoryError as e:
            logger.error(
                "Failed to mark reminder as sent",
                event_id=reminder.id,
                error=e.reason,
            )
            record_reminder(channel_name, "failed")
            return False

        record_reminder(channel_name, "sent")
        return True
