"""Business logic for calendar sync and event reminders."""

from app.services.reminder_service import ReminderService
from app.services.sync_service import CalendarSyncService

__all__ = ["CalendarSyncService", "ReminderService"]
