"""API routers for calendar sync service."""

from app.routers import calendar_sync, events, reminders

__all__ = ["calendar_sync", "events", "reminders"]
