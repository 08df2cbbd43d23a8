"""Notification channels for event reminders."""

from app.channels.base import NotificationChannel
from app.channels.email import ResendEmailChannel
from app.channels.log import LogNotificationChannel

__all__ = ["LogNotificationChannel", "NotificationChannel", "ResendEmailChannel"]
