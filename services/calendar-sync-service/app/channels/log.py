from typing import Any, Dict, Optional

import structlog

from app.channels.base import NotificationChannel
from app.models import DeliveryStatus

logger = structlog.get_logger(__name__)


class LogNotificationChannel(NotificationChannel):
    """Channel that only writes the reminder to the service log."""

    def get_channel_name(self) -> str:
        return "log"

    async def send(
        self,
        recipient: Optional[str],
        data: Dict[str, Any],
    ) -> tuple[DeliveryStatus, Optional[str]]:
        logger.info(
            "Reminder for event",
            title=data.get("title"),
            start_time=data.get("start_time"),
            recipient=recipient,
        )
        return DeliveryStatus.SENT, None
