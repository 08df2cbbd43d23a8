from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from app.models import DeliveryStatus


class NotificationChannel(ABC):
    """Abstract base class for reminder notification channels."""

    @abstractmethod
    async def send(
        self,
        recipient: Optional[str],
        data: Dict[str, Any],
    ) -> tuple[DeliveryStatus, Optional[str]]:
        """
        Send an event reminder through this channel.

        Args:
            recipient: Recipient address, if the channel needs one
            data: Reminder data (title, start_time, user_name, minutes_before)

        Returns:
            Tuple of (delivery_status, external_id)
        """
        pass

    @abstractmethod
    def get_channel_name(self) -> str:
        """Get the name of this notification channel."""
        pass
