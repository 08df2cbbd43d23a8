import asyncio
from typing import Any, Dict, Optional

import resend
import structlog
from jinja2 import Template

from app.channels.base import NotificationChannel
from app.config import settings
from app.email_templates import EVENT_REMINDER_SUBJECT, EVENT_REMINDER_TEMPLATE
from app.models import DeliveryStatus

logger = structlog.get_logger(__name__)


class ResendEmailChannel(NotificationChannel):
    """Email reminder channel using Resend API."""

    def __init__(self):
        resend.api_key = settings.RESEND_API_KEY
        self.from_email = settings.RESEND_FROM_EMAIL
        self.from_name = settings.RESEND_FROM_NAME
        self.template = Template(EVENT_REMINDER_TEMPLATE)

    def get_channel_name(self) -> str:
        """Get the name of this notification channel."""
        return "email"

    async def send(
        self,
        recipient: Optional[str],
        data: Dict[str, Any],
    ) -> tuple[DeliveryStatus, Optional[str]]:
        """
        Send a reminder email.

        Args:
            recipient: Email address of the event owner
            data: Template data

        Returns:
            Tuple of (delivery_status, resend_id)
        """
        if not recipient:
            logger.warning("Reminder has no recipient email", title=data.get("title"))
            return DeliveryStatus.FAILED, None

        try:
            params = {
                "from": f"{self.from_name} <{self.from_email}>",
                "to": [recipient],
                "subject": EVENT_REMINDER_SUBJECT.format(title=data.get("title", "")),
                "html": self.template.render(**data),
            }

            response = await asyncio.to_thread(resend.Emails.send, params)

            logger.info(
                "Reminder email sent",
                recipient=recipient,
                resend_id=response.get("id"),
            )

            return DeliveryStatus.SENT, response.get("id")

        except Exception as e:
            logger.error(
                "Failed to send reminder email",
                recipient=recipient,
                error=str(e),
            )
            return DeliveryStatus.FAILED, None
