"""Email delivery via Resend."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import resend

from hubauth.config import Settings
from hubauth.errors import EmailDeliveryError
from hubauth.services.email_templates import EmailContent

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    async def send(self, to: str, content: EmailContent) -> None: ...


class ResendMailer:
    """Sends rendered emails through the Resend API."""

    def __init__(self, settings: Settings) -> None:
        self._from = settings.EMAIL_FROM
        resend.api_key = settings.RESEND_API_KEY

    async def send(self, to: str, content: EmailContent) -> None:
        """
        Send an email via Resend.

        Args:
            to: Recipient email address
            content: Rendered subject and bodies

        Raises:
            EmailDeliveryError: If the Resend call fails
        """
        params = {
            "from": self._from,
            "to": [to],
            "subject": content.subject,
            "html": content.html,
            "text": content.text,
        }

        try:
            # The SDK call is a blocking HTTP request
            await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            logger.exception("Failed to send email to %s", to)
            raise EmailDeliveryError() from e

        logger.info("Sent '%s' email to %s", content.subject, to)
