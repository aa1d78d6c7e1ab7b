"""Outbound email through the Resend HTTP API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import requests

from cercle.pacts import EmailDeliveryError, EmailSenderProtocol

if TYPE_CHECKING:
    from cercle.pacts import EmailMessage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ResendEmailClient(EmailSenderProtocol):
    def __init__(
        self, api_url: str, api_key: str, sender: str, timeout: int = DEFAULT_TIMEOUT
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout

    def send(self, message: EmailMessage) -> str:
        """Deliver one message.

        Returns:
            The provider's message id.

        Raises:
            EmailDeliveryError: If the API is unreachable or rejects the message.
        """
        if not self.api_key:
            raise EmailDeliveryError("Email delivery is not configured")

        payload: dict[str, object] = {
            "from": self.sender,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        if message.reply_to:
            payload["reply_to"] = message.reply_to

        try:
            response = requests.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            message_id: str = response.json().get("id", "")
        except requests.RequestException as exception:
            logger.exception("Failed to send email to %s", ", ".join(message.to))
            raise EmailDeliveryError(str(exception)) from exception

        logger.info("Sent email %s to %s", message_id, ", ".join(message.to))
        return message_id
