# ABOUTME: Email transport for notification delivery via the Resend API.
# ABOUTME: Supports one-call-per-recipient sends and single-call audience broadcasts.

import asyncio
from typing import Any

import resend
import structlog

from continued_education.config import Settings, get_settings
from continued_education.email.client import call_resend, configure_resend

log = structlog.get_logger()


class EmailTransportError(Exception):
    """The provider rejected or failed a send."""


class EmailNotConfiguredError(EmailTransportError):
    """No Resend API key configured."""


class EmailTransport:
    """Sends emails through Resend.

    SDK calls are synchronous; they run in worker threads so concurrent
    sends inside a dispatch batch overlap.
    """

    supports_broadcast = True

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        return self.settings.email_enabled

    def _ensure_configured(self) -> None:
        if not configure_resend(self.settings):
            raise EmailNotConfiguredError("Email API key not configured")

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> str | None:
        """Send one email to one recipient.

        Returns:
            Provider message id, if returned.

        Raises:
            EmailTransportError: If the provider call fails.
        """
        self._ensure_configured()
        params: dict[str, Any] = {
            "from": self.settings.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            params["text"] = text

        try:
            response = await asyncio.to_thread(call_resend, resend.Emails.send, params)
        except Exception as e:
            raise EmailTransportError(str(e)) from e

        message_id = response.get("id") if response else None
        log.debug("email_sent", to=to, message_id=message_id)
        return message_id

    async def broadcast(
        self,
        audience_id: str,
        subject: str,
        html: str,
        text: str | None = None,
        name: str | None = None,
    ) -> str | None:
        """Create and send a broadcast to a whole audience.

        The provider resolves its unsubscribe placeholder per recipient and
        returns no per-recipient receipt.

        Returns:
            Provider broadcast id.
        """
        self._ensure_configured()
        params: dict[str, Any] = {
            "audience_id": audience_id,
            "from": self.settings.sender,
            "subject": subject,
            "html": html,
        }
        if text:
            params["text"] = text
        if name:
            params["name"] = name

        try:
            created = await asyncio.to_thread(call_resend, resend.Broadcasts.create, params)
            broadcast_id = created["id"]
            await asyncio.to_thread(
                call_resend, resend.Broadcasts.send, {"broadcast_id": broadcast_id}
            )
        except Exception as e:
            raise EmailTransportError(str(e)) from e

        log.info("broadcast_sent", audience_id=audience_id, broadcast_id=broadcast_id)
        return broadcast_id

    async def create_audience(self, name: str) -> str:
        """Create a Resend audience (one-time setup). Returns its id."""
        self._ensure_configured()
        try:
            response = await asyncio.to_thread(call_resend, resend.Audiences.create, {"name": name})
        except Exception as e:
            raise EmailTransportError(str(e)) from e
        log.info("audience_created", name=name, audience_id=response["id"])
        return response["id"]
