"""
Email Service

Transactional email through the SendGrid v3 ``mail/send`` endpoint.
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from app.config.settings import get_settings
from app.infrastructure.exceptions import ConfigurationError, NotificationError


logger = logging.getLogger(__name__)


class EmailMessage(BaseModel):
    """Outbound message: to, from, subject, html and text."""
    to: str
    from_email: str
    from_name: Optional[str] = None
    subject: str
    html: str
    text: str

    def to_sendgrid(self, sandbox: bool = False) -> dict:
        sender = {"email": self.from_email}
        if self.from_name:
            sender["name"] = self.from_name

        body = {
            "personalizations": [{"to": [{"email": self.to}]}],
            "from": sender,
            "subject": self.subject,
            "content": [
                {"type": "text/plain", "value": self.text},
                {"type": "text/html", "value": self.html},
            ],
        }
        if sandbox:
            body["mail_settings"] = {"sandbox_mode": {"enable": True}}
        return body


class EmailService:
    """
    SendGrid sender.

    ``send`` raises NotificationError on any failure; callers decide
    whether delivery is best-effort.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        sandbox: Optional[bool] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.sendgrid_api_key
        self._api_url = api_url or settings.sendgrid_api_url
        self.from_email = from_email or settings.sendgrid_from_email
        self.from_name = from_name or settings.sendgrid_from_name
        self._sandbox = settings.sendgrid_sandbox if sandbox is None else sandbox
        self._timeout = timeout or settings.email_timeout_seconds
        self._transport = transport

    def build_message(self, to: str, subject: str, html: str, text: str) -> EmailMessage:
        return EmailMessage(
            to=to,
            from_email=self.from_email,
            from_name=self.from_name,
            subject=subject,
            html=html,
            text=text,
        )

    async def send(self, message: EmailMessage) -> None:
        """
        Deliver one message.

        Raises:
            NotificationError: missing API key, transport failure or non-2xx status
        """
        if not self._api_key:
            raise NotificationError(
                "SENDGRID_API_KEY is not configured",
                original_error=ConfigurationError(
                    "SENDGRID_API_KEY is not configured", missing_keys=["SENDGRID_API_KEY"]
                ),
            )

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._api_url,
                    json=message.to_sendgrid(sandbox=self._sandbox),
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
                response.raise_for_status()

        except httpx.HTTPStatusError as e:
            logger.error(f"[EMAIL] SendGrid rejected message to {message.to}: {e.response.status_code}")
            raise NotificationError(
                f"Email delivery failed with status {e.response.status_code}",
                details={"to": message.to, "status_code": e.response.status_code},
                original_error=e,
            )
        except httpx.HTTPError as e:
            logger.error(f"[EMAIL] SendGrid request failed for {message.to}: {e}")
            raise NotificationError(
                "Email delivery failed",
                details={"to": message.to},
                original_error=e,
            )

        logger.info(f"[EMAIL] Sent '{message.subject}' to {message.to}")


# =============================================================================
# Singleton Instance
# =============================================================================

_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create email service singleton."""
    global _email_service

    if _email_service is None:
        _email_service = EmailService()

    return _email_service
