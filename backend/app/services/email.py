"""
Transactional email via the Resend REST API.

Sends order confirmations and verification links. Transport failures
(timeouts, connection resets) are retried with exponential backoff; API
errors are raised immediately.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from app.core.config import settings
from app.core.retry import retry_with_backoff
from app.mail.templates import order_confirmation_template, verification_email_template

logger = logging.getLogger(__name__)


class EmailConfigurationError(Exception):
    """Raised when no Resend API key is configured."""


class EmailDeliveryError(Exception):
    """Raised when Resend rejects a message."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"Resend API returned {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class EmailService:
    """
    Resend API client.

    Attributes:
        api_key: Resend API key (None disables sending)
        base_url: Resend API base URL
        sender: From address
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.base_url = (base_url or settings.resend_base_url).rstrip("/")
        self.sender = sender or settings.email_from
        self.timeout = timeout
        self._transport = transport

    @retry_with_backoff(
        max_retries=2,
        base_delay=0.5,
        max_delay=5.0,
        exceptions=(httpx.TransportError,),
    )
    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )

        if response.status_code >= 400:
            raise EmailDeliveryError(response.status_code, response.text)

        try:
            body = response.json()
        except ValueError:
            raise EmailDeliveryError(response.status_code, f"Unreadable response: {response.text[:200]}")
        if not isinstance(body, dict):
            raise EmailDeliveryError(response.status_code, "Unexpected response shape")
        return body

    async def send_email(self, to: str, subject: str, html: str) -> dict[str, Any]:
        """
        Send one HTML email.

        Returns:
            Resend response body (contains the message ``id``)

        Raises:
            EmailConfigurationError: If no API key is configured
            EmailDeliveryError: If Resend rejects the message
            httpx.TransportError: If every attempt failed to reach Resend
        """
        if not self.api_key:
            raise EmailConfigurationError("RESEND_API_KEY is not configured")

        result = await self._post(
            {"from": self.sender, "to": [to], "subject": subject, "html": html}
        )
        logger.info(
            "Email sent",
            extra={"email_id": result.get("id"), "subject": subject},
        )
        return result

    async def send_verification_email(self, name: str, email: str, url: str) -> dict[str, Any]:
        html = verification_email_template(url=url, name=name)
        return await self.send_email(email, "Verify your email", html)

    async def send_order_confirmation(
        self,
        name: str,
        email: str,
        order_id: str,
        total: float,
        items: list[Mapping[str, Any]],
    ) -> dict[str, Any]:
        html = order_confirmation_template(
            name=name,
            order_id=order_id,
            total=total,
            items=items,
        )
        return await self.send_email(email, "Order Confirmation", html)


def get_email_service() -> EmailService:
    """FastAPI dependency; override in tests."""
    return EmailService()
