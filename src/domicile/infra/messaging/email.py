"""HTTP transactional email sender.

Implements EmailSenderPort by POSTing a JSON send request to the
provider API with httpx.

Supports both shared and owned httpx.AsyncClient modes:
- If ``client`` is provided, it is reused across calls (caller manages lifecycle).
- If ``client`` is omitted, an internal client is created lazily on first use.
  Call :meth:`aclose` to release it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from domicile.foundation.domain.ports import OutboundEmail
    from domicile.infra.messaging.settings import EmailSettings

logger = logging.getLogger(__name__)


def render_text(email: OutboundEmail) -> str:
    """Plain-text rendering of an email's template parameters."""
    lines = [email.subject, ""]
    lines.extend(f"{key}: {value}" for key, value in email.params.items() if value is not None)
    return "\n".join(lines)


class HttpEmailSender:
    """Email sender backed by a transactional email HTTP API."""

    def __init__(
        self,
        settings: EmailSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._external_client = client is not None
        self._client: httpx.AsyncClient | None = client

    def _payload(self, email: OutboundEmail) -> dict[str, Any]:
        return {
            "sender": {
                "name": self._settings.sender_name,
                "email": self._settings.sender_address,
            },
            "to": [{"email": email.to}],
            "subject": email.subject,
            "textContent": render_text(email),
            "params": email.params,
            "tags": [email.template],
        }

    async def send(self, email: OutboundEmail) -> bool:
        """Send ``email``. Returns True if the provider accepted it.

        Raises:
            httpx.HTTPStatusError: On a 4xx/5xx response.
            httpx.TransportError: On network failure.
        """
        if not self._settings.enabled:
            logger.info(
                "email_send_skipped",
                extra={"template": email.template, "reason": "disabled"},
            )
            return False

        response = await self._get_client().post(
            self._settings.api_url,
            json=self._payload(email),
            headers={"api-key": self._settings.api_key, "accept": "application/json"},
            timeout=self._settings.timeout_seconds,
        )
        response.raise_for_status()
        logger.info(
            "email_sent",
            extra={"template": email.template, "status": response.status_code},
        )
        return True

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        """Close the internal client if this sender owns it."""
        if self._client is not None and not self._external_client:
            await self._client.aclose()
            self._client = None
