"""ResendEmailSender — Notification Sender backed by the Resend HTTP API.

Without an API key every send is logged at INFO and skipped; emails are an
optional integration. Delivery failures raise `NotificationError` so the
best-effort dispatcher can log them.
"""

import logging
from typing import Any

import httpx

from src.ent_billing.domain.config import BillingConfig
from src.ent_common.enums import EmailTemplate
from src.ent_notify.domain.templates import render

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class NotificationError(Exception):
    """Email provider rejected or failed the request."""


class ResendEmailSender:
    def __init__(
        self,
        config: BillingConfig,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._api_key = config.resend_api_key
        self._sender = config.email_from
        self._base_url = config.app_base_url
        self._client = client
        self._timeout = timeout_seconds

    async def send(
        self, recipient: str, template: EmailTemplate, context: dict[str, Any]
    ) -> None:
        if not self._api_key:
            logger.info("RESEND_API_KEY not configured, skipping %s email", template.value)
            return

        subject, html = render(template, context, self._base_url)
        body = {"from": self._sender, "to": [recipient], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            if self._client is not None:
                response = await self._client.post(RESEND_API_URL, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(RESEND_API_URL, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Resend request failed: {exc}") from exc

        if response.is_error:
            raise NotificationError(
                f"Resend rejected {template.value} email ({response.status_code}): {response.text}"
            )
        logger.info("%s email sent to %s", template.value, recipient)
