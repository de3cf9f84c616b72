"""Resend e-mail notifier.

Posts to the Resend REST API (``POST /emails``) with the API key as a bearer
token. The API key is read from ``RESEND_API_KEY`` when not passed in.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import httpx

from concierge.errors import NotifierError
from concierge.models.booking import Notification

from .base import Notifier

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class ResendNotifier(Notifier):
    """Notifier backed by the Resend e-mail API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: str = RESEND_API_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.environ.get("RESEND_API_KEY", "")
        self._api_url = api_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @staticmethod
    def _payload(notification: Notification) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": notification.from_email,
            "to": list(notification.to),
            "subject": notification.subject,
            "text": notification.text,
        }
        if notification.html:
            payload["html"] = notification.html
        return payload

    async def send(self, notification: Notification) -> str:
        """Send the e-mail and return Resend's message id."""
        if not self._api_key:
            raise NotifierError("Missing RESEND_API_KEY")
        if not notification.to:
            raise NotifierError("No recipients configured")

        try:
            resp = await self._client.post(
                self._api_url,
                json=self._payload(notification),
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            raise NotifierError(f"Resend request failed: {e}") from e

        if resp.status_code >= 400:
            raise NotifierError(f"Resend rejected message: HTTP {resp.status_code} {resp.text[:200]}")

        try:
            body = resp.json()
        except ValueError:
            body = {}
        message_id = str(body.get("id", "")) if isinstance(body, dict) else ""

        logger.info(
            "[email] sent to %d recipient(s) status=%s resend_id=%s",
            len(notification.to), resp.status_code, message_id or "?",
        )
        return message_id

    async def close(self) -> None:
        await self._client.aclose()
