"""Resend client — sends transactional email through the Resend HTTP API."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from contact_api.errors import NotificationError

logger = structlog.get_logger()


class ResendClient:
    """Thin async wrapper around ``POST /emails``.

    The ``httpx.AsyncClient`` is owned by the caller and shared for the life
    of the process.
    """

    def __init__(self, http_client: httpx.AsyncClient, api_key: str, base_url: str):
        self.http = http_client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def send_email(
        self,
        from_address: str,
        to: list[str],
        subject: str,
        html: str,
        text: str,
        reply_to: Optional[str] = None,
    ) -> str:
        """Send one email.

        Returns:
            Provider message id

        Raises:
            NotificationError: On missing credentials, transport errors or
                a non-2xx provider response
        """
        if not self.api_key:
            raise NotificationError("RESEND_API_KEY is not set")

        body: dict[str, Any] = {
            "from": from_address,
            "to": to,
            "subject": subject,
            "html": html,
            "text": text,
        }
        if reply_to:
            body["reply_to"] = reply_to

        try:
            response = await self.http.post(
                f"{self.base_url}/emails",
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"Email provider unreachable: {e}") from e

        if response.is_error:
            raise NotificationError(_error_message(response))

        message_id = response.json().get("id")
        if not message_id:
            raise NotificationError("Email provider response did not include a message id")

        logger.info("email_sent", message_id=message_id, to=to)
        return message_id


def _error_message(response: httpx.Response) -> str:
    """Extract Resend's error message from a failed response."""
    try:
        data = response.json()
    except ValueError:
        data = {}
    detail = data.get("message") if isinstance(data, dict) else None
    return f"Email provider returned {response.status_code}: {detail or response.reason_phrase}"
