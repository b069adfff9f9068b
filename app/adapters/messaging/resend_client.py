"""Resend email API adapter (``POST /emails``)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.errors import UpstreamServiceAppError

logger = logging.getLogger(__name__)


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class ResendClient:
    """Minimal async client for Resend's REST API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.resend.com",
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def send_email(self, payload: dict[str, Any]) -> str | None:
        """Send one email and return Resend's message id.

        Keys whose value is None are omitted from the request body.

        Raises:
            UpstreamServiceAppError: Resend rejected the request (its status
                and message are passed through) or the request failed.
        """
        body = {k: v for k, v in payload.items() if v is not None}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/emails",
                    json=body,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as exc:
            logger.error("email.request_failed", extra={"error_type": type(exc).__name__})
            raise UpstreamServiceAppError(
                code="email_request_failed",
                message="Failed to send email",
                details={"http_status": 500, "provider": "resend"},
            ) from exc

        data = _json_body(response)
        if response.is_error:
            logger.warning("email.rejected", extra={"http_status": response.status_code})
            raise UpstreamServiceAppError(
                code="email_rejected",
                message=data.get("message") or "Failed to send email",
                details={"http_status": response.status_code, "provider": "resend"},
            )

        return data.get("id")
