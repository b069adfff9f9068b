"""Twilio Programmable Messaging adapter.

Talks to the REST API directly (basic auth, form-encoded body) so the SMS
routes stay fully async.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.errors import UpstreamServiceAppError

logger = logging.getLogger(__name__)


class TwilioSMSClient:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str | None = None,
        *,
        base_url: str = "https://api.twilio.com/2010-04-01",
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def _request(self, method: str, path: str, *, fallback_message: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=f"{self.base_url}/Accounts/{self.account_sid}",
                auth=(self.account_sid, self.auth_token),
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("sms.request_failed", extra={"error_type": type(exc).__name__})
            raise UpstreamServiceAppError(
                code="sms_request_failed",
                message=fallback_message,
                details={"http_status": 500, "provider": "twilio"},
            ) from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_error:
            logger.warning(
                "sms.rejected",
                extra={"http_status": response.status_code, "twilio_code": data.get("code")},
            )
            raise UpstreamServiceAppError(
                code="sms_rejected",
                message=data.get("message") or fallback_message,
                details={"http_status": response.status_code, "provider": "twilio"},
            )
        return data

    async def send_sms(self, to: str, body: str) -> dict[str, Any]:
        """Queue a message; returns Twilio's ``sid`` and ``status``."""
        if not self.from_number:
            raise ValueError("from_number is required to send messages")
        data = await self._request(
            "POST",
            "/Messages.json",
            data={"To": to, "From": self.from_number, "Body": body},
            fallback_message="Failed to send SMS",
        )
        return {"sid": data.get("sid"), "status": data.get("status")}

    async def get_message_status(self, message_id: str) -> dict[str, Any]:
        data = await self._request(
            "GET",
            f"/Messages/{message_id}.json",
            fallback_message="Failed to get status",
        )
        return {"sid": data.get("sid"), "status": data.get("status")}
