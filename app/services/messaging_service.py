"""Email and SMS sending, single and bulk.

Bulk sends are sequential with a bounded pause between provider calls so a
large batch does not trip Resend's or Twilio's own rate limits. A failing
item is recorded in the results and never aborts the batch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from app.adapters.messaging.resend_client import ResendClient
from app.adapters.messaging.twilio_client import TwilioSMSClient
from app.core.errors import UpstreamServiceAppError, ValidationAppError
from app.core.logging import hash_identifier
from app.utils.sanitizers import LIMITS, sanitize_html, sanitize_string
from app.utils.validators import format_phone_number, is_valid_email, is_valid_phone, validate_email_array

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

HTML_MAX = LIMITS["MESSAGE_MAX"] * 10


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else [value]


def _failure_reason(exc: UpstreamServiceAppError) -> str:
    if exc.code.endswith("request_failed"):
        return "Request failed"
    return exc.message or "Failed to send"


def bulk_summary(total: int, results: list[dict[str, Any]]) -> dict[str, Any]:
    successful = sum(1 for r in results if r["success"])
    return {
        "success": successful == total,
        "total": total,
        "successful": successful,
        "failed": total - successful,
        "results": results,
    }


def check_batch(items: Any, *, field: str, noun: str, max_items: int) -> list[Any]:
    if not isinstance(items, list) or not items:
        raise ValidationAppError(
            code=f"{field}_required",
            message=f"{field.capitalize()} array is required",
            details={"field": field},
        )
    if len(items) > max_items:
        raise ValidationAppError(
            code="batch_too_large",
            message=f"Maximum {max_items} {noun} per batch",
            details={"field": field, "max_value": max_items, "actual_value": len(items)},
        )
    return items


class _BulkPacer:
    def __init__(self, sleep: Sleep, max_delay_ms: int) -> None:
        self._sleep = sleep
        self._max_delay_ms = max_delay_ms

    async def pause(self, delay_ms: int | float | None) -> None:
        if delay_ms and delay_ms > 0:
            await self._sleep(min(delay_ms, self._max_delay_ms) / 1000)


class EmailService:
    """Sends transactional and bulk email through Resend."""

    def __init__(
        self,
        client: ResendClient,
        *,
        default_from: str,
        max_batch: int = 100,
        max_delay_ms: int = 1000,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.default_from = default_from
        self.max_batch = max_batch
        self._pacer = _BulkPacer(sleep, max_delay_ms)

    async def send(
        self,
        *,
        to: Any,
        subject: Any,
        html: str | None = None,
        text: str | None = None,
        from_address: str | None = None,
        reply_to: str | None = None,
        cc: Any = None,
        bcc: Any = None,
    ) -> dict[str, Any]:
        if not to or not subject:
            raise ValidationAppError(
                code="email_fields_required",
                message="Recipient (to) and subject are required",
            )

        recipients = validate_email_array(_as_list(to))
        if not recipients:
            raise ValidationAppError(
                code="invalid_email",
                message="Invalid email address format",
                details={"field": "to"},
            )

        clean_subject = sanitize_string(subject, LIMITS["SUBJECT_MAX"])
        if not clean_subject:
            raise ValidationAppError(code="subject_required", message="Subject is required")

        payload = {
            "from": from_address or self.default_from,
            "to": recipients,
            "subject": clean_subject,
            "html": sanitize_html(html, HTML_MAX) if html else None,
            "text": sanitize_string(text, LIMITS["MESSAGE_MAX"]) if text else None,
            "reply_to": reply_to if reply_to and is_valid_email(reply_to) else None,
            "cc": validate_email_array(_as_list(cc)) if cc else None,
            "bcc": validate_email_array(_as_list(bcc)) if bcc else None,
        }

        message_id = await self.client.send_email(payload)
        logger.info(
            "email.sent",
            extra={"recipient_count": len(recipients), "message_id": message_id},
        )
        return {"success": True, "messageId": message_id}

    async def send_bulk(self, emails: Any, delay_ms: int | float = 100) -> dict[str, Any]:
        items = check_batch(emails, field="emails", noun="emails", max_items=self.max_batch)
        results: list[dict[str, Any]] = []

        for item in items:
            item = item if isinstance(item, dict) else {}
            recipients = validate_email_array(_as_list(item.get("to")))
            if not recipients:
                results.append({"success": False, "error": "Invalid email address"})
                continue

            clean_subject = sanitize_string(item.get("subject"), LIMITS["SUBJECT_MAX"])
            if not clean_subject:
                results.append({"success": False, "error": "Missing subject"})
                continue

            payload = {
                "from": item.get("from") or self.default_from,
                "to": recipients,
                "subject": clean_subject,
                "html": sanitize_html(item["html"], HTML_MAX) if item.get("html") else None,
                "text": sanitize_string(item["text"], LIMITS["MESSAGE_MAX"]) if item.get("text") else None,
            }
            try:
                message_id = await self.client.send_email(payload)
                results.append({"success": True, "messageId": message_id})
            except UpstreamServiceAppError as exc:
                results.append({"success": False, "error": _failure_reason(exc)})

            await self._pacer.pause(delay_ms)

        summary = bulk_summary(len(items), results)
        logger.info(
            "email.bulk_completed",
            extra={"total": summary["total"], "successful": summary["successful"], "failed": summary["failed"]},
        )
        return summary


class SMSService:
    """Sends SMS through Twilio."""

    def __init__(
        self,
        client: TwilioSMSClient,
        *,
        max_batch: int = 50,
        max_delay_ms: int = 1000,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.max_batch = max_batch
        self._pacer = _BulkPacer(sleep, max_delay_ms)

    async def send(self, *, to: Any, message: Any) -> dict[str, Any]:
        if not to or not message:
            raise ValidationAppError(
                code="sms_fields_required",
                message="Recipient (to) and message are required",
            )
        if not is_valid_phone(to):
            raise ValidationAppError(
                code="invalid_phone",
                message="Invalid phone number format",
                details={"field": "to"},
            )

        body = sanitize_string(message, LIMITS["SMS_MAX"])
        if not body:
            raise ValidationAppError(code="message_required", message="Message is required")

        result = await self.client.send_sms(format_phone_number(to), body)
        logger.info(
            "sms.sent",
            extra={"recipient_hash": hash_identifier(to), "message_id": result["sid"]},
        )
        return {"success": True, "messageId": result["sid"], "status": result["status"]}

    async def send_bulk(self, messages: Any, delay_ms: int | float = 200) -> dict[str, Any]:
        items = check_batch(messages, field="messages", noun="messages", max_items=self.max_batch)
        results: list[dict[str, Any]] = []

        for item in items:
            item = item if isinstance(item, dict) else {}
            to, message = item.get("to"), item.get("message")
            if not to or not message:
                results.append({"success": False, "error": "Missing to or message"})
                continue
            if not is_valid_phone(to):
                results.append({"success": False, "error": "Invalid phone number"})
                continue
            body = sanitize_string(message, LIMITS["SMS_MAX"])
            if not body:
                results.append({"success": False, "error": "Invalid message"})
                continue

            try:
                result = await self.client.send_sms(format_phone_number(to), body)
                results.append({"success": True, "messageId": result["sid"]})
            except UpstreamServiceAppError as exc:
                results.append({"success": False, "error": _failure_reason(exc)})

            await self._pacer.pause(delay_ms)

        summary = bulk_summary(len(items), results)
        logger.info(
            "sms.bulk_completed",
            extra={"total": summary["total"], "successful": summary["successful"], "failed": summary["failed"]},
        )
        return summary

    async def get_status(self, message_id: str) -> dict[str, Any]:
        result = await self.client.get_message_status(message_id)
        return {"success": True, "messageId": result["sid"], "status": result["status"]}
