"""Pydantic schemas for the email and SMS routes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendEmailRequest(_CamelModel):
    to: Any = Field(
        default=None,
        description="Address, list of addresses, or list of {email, name} objects.",
    )
    subject: Any = None
    html: str | None = None
    text: str | None = None
    from_address: str | None = Field(default=None, alias="from")
    reply_to: str | None = None
    cc: Any = None
    bcc: Any = None


class BulkEmailRequest(_CamelModel):
    emails: Any = Field(default=None, description="1-100 items of {to, subject, html?, text?, from?}.")
    delay_ms: float = Field(default=100, description="Pause between sends, capped at 1000 ms.")


class SendSMSRequest(_CamelModel):
    to: Any = None
    message: Any = None


class BulkSMSRequest(_CamelModel):
    messages: Any = Field(default=None, description="1-50 items of {to, message}.")
    delay_ms: float = Field(default=200, description="Pause between sends, capped at 1000 ms.")


class SendEmailResponse(_CamelModel):
    success: bool
    message_id: str | None = None


class SMSStatusResponse(_CamelModel):
    success: bool
    message_id: str | None = None
    status: str | None = None


class BulkItemResult(_CamelModel):
    success: bool
    message_id: str | None = None
    error: str | None = None


class BulkSendResponse(_CamelModel):
    success: bool
    total: int
    successful: int
    failed: int
    results: list[BulkItemResult]
