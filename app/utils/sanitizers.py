"""Input sanitisation for text forwarded to third-party providers."""

from __future__ import annotations

import re
from typing import Any

LIMITS = {
    "EMAIL_MAX": 254,
    "NAME_MAX": 100,
    "SUBJECT_MAX": 200,
    "MESSAGE_MAX": 5000,
    "SMS_MAX": 1600,
    "PHONE_MAX": 20,
    "NOTE_MAX": 2000,
    "PROMPT_MAX": 10000,
    "CONTEXT_MAX": 5000,
}

_ANGLE_BRACKETS = re.compile(r"[<>]")
_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)
_JS_URL = re.compile(r"javascript:", re.IGNORECASE)


def sanitize_string(value: Any, max_length: int = 1000) -> str:
    """Truncate, strip HTML angle brackets and surrounding whitespace.

    Non-string input yields an empty string.
    """
    if not isinstance(value, str):
        return ""
    return _ANGLE_BRACKETS.sub("", value[:max_length]).strip()


def sanitize_html(value: Any, max_length: int = 50000) -> str:
    """Remove script blocks, inline event handlers and ``javascript:`` URLs.

    Formatting markup is kept so newsletters render as designed.
    """
    if not isinstance(value, str):
        return ""
    cleaned = _SCRIPT_BLOCK.sub("", value[:max_length])
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    cleaned = _JS_URL.sub("", cleaned)
    return cleaned.strip()


def sanitize_prompt(value: Any, max_length: int = LIMITS["PROMPT_MAX"]) -> str:
    """Trim a prompt and cut it to ``max_length`` characters."""
    return str(value or "").strip()[:max_length]
