"""Contact-field validation shared by the messaging and intake routes."""

from __future__ import annotations

import re
from typing import Any

from app.utils.sanitizers import LIMITS, sanitize_string

# RFC 5322, simplified. Patterns are applied with fullmatch.
EMAIL_REGEX = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)

# E.164 or common human formats: "(555) 123-4567", "+1 555.123.4567"
PHONE_REGEX = re.compile(r"[\d\s\-().+]{7,20}")

_NON_DIGITS = re.compile(r"\D")


def is_valid_email(email: Any) -> bool:
    return (
        isinstance(email, str)
        and len(email) <= LIMITS["EMAIL_MAX"]
        and EMAIL_REGEX.fullmatch(email) is not None
    )


def is_valid_phone(phone: Any) -> bool:
    return (
        isinstance(phone, str)
        and len(phone) <= LIMITS["PHONE_MAX"]
        and PHONE_REGEX.fullmatch(phone) is not None
    )


def validate_email_array(emails: Any) -> list[str] | None:
    """Keep the valid recipients of a list.

    Items may be plain addresses or ``{"email": ..., "name": ...}`` objects;
    named recipients are rendered as ``"Name <email>"``.

    Returns:
        The valid recipients, or None when the input is not a list or none
        of its items are valid.
    """
    if not isinstance(emails, list):
        return None

    validated: list[str] = []
    for item in emails:
        if isinstance(item, str):
            if is_valid_email(item):
                validated.append(item)
        elif isinstance(item, dict):
            address = item.get("email")
            if address and is_valid_email(address):
                name = sanitize_string(item.get("name"), LIMITS["NAME_MAX"])
                validated.append(f"{name} <{address}>" if name else address)

    return validated or None


def format_phone_number(phone: str) -> str:
    """Normalise a North American or international number to E.164.

    Examples:
        >>> format_phone_number("(555) 123-4567")
        '+15551234567'
        >>> format_phone_number("1-555-123-4567")
        '+15551234567'
        >>> format_phone_number("+44 20 7946 0958")
        '+44 20 7946 0958'
    """
    digits = _NON_DIGITS.sub("", phone)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    if not phone.startswith("+"):
        return f"+{digits}"
    return phone
