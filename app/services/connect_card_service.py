"""Visitor connect-card intake.

A submitted card becomes a ``visitor`` person, an optional prayer request and
a follow-up task for staff. Only the person insert is required; the other
two are best effort.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

from app.adapters.store.base import AbstractCRMStore
from app.core.errors import StoreAppError, ValidationAppError
from app.core.logging import hash_identifier
from app.utils.sanitizers import LIMITS, sanitize_string
from app.utils.validators import is_valid_email, is_valid_phone

logger = logging.getLogger(__name__)

FOLLOW_UP_DELAY = timedelta(days=2)


def build_tags(how_did_you_hear: str | None, interests: list[str]) -> list[str]:
    tags = ["connect-card"]
    if how_did_you_hear:
        tags.append(f"source:{how_did_you_hear}")
    tags.extend(f"interest:{interest}" for interest in interests)
    return tags


def build_notes(how_did_you_hear: str | None, interests: list[str]) -> str:
    parts = []
    if how_did_you_hear:
        parts.append(f"How they heard about us: {how_did_you_hear}")
    if interests:
        parts.append(f"Interested in: {', '.join(interests)}")
    return "\n".join(parts)


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class ConnectCardService:
    def __init__(self, store: AbstractCRMStore, today: Callable[[], date] = _utc_today) -> None:
        self.store = store
        self._today = today

    def submit(
        self,
        *,
        church_id: Any,
        first_name: Any,
        last_name: Any,
        email: Any = None,
        phone: Any = None,
        how_did_you_hear: Any = None,
        prayer_request: Any = None,
        interested_in: Any = None,
    ) -> dict[str, Any]:
        first = sanitize_string(first_name, LIMITS["NAME_MAX"])
        last = sanitize_string(last_name, LIMITS["NAME_MAX"])
        if not first or not last:
            raise ValidationAppError(
                code="name_required",
                message="First name and last name are required",
            )

        church = sanitize_string(church_id, LIMITS["NAME_MAX"])
        if not church:
            raise ValidationAppError(code="church_id_required", message="Church ID is required")

        if email and not is_valid_email(email):
            raise ValidationAppError(
                code="invalid_email",
                message="Invalid email address format",
                details={"field": "email"},
            )
        if phone and not is_valid_phone(phone):
            raise ValidationAppError(
                code="invalid_phone",
                message="Invalid phone number format",
                details={"field": "phone"},
            )

        source = sanitize_string(how_did_you_hear, LIMITS["NAME_MAX"]) or None
        interests: list[str] = []
        if isinstance(interested_in, list):
            interests = [s for s in (sanitize_string(i, LIMITS["NAME_MAX"]) for i in interested_in) if s]
        notes = build_notes(source, interests)
        today = self._today()

        try:
            person = self.store.create_person(
                {
                    "church_id": church,
                    "first_name": first,
                    "last_name": last,
                    "email": email or None,
                    "phone": phone or None,
                    "status": "visitor",
                    "tags": build_tags(source, interests),
                    "notes": notes,
                    "first_visit": today.isoformat(),
                }
            )
        except StoreAppError as exc:
            raise StoreAppError(
                code="visitor_create_failed",
                message="Failed to create visitor record",
            ) from exc

        person_id = person["id"]
        prayer = sanitize_string(prayer_request, LIMITS["NOTE_MAX"])
        if prayer:
            try:
                self.store.create_prayer_request(
                    {
                        "church_id": church,
                        "person_id": person_id,
                        "content": prayer,
                        "is_private": False,
                        "is_answered": False,
                    }
                )
            except StoreAppError:
                logger.warning("connect_card.prayer_request_failed", extra={"person_id": person_id})

        try:
            self.store.create_task(
                {
                    "church_id": church,
                    "person_id": person_id,
                    "title": f"Follow up with new visitor: {first} {last}",
                    "description": f"New visitor from connect card.\n{notes}",
                    "due_date": (today + FOLLOW_UP_DELAY).isoformat(),
                    "priority": "high",
                    "category": "follow-up",
                    "completed": False,
                }
            )
        except StoreAppError:
            logger.warning("connect_card.task_failed", extra={"person_id": person_id})

        logger.info(
            "connect_card.submitted",
            extra={
                "person_id": person_id,
                "church_id": church,
                "email_hash": hash_identifier(email) if email else None,
                "persistent": self.store.persistent,
            },
        )
        return {"success": True, "personId": person_id, "demo": not self.store.persistent}
