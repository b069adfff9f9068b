"""CRM data store interface.

Rows are plain dicts whose keys are the table's column names, so the same
row builders feed both the Supabase store and the in-memory one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

Row = dict[str, Any]


class AbstractCRMStore(ABC):
    """Persistence operations needed by the API routes."""

    #: False for stores that lose their data on restart (demo mode)
    persistent: bool = True

    @abstractmethod
    def is_event_processed(self, event_id: str) -> bool:
        """Return True if a webhook event id has already been handled."""

    @abstractmethod
    def mark_event_processed(self, event_id: str, event_type: str, *, object_id: str | None = None) -> None:
        """Remember that a webhook event id has been handled."""

    @abstractmethod
    def upsert_giving(self, row: Row) -> None:
        """Insert or replace a gift, keyed by ``stripe_payment_id``."""

    @abstractmethod
    def upsert_recurring_giving(self, row: Row) -> None:
        """Insert or replace a recurring gift, keyed by ``stripe_subscription_id``."""

    @abstractmethod
    def create_person(self, row: Row) -> Row:
        """Insert a person and return the stored row (including ``id``)."""

    @abstractmethod
    def create_prayer_request(self, row: Row) -> None:
        """Insert a prayer request."""

    @abstractmethod
    def create_task(self, row: Row) -> None:
        """Insert a staff task."""

    @abstractmethod
    def list_events(self, church_id: str) -> list[Row]:
        """Return the church's calendar events."""
