"""Dict-backed CRM store used when Supabase is not configured.

Keeps the demo deployment fully functional; nothing survives a restart.
"""

from __future__ import annotations

import copy
import threading
import uuid
from datetime import datetime, timezone

from app.adapters.store.base import AbstractCRMStore, Row


class InMemoryCRMStore(AbstractCRMStore):
    """Thread-safe in-memory implementation of AbstractCRMStore."""

    persistent = False

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.processed_events: dict[str, Row] = {}
        self.giving: dict[str, Row] = {}
        self.recurring_giving: dict[str, Row] = {}
        self.people: list[Row] = []
        self.prayer_requests: list[Row] = []
        self.tasks: list[Row] = []
        self.events: list[Row] = []

    def is_event_processed(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self.processed_events

    def mark_event_processed(self, event_id: str, event_type: str, *, object_id: str | None = None) -> None:
        with self._lock:
            self.processed_events.setdefault(
                event_id,
                {
                    "event_id": event_id,
                    "type": event_type,
                    "object_id": object_id,
                    "processed_at": datetime.now(timezone.utc).isoformat(),
                },
            )

    def upsert_giving(self, row: Row) -> None:
        key = row.get("stripe_payment_id") or str(uuid.uuid4())
        with self._lock:
            self.giving[key] = copy.deepcopy(row)

    def upsert_recurring_giving(self, row: Row) -> None:
        with self._lock:
            self.recurring_giving[row["stripe_subscription_id"]] = copy.deepcopy(row)

    def create_person(self, row: Row) -> Row:
        stored = {**copy.deepcopy(row), "id": str(uuid.uuid4())}
        with self._lock:
            self.people.append(stored)
        return dict(stored)

    def create_prayer_request(self, row: Row) -> None:
        with self._lock:
            self.prayer_requests.append({**copy.deepcopy(row), "id": str(uuid.uuid4())})

    def create_task(self, row: Row) -> None:
        with self._lock:
            self.tasks.append({**copy.deepcopy(row), "id": str(uuid.uuid4())})

    def list_events(self, church_id: str) -> list[Row]:
        with self._lock:
            return [dict(e) for e in self.events if e.get("church_id") == church_id]
