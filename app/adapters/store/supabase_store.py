"""Supabase-backed CRM store.

Uses the service-role key, so row-level security is bypassed; every write
sets ``church_id`` explicitly from trusted metadata.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from app.adapters.store.base import AbstractCRMStore, Row
from app.core.errors import StoreAppError

logger = logging.getLogger(__name__)

EVENTS_TABLE = "stripe_events"


class SupabaseCRMStore(AbstractCRMStore):
    """AbstractCRMStore implementation on top of supabase-py."""

    def __init__(self, url: str | None = None, service_key: str | None = None, *, client: Client | None = None) -> None:
        if client is None:
            if not url or not service_key:
                raise ValueError("url and service_key are required when no client is given")
            client = create_client(url, service_key)
        self._client = client

    def _execute(self, operation: str, table: str, query: Any) -> list[Row]:
        try:
            response = query.execute()
        except (APIError, httpx.HTTPError) as exc:
            logger.error(
                "store.operation_failed",
                extra={
                    "operation": operation,
                    "table": table,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc)[:300],
                },
            )
            raise StoreAppError(
                code="store_error",
                message=f"Failed to {operation} {table}",
                details={"context": {"table": table}},
            ) from exc
        return list(response.data or [])

    def is_event_processed(self, event_id: str) -> bool:
        query = self._client.table(EVENTS_TABLE).select("event_id").eq("event_id", event_id).limit(1)
        return bool(self._execute("read", EVENTS_TABLE, query))

    def mark_event_processed(self, event_id: str, event_type: str, *, object_id: str | None = None) -> None:
        row = {"event_id": event_id, "type": event_type, "object_id": object_id}
        query = self._client.table(EVENTS_TABLE).upsert(row, on_conflict="event_id", ignore_duplicates=True)
        self._execute("write", EVENTS_TABLE, query)

    def upsert_giving(self, row: Row) -> None:
        query = self._client.table("giving").upsert(row, on_conflict="stripe_payment_id")
        self._execute("write", "giving", query)

    def upsert_recurring_giving(self, row: Row) -> None:
        query = self._client.table("recurring_giving").upsert(row, on_conflict="stripe_subscription_id")
        self._execute("write", "recurring_giving", query)

    def create_person(self, row: Row) -> Row:
        rows = self._execute("write", "people", self._client.table("people").insert(row))
        if not rows:
            raise StoreAppError(code="store_error", message="Failed to write people")
        return rows[0]

    def create_prayer_request(self, row: Row) -> None:
        self._execute("write", "prayer_requests", self._client.table("prayer_requests").insert(row))

    def create_task(self, row: Row) -> None:
        self._execute("write", "tasks", self._client.table("tasks").insert(row))

    def list_events(self, church_id: str) -> list[Row]:
        query = self._client.table("events").select("*").eq("church_id", church_id).order("start_date")
        return self._execute("read", "events", query)
