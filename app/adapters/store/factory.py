"""Factory for the CRM data store."""

import logging

from app.adapters.store.base import AbstractCRMStore
from app.adapters.store.in_memory import InMemoryCRMStore
from app.adapters.store.supabase_store import SupabaseCRMStore
from app.core.config import settings

logger = logging.getLogger(__name__)


def create_store() -> AbstractCRMStore:
    """Return the Supabase store when configured, else the in-memory one."""
    if settings.supabase.url and settings.supabase.service_key:
        return SupabaseCRMStore(settings.supabase.url, settings.supabase.service_key)

    logger.warning(
        "store.in_memory_fallback",
        extra={"hint": "Set SUPABASE_URL and SUPABASE_SERVICE_KEY to persist data"},
    )
    return InMemoryCRMStore()
