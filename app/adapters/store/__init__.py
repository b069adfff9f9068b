"""CRM data store adapters (Supabase, in-memory)."""

from app.adapters.store.base import AbstractCRMStore
from app.adapters.store.factory import create_store
from app.adapters.store.in_memory import InMemoryCRMStore
from app.adapters.store.supabase_store import SupabaseCRMStore

__all__ = [
    "AbstractCRMStore",
    "InMemoryCRMStore",
    "SupabaseCRMStore",
    "create_store",
]
