"""Cache stores for clinic_query."""

from clinic_query.stores.base import CacheStore
from clinic_query.stores.memory import MemoryStore

__all__ = [
    "CacheStore",
    "MemoryStore",
]
