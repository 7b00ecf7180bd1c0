"""Durable store adapters.

SQLiteDurableStore persists to a local file and is the default backend.
MemoryDurableStore keeps everything in a dict; it backs the test suite and
``XLATE_STORE_BACKEND=memory`` runs.  Both publish their writes through a
StoreChangeFeed so the engine can react to external configuration changes.
"""

from xlate.providers.store.change_feed import StoreChangeFeed
from xlate.providers.store.memory_store import MemoryDurableStore
from xlate.providers.store.sqlite_store import SQLiteDurableStore

__all__ = ["MemoryDurableStore", "SQLiteDurableStore", "StoreChangeFeed"]
