"""In-memory durable store.

Dict-backed implementation of :class:`IDurableStore` for tests and for
throwaway runs (``XLATE_STORE_BACKEND=memory``).  Values are deep-copied
on the way in and out so callers can never mutate stored state by
accident, which is what a real serializing store would guarantee too.
"""

from __future__ import annotations

import copy
from typing import Any

import structlog

from xlate.interfaces.durable_store import IDurableStore, StoreListener
from xlate.providers.store.change_feed import StoreChangeFeed

logger = structlog.get_logger(logger_name=__name__)


class MemoryDurableStore(IDurableStore):
    """Process-local key-value store with a change feed."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._feed = StoreChangeFeed(self.get_provider_name())

    async def get(self, keys: list[str]) -> dict[str, Any]:
        return {k: copy.deepcopy(self._data[k]) for k in keys if k in self._data}

    async def set(self, items: dict[str, Any], source: str | None = None) -> None:
        for key, value in items.items():
            self._data[key] = copy.deepcopy(value)
        logger.debug("memory_store_set", keys=sorted(items), source=source)
        await self._feed.publish(copy.deepcopy(items), source)

    async def remove(self, key: str, source: str | None = None) -> None:
        if key not in self._data:
            return
        del self._data[key]
        logger.debug("memory_store_remove", key=key, source=source)
        await self._feed.publish({key: None}, source)

    def register_listener(self, callback: StoreListener) -> None:
        self._feed.register(callback)

    def unregister_listener(self, callback: StoreListener) -> None:
        self._feed.unregister(callback)

    def get_provider_name(self) -> str:
        return "memory_store"
