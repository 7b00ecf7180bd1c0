"""In-process change feed shared by the durable store adapters.

    store.set() ──publish()──→ StoreChangeFeed ──listener()──→ TranslationEngine
                                               ──→ (any other listener)

Listeners may be sync or async.  A listener that raises is logged and
skipped so one broken subscriber cannot break a store write or starve the
others.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from xlate.interfaces.durable_store import StoreListener
from xlate.utils.logging import get_logger


class StoreChangeFeed:
    """Observer registry that fans store changes out to listeners."""

    def __init__(self, store_name: str) -> None:
        self._store_name = store_name
        self._listeners: list[StoreListener] = []
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def register(self, callback: StoreListener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)
            self._logger.debug(
                "store_listener_registered",
                store=self._store_name,
                total_listeners=len(self._listeners),
            )

    def unregister(self, callback: StoreListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)
            self._logger.debug(
                "store_listener_unregistered",
                store=self._store_name,
                remaining_listeners=len(self._listeners),
            )

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def publish(self, changes: dict[str, Any], source: str | None) -> None:
        """Invoke every listener with *changes*; errors are logged, not raised."""
        if not changes:
            return
        # Copy: a listener may unregister itself while being notified.
        for callback in list(self._listeners):
            try:
                result = callback(changes, source)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "store_listener_error",
                    store=self._store_name,
                    keys=sorted(changes),
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
