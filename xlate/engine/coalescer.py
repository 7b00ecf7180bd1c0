"""Request coalescing for uncached translations.

Concurrent requests for the same :class:`CacheKey` share one
:class:`PendingBatchItem` and therefore one slot in one outbound batch.
The item stays joinable until its future resolves, including while its
batch is already on the wire.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import TYPE_CHECKING

import structlog

from xlate.models.cache import CacheKey, PendingBatchItem
from xlate.utils.logging import get_logger

if TYPE_CHECKING:
    from xlate.engine.batch_scheduler import BatchScheduler


class RequestCoalescer:
    """Maps in-flight cache keys to their shared pending item."""

    def __init__(self, scheduler: BatchScheduler) -> None:
        self._scheduler = scheduler
        self._items: dict[CacheKey, PendingBatchItem] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def pending_count(self) -> int:
        return len(self._items)

    def pending_item(self, key: CacheKey) -> PendingBatchItem | None:
        return self._items.get(key)

    async def request(self, key: CacheKey) -> str:
        """Return the translation for *key* once its batch resolves.

        The first caller creates the pending item and enqueues it; later
        callers attach to it.  Cancelling one caller does not cancel the
        shared result for the others.
        """
        item = self._items.get(key)
        if item is not None:
            item.subscribers += 1
            self._logger.debug("request_coalesced", key=str(key), subscribers=item.subscribers)
        else:
            future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            item = PendingBatchItem(key=key, future=future)
            self._items[key] = item
            future.add_done_callback(partial(self._forget, item))
            self._scheduler.enqueue(item)
        return await asyncio.shield(item.future)

    def _forget(self, item: PendingBatchItem, _future: asyncio.Future[str]) -> None:
        # A later item for the same key may already have replaced this one.
        if self._items.get(item.key) is item:
            del self._items[item.key]
