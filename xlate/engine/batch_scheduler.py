"""Windowed batching of pending translations.

Pending items accumulate until a single window timer fires, measured from
the first registration so a steady trickle cannot postpone a flush.  On
fire the accumulated list is detached in one step and split into groups by
(provider mode, target language); each group becomes one provider call.

Batch lifecycle::

    Idle -> Accumulating -> Flushing -> Idle

A request arriving while a batch is flushing either joins its in-flight
item (same key, via the coalescer) or starts a new accumulation cycle.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

import structlog

from xlate.engine.cache_manager import CacheManager
from xlate.interfaces.translation_provider import ITranslationProvider
from xlate.models.cache import CacheKey, PendingBatchItem, ProviderMode
from xlate.utils.concurrency import OneShotTimer, throttled_gather
from xlate.utils.logging import get_logger

_GroupKey = tuple[ProviderMode, str]


class BatchScheduler:
    """Accumulates pending items and flushes them in per-target batches.

    Parameters
    ----------
    cache:
        Cache manager consulted before each call and written after it.
    provider_for:
        Returns the provider for a mode.  Resolved at flush time so a
        configuration change applies to the next batch.
    window:
        Seconds between the first registration and the flush.
    max_concurrent_batches:
        Upper bound on provider calls open at once within one flush.
    """

    def __init__(
        self,
        cache: CacheManager,
        provider_for: Callable[[ProviderMode], ITranslationProvider],
        window: float = 0.12,
        max_concurrent_batches: int = 4,
    ) -> None:
        self._cache = cache
        self._provider_for = provider_for
        self._accumulating: list[PendingBatchItem] = []
        self._timer = OneShotTimer(window, self._flush, name="batch_window")
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent_batches))
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def pending_count(self) -> int:
        return len(self._accumulating)

    @property
    def window_armed(self) -> bool:
        return self._timer.armed

    def enqueue(self, item: PendingBatchItem) -> None:
        """Register *item* for the next flush, arming the window if idle."""
        self._accumulating.append(item)
        self._timer.arm()

    async def drain(self) -> None:
        """Flush the accumulating set now and wait for every batch in flight."""
        await self._timer.fire_now()
        await self._timer.wait_idle()

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    async def _flush(self) -> None:
        items, self._accumulating = self._accumulating, []
        if not items:
            return

        groups: dict[_GroupKey, dict[CacheKey, list[PendingBatchItem]]] = {}
        for item in items:
            by_key = groups.setdefault((item.key.mode, item.target), {})
            by_key.setdefault(item.key, []).append(item)

        started = time.monotonic()
        await throttled_gather(
            [self._flush_group(mode, target, by_key) for (mode, target), by_key in groups.items()],
            self._semaphore,
        )

        # Nothing may be left waiting forever.
        stranded = 0
        for item in items:
            if item.resolve(""):
                stranded += 1
        if stranded:
            self._logger.warning("batch_items_stranded", count=stranded)

        self._logger.debug(
            "batch_window_flushed",
            items=len(items),
            groups=len(groups),
            elapsed_ms=round((time.monotonic() - started) * 1000, 1),
        )

    async def _flush_group(
        self,
        mode: ProviderMode,
        target: str,
        by_key: dict[CacheKey, list[PendingBatchItem]],
    ) -> None:
        # Another path may have cached a key since it was queued.
        to_fetch: list[CacheKey] = []
        for key, waiting in by_key.items():
            cached = self._cache.lookup(key)
            if cached is not None:
                _resolve_all(waiting, cached)
            else:
                to_fetch.append(key)
        if not to_fetch:
            return

        texts = [key.text for key in to_fetch]
        provider_name = mode.value
        try:
            provider = self._provider_for(mode)
            provider_name = provider.get_provider_name()
            results = await provider.translate(texts, target)
        except Exception as exc:
            self._logger.warning(
                "provider_call_failed",
                provider=provider_name,
                target=target,
                batch_size=len(texts),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            results = []

        translated = 0
        for index, key in enumerate(to_fetch):
            value = results[index] if index < len(results) else ""
            if not isinstance(value, str):
                value = ""
            if value:
                self._cache.insert(key, value)
                translated += 1
            else:
                # A concurrent flush may have produced it meanwhile.
                value = self._cache.lookup(key) or ""
            _resolve_all(by_key[key], value)

        self._logger.info(
            "batch_flushed",
            provider=provider_name,
            target=target,
            batch_size=len(texts),
            translated=translated,
            returned=len(results),
        )


def _resolve_all(items: list[PendingBatchItem], value: str) -> None:
    for item in items:
        item.resolve(value)
