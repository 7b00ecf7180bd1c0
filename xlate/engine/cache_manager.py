"""Two-tier translation cache.

Fast tier
    ``storage key -> CacheEntry`` for every translation resolved or loaded
    during this process.  Lookups that hit it return immediately.

Durable tier
    An in-memory mirror of the blob last read from or written to the
    durable store, bounded by ``max_persist_entries`` and filtered by TTL.

Writes land in both tiers and ask the :class:`PersistenceDebouncer` for a
flush.  A flush serializes the fast tier (newest entries first, capped)
and replaces the durable mirror with exactly what was written.

Only the engine's own coroutines touch these dicts.  Operations that await
the store (flush, clear, purge, reload) hold one ``asyncio.Lock`` so a
snapshot taken before an await is never written over a newer state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

import structlog
from pydantic import ValidationError

from xlate.engine.persistence import PersistenceDebouncer
from xlate.interfaces.durable_store import IDurableStore
from xlate.models.cache import CacheEntry, CacheKey, CacheStats, is_expired, now_ms
from xlate.models.config import CACHE_BLOB_KEY, TranslationConfig
from xlate.utils.errors import StoreError
from xlate.utils.logging import get_logger

# ``source`` tag on every store write made by the cache manager.  The engine
# uses it to tell its own writes apart from external changes.
PERSIST_SOURCE = "xlate.cache_manager"


class CacheManager:
    """Owns the fast and durable tiers and their persistence.

    Parameters
    ----------
    store:
        Durable key-value store holding the cache blob.
    config:
        Initial configuration snapshot (TTL and entry cap).
    persist_delay:
        Seconds between the first insert and the debounced durable write.
    clock:
        Epoch-millisecond clock; injectable for TTL tests.
    """

    def __init__(
        self,
        store: IDurableStore,
        config: TranslationConfig,
        persist_delay: float = 2.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._config = config
        self._clock = clock
        self._fast: dict[str, CacheEntry] = {}
        self._durable: dict[str, CacheEntry] = {}
        self._debouncer = PersistenceDebouncer(self._write_snapshot, persist_delay)
        self._store_lock = asyncio.Lock()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> TranslationConfig:
        return self._config

    def update_config(self, config: TranslationConfig) -> None:
        """Apply a new snapshot to subsequent lookups, purges and flushes."""
        self._config = config

    @property
    def debouncer(self) -> PersistenceDebouncer:
        return self._debouncer

    # ------------------------------------------------------------------
    # Lookup / insert
    # ------------------------------------------------------------------

    def lookup(self, key: CacheKey) -> str | None:
        """Return the cached translation for *key*, or ``None``.

        Fast tier first; otherwise a non-expired durable entry is promoted
        into the fast tier and returned.
        """
        skey = key.storage_key
        entry = self._fast.get(skey)
        if entry is not None:
            return entry.value

        entry = self._durable.get(skey)
        if entry is None:
            return None
        if is_expired(entry, self._config.cache_ttl_days, self._clock()):
            return None
        self._fast[skey] = entry
        return entry.value

    def insert(self, key: CacheKey, value: str) -> bool:
        """Cache a successful translation.  Empty values are refused.

        Returns ``True`` if the value was stored.
        """
        if not value:
            return False
        entry = CacheEntry(value=value, timestamp=self._clock())
        skey = key.storage_key
        self._fast[skey] = entry
        self._durable[skey] = entry
        self._debouncer.schedule_flush()
        return True

    def contains(self, key: CacheKey) -> bool:
        return key.storage_key in self._fast

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def clear(self) -> None:
        """Drop both tiers and the durable blob.

        Waits for a flush already writing, so its snapshot cannot land
        after the removal.
        """
        async with self._store_lock:
            self._debouncer.cancel()
            dropped = len(self._fast)
            self._fast = {}
            self._durable = {}
            await self._store.remove(CACHE_BLOB_KEY, source=PERSIST_SOURCE)
        self._logger.info("cache_cleared", dropped=dropped)

    async def purge_expired(self) -> int:
        """Remove expired durable entries and persist at once.

        Purged keys are also dropped from the fast tier so that the next
        debounced flush cannot write them back.  The written blob is capped
        like a debounced flush.  Returns the number removed.
        """
        async with self._store_lock:
            now = self._clock()
            ttl_days = self._config.cache_ttl_days
            expired = [k for k, e in self._durable.items() if is_expired(e, ttl_days, now)]
            for skey in expired:
                del self._durable[skey]
                self._fast.pop(skey, None)

            kept = self._newest(self._durable.items())
            blob = {k: e.to_blob() for k, e in kept}
            await self._store.set({CACHE_BLOB_KEY: blob}, source=PERSIST_SOURCE)
            self._durable = dict(kept)
        self._logger.info("cache_purged", removed=len(expired), remaining=len(blob))
        return len(expired)

    async def reload(self) -> int:
        """Rebuild both tiers from the durable blob.

        Malformed entries are skipped one by one and expired entries are
        discarded.  An unreadable store yields empty tiers.  Returns the
        number of entries loaded.
        """
        async with self._store_lock:
            try:
                values = await self._store.get([CACHE_BLOB_KEY])
            except StoreError as exc:
                self._logger.warning("cache_load_failed", error=str(exc))
                values = {}
            return self._load_blob(values.get(CACHE_BLOB_KEY))

    async def flush_now(self) -> None:
        """Run a pending debounced flush immediately."""
        await self._debouncer.flush_now()

    def stats(self, pending: int = 0) -> CacheStats:
        return CacheStats(
            durable_entries=len(self._durable),
            fast_entries=len(self._fast),
            pending_requests=pending,
            approx_bytes=sum(len(e.value.encode("utf-8")) for e in self._durable.values()),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load_blob(self, raw: object) -> int:
        """Replace both tiers with the usable entries of a durable blob."""
        raw = raw or {}
        if not isinstance(raw, dict):
            self._logger.warning("cache_blob_malformed", blob_type=type(raw).__name__)
            raw = {}

        now = self._clock()
        ttl_days = self._config.cache_ttl_days
        loaded: dict[str, CacheEntry] = {}
        skipped = expired = 0
        for skey, value in raw.items():
            try:
                entry = CacheEntry.from_blob(value, now)
            except ValidationError:
                entry = None
            if entry is None:
                skipped += 1
                continue
            if is_expired(entry, ttl_days, now):
                expired += 1
                continue
            loaded[skey] = entry

        self._durable = loaded
        self._fast = dict(loaded)
        self._logger.info(
            "cache_loaded",
            entries=len(loaded),
            skipped=skipped,
            expired=expired,
            ttl_days=ttl_days,
        )
        return len(loaded)

    def _newest(self, entries: Iterable[tuple[str, CacheEntry]]) -> list[tuple[str, CacheEntry]]:
        """The ``max_persist_entries`` most recent entries, newest first."""
        ordered = sorted(entries, key=lambda item: item[1].timestamp, reverse=True)
        # sorted() is stable: insertion order breaks timestamp ties.
        return ordered[: self._config.max_persist_entries]

    async def _write_snapshot(self) -> int:
        """Serialize the fast tier to the store; the debouncer's write action."""
        async with self._store_lock:
            now = self._clock()
            ttl_days = self._config.cache_ttl_days
            live = [(k, e) for k, e in self._fast.items() if not is_expired(e, ttl_days, now)]
            kept = self._newest(live)

            blob = {k: e.to_blob() for k, e in kept}
            await self._store.set({CACHE_BLOB_KEY: blob}, source=PERSIST_SOURCE)
            self._durable = dict(kept)
        if len(live) > len(kept):
            self._logger.info(
                "cache_persist_capped",
                kept=len(kept),
                dropped=len(live) - len(kept),
                max_entries=self._config.max_persist_entries,
            )
        return len(kept)
