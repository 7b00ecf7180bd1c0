"""Translation engine facade.

Wires the cache manager, request coalescer and batch scheduler together
and exposes the three caller-facing operations: ``translate``,
``clear_cache`` and ``purge_expired``.

Call path::

    translate(text, target)
      -> CacheManager.lookup         hit: return at once
      -> RequestCoalescer.request    in flight: share the handle
      -> BatchScheduler.enqueue      wait out the batch window
      -> ITranslationProvider        one call per (mode, target) group
      -> CacheManager.insert         debounced durable write

The engine also listens to the durable store's change feed: configuration
keys apply to subsequent operations, and an external rewrite of the cache
blob triggers a reload.  Writes tagged with the cache manager's own
``source`` are ignored.  Stores shared with other processes are watched
while the engine runs, so their writes arrive on the same feed.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from xlate.config.loader import apply_config_changes, load_translation_config
from xlate.config.settings import Settings
from xlate.engine.batch_scheduler import BatchScheduler
from xlate.engine.cache_manager import PERSIST_SOURCE, CacheManager
from xlate.engine.coalescer import RequestCoalescer
from xlate.interfaces.durable_store import IDurableStore
from xlate.interfaces.translation_provider import ITranslationProvider
from xlate.models.cache import CacheKey, CacheStats, ProviderMode
from xlate.models.config import CACHE_BLOB_KEY, TranslationConfig
from xlate.utils.errors import ConfigurationError, StoreError
from xlate.utils.logging import get_logger


class TranslationEngine:
    """Coalescing, batching, caching translation front end.

    Parameters
    ----------
    store:
        Durable key-value store holding the cache blob and runtime config.
    providers:
        One provider per mode.  ``ProviderMode.PUBLIC`` is required;
        without a ``CLOUD`` entry every request uses the public provider.
    settings:
        Process settings (timer durations, concurrency bound, config
        defaults).  Defaults to ``Settings()``.
    config:
        Initial runtime configuration.  When omitted, :meth:`start` loads
        it from *store*.
    """

    def __init__(
        self,
        store: IDurableStore,
        providers: Mapping[ProviderMode, ITranslationProvider],
        settings: Settings | None = None,
        config: TranslationConfig | None = None,
    ) -> None:
        if ProviderMode.PUBLIC not in providers:
            raise ConfigurationError(message="A public translation provider is required")

        self._store = store
        self._providers = dict(providers)
        self._settings = settings or Settings()
        self._config_override = config is not None
        self._config = config or self._settings.default_translation_config()
        self._started = False
        self._logger: structlog.BoundLogger = get_logger(__name__)

        self._cache = CacheManager(
            store,
            self._config,
            persist_delay=self._settings.persist_delay_seconds,
        )
        self._scheduler = BatchScheduler(
            self._cache,
            self._provider_for,
            window=self._settings.batch_window_seconds,
            max_concurrent_batches=self._settings.max_concurrent_batches,
        )
        self._coalescer = RequestCoalescer(self._scheduler)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load configuration and the durable cache, then follow store changes."""
        if self._started:
            return
        if not self._config_override:
            self._set_config(await load_translation_config(self._store, self._settings))
        else:
            self._set_config(self._config)
        await self._cache.reload()
        self._store.register_listener(self._on_store_changed)
        try:
            await self._store.start_watching(self._settings.store_poll_interval_seconds)
        except StoreError as exc:
            self._logger.warning("store_watch_unavailable", error=str(exc))
        self._started = True
        self._logger.info(
            "engine_started",
            store=self._store.get_provider_name(),
            providers=sorted(p.get_provider_name() for p in self._providers.values()),
            **self._config.describe(),
        )

    async def close(self) -> None:
        """Flush pending batches and persist the cache before shutdown."""
        if self._started:
            await self._store.stop_watching()
            self._store.unregister_listener(self._on_store_changed)
        await self._scheduler.drain()
        await self._cache.flush_now()
        self._started = False
        self._logger.info("engine_closed", **self._cache.stats().model_dump())

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @property
    def config(self) -> TranslationConfig:
        return self._config

    @property
    def cache(self) -> CacheManager:
        return self._cache

    @property
    def scheduler(self) -> BatchScheduler:
        return self._scheduler

    @property
    def coalescer(self) -> RequestCoalescer:
        return self._coalescer

    @property
    def provider_mode(self) -> ProviderMode:
        """Mode new requests are keyed and routed under."""
        mode = self._config.provider_mode
        if mode is ProviderMode.CLOUD and ProviderMode.CLOUD not in self._providers:
            return ProviderMode.PUBLIC
        return mode

    async def translate(self, text: str, target: str) -> str:
        """Translate *text* into *target*.

        Returns ``""`` when no translation is available: empty input,
        provider failure, or a response that did not cover this text.
        Never raises for provider or store trouble.
        """
        if not text or not target:
            return ""
        key = CacheKey(mode=self.provider_mode, text=text, target=target)
        cached = self._cache.lookup(key)
        if cached is not None:
            return cached
        return await self._coalescer.request(key)

    async def clear_cache(self) -> None:
        """Drop every cached translation, in memory and in the store."""
        await self._cache.clear()

    async def purge_expired(self) -> int:
        """Remove expired entries now; returns how many were removed."""
        return await self._cache.purge_expired()

    def stats(self) -> CacheStats:
        return self._cache.stats(pending=self._coalescer.pending_count)

    def provider_status(self) -> dict[str, bool]:
        """Provider name -> whether it is configured well enough to call."""
        return {p.get_provider_name(): p.is_available() for p in self._providers.values()}

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _provider_for(self, mode: ProviderMode) -> ITranslationProvider:
        provider = self._providers.get(mode)
        if provider is None:
            raise ConfigurationError(message=f"No provider registered for mode {mode.value!r}")
        return provider

    def _set_config(self, config: TranslationConfig) -> None:
        self._config = config
        self._cache.update_config(config)
        for provider in self._providers.values():
            provider.apply_config(config)

    async def _on_store_changed(self, changes: dict[str, Any], source: str | None) -> None:
        if source == PERSIST_SOURCE:
            return

        updated = apply_config_changes(self._config, changes)
        if updated is not self._config:
            self._set_config(updated)
            self._logger.info("config_updated", source=source, **updated.describe())

        if CACHE_BLOB_KEY in changes:
            self._logger.info("cache_blob_changed_externally", source=source)
            await self._cache.reload()
