"""Component assembly shared by the API server and the CLI.

Builds the durable store, both translation providers and the engine from
``Settings``.  Importing this module has no side effects, so the CLI can
configure logging for stderr first and the server can configure it for
stdout.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx

from xlate.config.settings import Settings
from xlate.engine.engine import TranslationEngine
from xlate.interfaces.durable_store import IDurableStore
from xlate.models.cache import ProviderMode
from xlate.providers.store.memory_store import MemoryDurableStore
from xlate.providers.store.sqlite_store import SQLiteDurableStore
from xlate.providers.translation.cloud_provider import CloudTranslationProvider
from xlate.providers.translation.public_provider import PublicTranslationProvider
from xlate.utils.errors import ConfigurationError


def build_store(app_settings: Settings) -> IDurableStore:
    """Select the durable store backend named by ``store_backend``."""
    backend = app_settings.store_backend.lower()
    if backend == "memory":
        return MemoryDurableStore()
    if backend == "sqlite":
        Path(app_settings.store_db_path).parent.mkdir(parents=True, exist_ok=True)
        return SQLiteDurableStore(db_path=app_settings.store_db_path)
    raise ConfigurationError(
        message=f"Unknown store backend {app_settings.store_backend!r} (expected 'sqlite' or 'memory')"
    )


def build_components(app_settings: Settings) -> dict[str, Any]:
    """Construct every component the engine needs.

    Returns a flat dict of named components (the server stores them on
    ``app.state``).  Nothing is started yet; see :func:`start_components`.
    """
    # -- Durable store --
    store = build_store(app_settings)

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.http_timeout_seconds)

    # -- Translation providers --
    cloud = CloudTranslationProvider(
        http_client=http_client,
        api_key=app_settings.default_cloud_api_key,
        endpoint=app_settings.cloud_endpoint,
    )
    public = PublicTranslationProvider(
        http_client=http_client,
        endpoint=app_settings.public_endpoint,
    )

    # -- Engine --
    engine = TranslationEngine(
        store=store,
        providers={ProviderMode.CLOUD: cloud, ProviderMode.PUBLIC: public},
        settings=app_settings,
    )

    return {
        "http_client": http_client,
        "store": store,
        "engine": engine,
    }


async def start_components(components: dict[str, Any]) -> None:
    """Prepare the store, then load config and the cache into the engine."""
    await components["store"].initialize()
    await components["engine"].start()


async def stop_components(components: dict[str, Any]) -> None:
    """Flush the engine, then close the shared HTTP client."""
    engine: TranslationEngine = components["engine"]
    http_client: httpx.AsyncClient = components["http_client"]
    try:
        await engine.close()
    finally:
        await http_client.aclose()
