"""Unit tests for the TranslationEngine facade.

Covers the end-to-end request path (cache, coalescing, batching, provider,
persistence) against fake providers and the in-memory store.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from xlate.engine.engine import TranslationEngine
from xlate.models.cache import ProviderMode
from xlate.models.config import (
    API_KEY_KEY,
    CACHE_BLOB_KEY,
    MAX_ENTRIES_KEY,
    TTL_DAYS_KEY,
    USE_CLOUD_KEY,
    TranslationConfig,
)
from xlate.providers.store.memory_store import MemoryDurableStore
from xlate.providers.store.sqlite_store import SQLiteDurableStore
from xlate.utils.errors import ConfigurationError


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll *predicate* until it holds; fail after *timeout* seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        assert loop.time() < deadline, "condition not reached in time"
        await asyncio.sleep(0.01)


# ======================================================================
# Construction & lifecycle
# ======================================================================


class TestLifecycle:
    def test_public_provider_required(self, memory_store, cloud_provider, fast_settings) -> None:
        with pytest.raises(ConfigurationError):
            TranslationEngine(
                store=memory_store,
                providers={ProviderMode.CLOUD: cloud_provider},
                settings=fast_settings,
            )

    @pytest.mark.asyncio
    async def test_start_loads_config_and_cache(self, make_engine, memory_store, public_provider) -> None:
        await memory_store.set(
            {
                TTL_DAYS_KEY: 0,
                MAX_ENTRIES_KEY: 10,
                CACHE_BLOB_KEY: {"public|hola||en": {"v": "hello", "t": 1}},
            }
        )
        engine = make_engine()
        await engine.start()

        assert engine.config.cache_ttl_days == 0
        assert engine.config.max_persist_entries == 10
        assert await engine.translate("hola", "en") == "hello"
        assert public_provider.calls == []
        assert public_provider.applied[-1] == engine.config
        await engine.close()

    @pytest.mark.asyncio
    async def test_close_flushes_pending_work_to_store(self, make_engine, memory_store) -> None:
        engine = make_engine()
        await engine.start()

        task = asyncio.create_task(engine.translate("hola", "en"))
        await asyncio.sleep(0)
        await engine.close()

        assert await task == "hola->en"
        blob = (await memory_store.get([CACHE_BLOB_KEY]))[CACHE_BLOB_KEY]
        assert blob["public|hola||en"]["v"] == "hola->en"

    @pytest.mark.asyncio
    async def test_cache_survives_restart(self, make_engine, public_provider) -> None:
        first = make_engine()
        await first.start()
        assert await first.translate("hola", "en") == "hola->en"
        await first.close()

        second = make_engine()
        await second.start()
        assert await second.translate("hola", "en") == "hola->en"
        assert len(public_provider.calls) == 1
        await second.close()


# ======================================================================
# translate()
# ======================================================================


class TestTranslate:
    @pytest.mark.asyncio
    async def test_concurrent_identical_requests_make_one_call(self, make_engine, public_provider) -> None:
        engine = make_engine()
        await engine.start()

        first, second = await asyncio.gather(
            engine.translate("שלום", "en"),
            engine.translate("שלום", "en"),
        )

        assert first == second == "שלום->en"
        assert public_provider.calls == [(["שלום"], "en")]
        await engine.close()

    @pytest.mark.asyncio
    async def test_one_call_per_target_language(self, make_engine, public_provider) -> None:
        engine = make_engine()
        await engine.start()

        a, b = await asyncio.gather(engine.translate("A", "en"), engine.translate("B", "fr"))

        assert (a, b) == ("A->en", "B->fr")
        assert sorted(public_provider.calls) == [(["A"], "en"), (["B"], "fr")]
        await engine.close()

    @pytest.mark.asyncio
    async def test_provider_failure_returns_empty_and_is_not_cached(
        self, make_engine, public_provider
    ) -> None:
        engine = make_engine()
        await engine.start()

        public_provider.fail = True
        assert await engine.translate("hola", "en") == ""
        assert engine.stats().fast_entries == 0

        public_provider.fail = False
        assert await engine.translate("hola", "en") == "hola->en"
        assert len(public_provider.calls) == 2
        await engine.close()

    @pytest.mark.asyncio
    async def test_empty_provider_result_returns_empty(self, make_engine, public_provider) -> None:
        public_provider.responder = lambda texts, target: []
        engine = make_engine()
        await engine.start()

        assert await engine.translate("hola", "en") == ""
        assert engine.stats().fast_entries == 0
        await engine.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text,target", [("", "en"), ("hola", "")])
    async def test_empty_input_short_circuits(self, make_engine, public_provider, text, target) -> None:
        engine = make_engine()
        await engine.start()
        assert await engine.translate(text, target) == ""
        assert public_provider.calls == []
        await engine.close()

    @pytest.mark.asyncio
    async def test_hit_served_without_call(self, make_engine, public_provider) -> None:
        engine = make_engine()
        await engine.start()
        await engine.translate("hola", "en")
        await engine.translate("hola", "en")
        assert len(public_provider.calls) == 1
        await engine.close()


# ======================================================================
# Provider mode
# ======================================================================


class TestProviderMode:
    @pytest.mark.asyncio
    async def test_cloud_used_when_enabled_with_key(
        self, make_engine, public_provider, cloud_provider
    ) -> None:
        engine = make_engine(config=TranslationConfig(use_cloud_provider=True, cloud_api_key="k"))
        await engine.start()

        assert engine.provider_mode is ProviderMode.CLOUD
        await engine.translate("hola", "en")

        assert cloud_provider.calls == [(["hola"], "en")]
        assert public_provider.calls == []
        await engine.close()

    @pytest.mark.asyncio
    async def test_cloud_without_key_falls_back_to_public(self, make_engine, public_provider) -> None:
        engine = make_engine(config=TranslationConfig(use_cloud_provider=True))
        await engine.start()

        assert engine.provider_mode is ProviderMode.PUBLIC
        await engine.translate("hola", "en")
        assert public_provider.calls == [(["hola"], "en")]
        await engine.close()

    @pytest.mark.asyncio
    async def test_cloud_without_provider_falls_back_to_public(
        self, make_engine, public_provider
    ) -> None:
        engine = make_engine(
            providers={ProviderMode.PUBLIC: public_provider},
            config=TranslationConfig(use_cloud_provider=True, cloud_api_key="k"),
        )
        await engine.start()
        assert engine.provider_mode is ProviderMode.PUBLIC
        await engine.close()

    @pytest.mark.asyncio
    async def test_cached_values_do_not_leak_across_modes(
        self, make_engine, memory_store, public_provider, cloud_provider
    ) -> None:
        engine = make_engine()
        await engine.start()
        await engine.translate("hola", "en")

        await memory_store.set({USE_CLOUD_KEY: True, API_KEY_KEY: "k"})
        await engine.translate("hola", "en")

        assert public_provider.calls == [(["hola"], "en")]
        assert cloud_provider.calls == [(["hola"], "en")]
        await engine.close()


# ======================================================================
# Store change feed
# ======================================================================


class TestStoreChanges:
    @pytest.mark.asyncio
    async def test_config_change_applies_to_later_operations(
        self, make_engine, memory_store, cloud_provider
    ) -> None:
        engine = make_engine()
        await engine.start()
        assert engine.provider_mode is ProviderMode.PUBLIC

        await memory_store.set({USE_CLOUD_KEY: True, API_KEY_KEY: "k", TTL_DAYS_KEY: 3})

        assert engine.provider_mode is ProviderMode.CLOUD
        assert engine.config.cache_ttl_days == 3
        assert engine.cache.config.cache_ttl_days == 3
        assert cloud_provider.applied[-1].cloud_api_key == "k"
        await engine.close()

    @pytest.mark.asyncio
    async def test_external_blob_write_triggers_reload(
        self, make_engine, memory_store, public_provider
    ) -> None:
        engine = make_engine()
        await engine.start()

        await memory_store.set(
            {CACHE_BLOB_KEY: {"public|hola||en": {"v": "synced", "t": 1}}},
            source="other-process",
        )

        assert await engine.translate("hola", "en") == "synced"
        assert public_provider.calls == []
        await engine.close()

    @pytest.mark.asyncio
    async def test_own_writes_do_not_trigger_reload(self, make_engine) -> None:
        engine = make_engine()
        await engine.start()
        await engine.translate("hola", "en")

        with patch.object(engine.cache, "reload", AsyncMock()) as reload:
            await engine.cache.flush_now()
            await engine.clear_cache()
            reload.assert_not_awaited()
        await engine.close()

    @pytest.mark.asyncio
    async def test_config_written_by_another_process_is_applied(
        self, make_engine, fast_settings, tmp_path: Path
    ) -> None:
        store = SQLiteDurableStore(tmp_path / "shared.db")
        await store.initialize()
        settings = fast_settings.model_copy(update={"store_poll_interval_ms": 10})
        engine = make_engine(store=store, settings=settings)
        await engine.start()

        other = SQLiteDurableStore(tmp_path / "shared.db")
        await other.set({TTL_DAYS_KEY: 7})

        await _wait_until(lambda: engine.config.cache_ttl_days == 7)
        await engine.close()
        assert not store.watching

    @pytest.mark.asyncio
    async def test_clear_from_another_process_is_not_undone(
        self, make_engine, fast_settings, public_provider, tmp_path: Path
    ) -> None:
        store = SQLiteDurableStore(tmp_path / "shared.db")
        await store.initialize()
        settings = fast_settings.model_copy(update={"store_poll_interval_ms": 10})
        engine = make_engine(store=store, settings=settings)
        await engine.start()
        await engine.translate("hola", "en")
        await engine.cache.flush_now()

        other = SQLiteDurableStore(tmp_path / "shared.db")
        await other.remove(CACHE_BLOB_KEY)

        await _wait_until(lambda: engine.stats().fast_entries == 0)
        await engine.close()
        assert await store.get([CACHE_BLOB_KEY]) == {}
        assert len(public_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_closed_engine_stops_listening(self, make_engine, memory_store) -> None:
        engine = make_engine()
        await engine.start()
        await engine.close()

        await memory_store.set({TTL_DAYS_KEY: 1})
        assert engine.config.cache_ttl_days == 30


# ======================================================================
# Maintenance operations
# ======================================================================


class TestMaintenance:
    @pytest.mark.asyncio
    async def test_clear_cache_forces_new_calls(self, make_engine, memory_store, public_provider) -> None:
        engine = make_engine()
        await engine.start()
        await engine.translate("hola", "en")

        await engine.clear_cache()

        assert await memory_store.get([CACHE_BLOB_KEY]) == {}
        await engine.translate("hola", "en")
        assert len(public_provider.calls) == 2
        await engine.close()

    @pytest.mark.asyncio
    async def test_purge_expired_reports_count(self, make_engine) -> None:
        store = MemoryDurableStore(
            {
                TTL_DAYS_KEY: 30,
                CACHE_BLOB_KEY: {
                    "public|old||en": {"v": "Old", "t": 1},
                    "public|new||en": {"v": "New", "t": 9_999_999_999_999},
                },
            }
        )
        engine = make_engine(store=store)
        await engine.start()

        # The ancient entry never made it past reload.
        assert engine.stats().durable_entries == 1
        assert await engine.purge_expired() == 0
        await engine.close()

    @pytest.mark.asyncio
    async def test_stats_reports_pending(self, make_engine, public_provider) -> None:
        public_provider.delay = 0.05
        engine = make_engine()
        await engine.start()

        task = asyncio.create_task(engine.translate("hola", "en"))
        await asyncio.sleep(0)
        assert engine.stats().pending_requests == 1

        await task
        assert engine.stats().pending_requests == 0
        assert engine.stats().fast_entries == 1
        await engine.close()

    @pytest.mark.asyncio
    async def test_provider_status(self, make_engine, cloud_provider) -> None:
        cloud_provider.available = False
        engine = make_engine()
        assert engine.provider_status() == {"fake_public": True, "fake_cloud": False}
