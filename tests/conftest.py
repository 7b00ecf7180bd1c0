"""Shared pytest fixtures for the xlate test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from xlate.config.settings import Settings
from xlate.engine.engine import TranslationEngine
from xlate.interfaces.translation_provider import ITranslationProvider
from xlate.models.cache import ProviderMode
from xlate.models.config import TranslationConfig
from xlate.providers.store.memory_store import MemoryDurableStore

# ---------------------------------------------------------------------------
# Fake provider
# ---------------------------------------------------------------------------


class FakeProvider(ITranslationProvider):
    """Records every batch and answers ``"<text>-><target>"`` by default.

    ``responder`` overrides the answer, ``fail`` makes every call raise and
    ``delay`` holds each call open so tests can race requests against it.
    """

    def __init__(
        self,
        name: str = "fake_public",
        responder: Callable[[list[str], str], list[str]] | None = None,
        fail: bool = False,
        delay: float = 0.0,
        available: bool = True,
    ) -> None:
        self.name = name
        self.responder = responder
        self.fail = fail
        self.delay = delay
        self.available = available
        self.calls: list[tuple[list[str], str]] = []
        self.applied: list[TranslationConfig] = []

    async def translate(self, texts: list[str], target: str) -> list[str]:
        self.calls.append((list(texts), target))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("provider exploded")
        if self.responder is not None:
            return self.responder(texts, target)
        return [f"{text}->{target}" for text in texts]

    def apply_config(self, config: TranslationConfig) -> None:
        self.applied.append(config)

    def get_provider_name(self) -> str:
        return self.name

    def is_available(self) -> bool:
        return self.available


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with short timers so engine tests finish quickly."""
    return Settings(
        _env_file=None,
        store_backend="memory",
        batch_window_ms=10,
        persist_delay_ms=30,
        max_concurrent_batches=4,
    )


@pytest.fixture
def memory_store() -> MemoryDurableStore:
    return MemoryDurableStore()


@pytest.fixture
def provider_factory() -> type[FakeProvider]:
    """The FakeProvider class, for tests that need several configured differently."""
    return FakeProvider


@pytest.fixture
def public_provider() -> FakeProvider:
    return FakeProvider(name="fake_public")


@pytest.fixture
def cloud_provider() -> FakeProvider:
    return FakeProvider(name="fake_cloud")


@pytest.fixture
def make_engine(
    fast_settings: Settings,
    memory_store: MemoryDurableStore,
    public_provider: FakeProvider,
    cloud_provider: FakeProvider,
) -> Callable[..., TranslationEngine]:
    """Factory for engines wired to the fake providers and memory store."""

    def _make(**overrides: Any) -> TranslationEngine:
        providers = overrides.pop(
            "providers",
            {ProviderMode.PUBLIC: public_provider, ProviderMode.CLOUD: cloud_provider},
        )
        return TranslationEngine(
            store=overrides.pop("store", memory_store),
            providers=providers,
            settings=overrides.pop("settings", fast_settings),
            config=overrides.pop("config", None),
        )

    return _make
