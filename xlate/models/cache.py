"""Cache data model: provider modes, keys, entries and statistics.

``CacheKey`` and ``PendingBatchItem`` are plain dataclasses because they
are internal, hashed or mutated in hot paths and never serialized through
the API.  ``CacheEntry`` and ``CacheStats`` are frozen Pydantic models:
entries are written to the durable blob and stats go out over HTTP.

Durable blob format (one JSON object under a single store key)::

    {
        "public|שלום||en": {"v": "Hello", "t": 1718000000000},
        "cloud|hola||en": {"v": "hello", "t": 1718000050000},
        "public|legacy||fr": "valeur"          # legacy, no timestamp
    }
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

MS_PER_DAY = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


class ProviderMode(str, Enum):  # noqa: UP042
    """Which translation backend produced (or will produce) a value.

    Part of every cache key: cloud and public providers do not always
    agree, and a value from one must never be served for the other.
    """

    CLOUD = "cloud"
    PUBLIC = "public"


@dataclass(frozen=True)
class CacheKey:
    """Composite identity of one translation: mode, source text, target."""

    mode: ProviderMode
    text: str
    target: str

    @property
    def storage_key(self) -> str:
        return f"{self.mode.value}|{self.text}||{self.target}"

    def __str__(self) -> str:
        return self.storage_key


class CacheEntry(BaseModel):
    """A resolved translation and the epoch-ms instant it was produced."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(min_length=1)
    timestamp: int

    @classmethod
    def from_blob(cls, raw: Any, now: int) -> CacheEntry | None:
        """Parse one durable-blob value, or ``None`` if it is unusable.

        Accepts ``{"v": str, "t": int}`` and legacy bare strings; a missing
        or non-numeric ``t`` is treated as *now*.
        """
        if isinstance(raw, str):
            return cls(value=raw, timestamp=now) if raw else None
        if not isinstance(raw, dict):
            return None
        value = raw.get("v")
        if not isinstance(value, str) or not value:
            return None
        ts = raw.get("t")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            ts = now
        elif not math.isfinite(ts) or ts <= 0:
            ts = now
        return cls(value=value, timestamp=int(ts))

    def to_blob(self) -> dict[str, Any]:
        return {"v": self.value, "t": self.timestamp}

    def is_expired(self, ttl_days: int, now: int) -> bool:
        return is_expired(self, ttl_days, now)


def is_expired(entry: CacheEntry, ttl_days: int, now: int) -> bool:
    """An entry expires once it is older than ``ttl_days``; ``ttl_days <= 0`` disables expiry."""
    return ttl_days > 0 and (now - entry.timestamp) > ttl_days * MS_PER_DAY


@dataclass
class PendingBatchItem:
    """One uncached key waiting for (or riding) an outbound batch.

    Every concurrent caller for ``key`` awaits the same ``future``; the
    batch scheduler resolves it exactly once.
    """

    key: CacheKey
    future: asyncio.Future[str]
    subscribers: int = 1

    @property
    def text(self) -> str:
        return self.key.text

    @property
    def target(self) -> str:
        return self.key.target

    def resolve(self, value: str) -> bool:
        """Complete the shared handle.  Later calls are ignored."""
        if self.future.done():
            return False
        self.future.set_result(value)
        return True


class CacheStats(BaseModel):
    """Point-in-time size of the cache tiers."""

    model_config = ConfigDict(frozen=True)

    durable_entries: int
    fast_entries: int
    pending_requests: int = 0
    approx_bytes: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def approx_kb(self) -> int:
        return round(self.approx_bytes / 1024)
