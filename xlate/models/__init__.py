"""Data models for the translation engine.

- **cache** -- provider modes, composite cache keys, durable entries,
  pending batch items and cache statistics.
- **config** -- the runtime configuration snapshot and the durable store
  keys it is read from.
"""

from xlate.models.cache import (
    CacheEntry,
    CacheKey,
    CacheStats,
    PendingBatchItem,
    ProviderMode,
    is_expired,
    now_ms,
)
from xlate.models.config import CACHE_BLOB_KEY, CONFIG_KEYS, TranslationConfig

__all__ = [
    "CACHE_BLOB_KEY",
    "CONFIG_KEYS",
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "PendingBatchItem",
    "ProviderMode",
    "TranslationConfig",
    "is_expired",
    "now_ms",
]
