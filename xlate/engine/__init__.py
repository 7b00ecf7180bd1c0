"""Translation cache and batch-coalescing engine.

- **cache_manager** -- fast and durable cache tiers, TTL, reload, purge.
- **persistence** -- debounced durable writes of the cache blob.
- **coalescer** -- one shared pending item per in-flight cache key.
- **batch_scheduler** -- windowed, per-target batching of provider calls.
- **engine** -- the facade callers use.
"""

from xlate.engine.batch_scheduler import BatchScheduler
from xlate.engine.cache_manager import PERSIST_SOURCE, CacheManager
from xlate.engine.coalescer import RequestCoalescer
from xlate.engine.engine import TranslationEngine
from xlate.engine.persistence import PersistenceDebouncer

__all__ = [
    "PERSIST_SOURCE",
    "BatchScheduler",
    "CacheManager",
    "PersistenceDebouncer",
    "RequestCoalescer",
    "TranslationEngine",
]
