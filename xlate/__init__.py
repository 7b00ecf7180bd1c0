"""xlate: a coalescing, batching, two-tier caching translation engine."""

__version__ = "0.1.0"
