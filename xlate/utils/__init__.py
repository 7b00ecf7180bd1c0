"""Utility modules for xlate.

- **errors** -- exception hierarchy rooted at XlateError; stores and
  providers raise their own subclass so the engine can degrade precisely.
- **concurrency** -- semaphore-throttled gather and the single-shot timer
  behind the batch window and the persistence delay.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
"""

from xlate.utils.concurrency import OneShotTimer, throttled_gather
from xlate.utils.errors import (
    ConfigurationError,
    ProviderUnavailableError,
    StoreError,
    TranslationError,
    XlateError,
)
from xlate.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "OneShotTimer",
    "ProviderUnavailableError",
    "StoreError",
    "TranslationError",
    "XlateError",
    "configure_logging",
    "get_logger",
    "throttled_gather",
]
