"""Runtime configuration loader.

Configuration is resolved in layers (later layers override earlier):

  1. ``TranslationConfig`` field defaults
  2. ``Settings.default_*`` (environment / ``.env``)
  3. Scalar values kept in the durable store next to the cache blob

The store is an external collaborator and may be unreadable; in that case
the loader logs the failure and returns the settings-derived snapshot
(TTL 30 days and cloud disabled unless the environment says otherwise).
Individual store values of the wrong type are ignored field by field.
"""

from __future__ import annotations

from typing import Any

import structlog

from xlate.config.settings import Settings
from xlate.interfaces.durable_store import IDurableStore
from xlate.models.config import CONFIG_KEYS, MAX_ENTRIES_KEY, TTL_DAYS_KEY, TranslationConfig
from xlate.utils.errors import StoreError
from xlate.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


async def load_translation_config(
    store: IDurableStore,
    settings: Settings | None = None,
) -> TranslationConfig:
    """Read the runtime configuration snapshot from *store*.

    Args:
        store: Durable store holding the scalar configuration keys.
        settings: Process settings providing the fallback values.

    Returns:
        The merged configuration snapshot.  Never raises for store errors.
    """
    base = (settings or Settings()).default_translation_config()
    try:
        values = await store.get(list(CONFIG_KEYS))
    except StoreError as exc:
        _logger.warning(
            "config_read_failed",
            error=str(exc),
            fallback=base.describe(),
        )
        return base

    config = base.with_store_values(values)
    _log_ignored(values, config)
    return config


def apply_config_changes(
    current: TranslationConfig,
    changes: dict[str, Any],
) -> TranslationConfig:
    """Fold a change-feed payload into *current*, keeping only config keys."""
    relevant = {k: v for k, v in changes.items() if k in CONFIG_KEYS}
    if not relevant:
        return current
    updated = current.with_store_values(relevant)
    _log_ignored(relevant, updated)
    return updated


def _log_ignored(values: dict[str, Any], config: TranslationConfig) -> None:
    """Warn about store values that were present but rejected."""
    accepted = {
        MAX_ENTRIES_KEY: config.max_persist_entries,
        TTL_DAYS_KEY: config.cache_ttl_days,
    }
    for key, applied in accepted.items():
        if key in values and values[key] is not None and values[key] != applied:
            _logger.warning("config_value_ignored", key=key, value=repr(values[key])[:80])
