"""Runtime translation configuration snapshot.

Unlike :class:`~xlate.config.settings.Settings` (process-level, read once
from the environment), a ``TranslationConfig`` lives in the durable store
next to the cache blob and can change while the process runs.  The engine
swaps in a new snapshot whenever the store's change feed reports one of the
keys below; operations already in flight keep the snapshot they started
with.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from xlate.models.cache import ProviderMode

# Durable store keys.  The blob and the scalar settings share one store.
CACHE_BLOB_KEY = "translation_cache"
MAX_ENTRIES_KEY = "cache_max_entries"
TTL_DAYS_KEY = "cache_ttl_days"
USE_CLOUD_KEY = "use_cloud_translate"
API_KEY_KEY = "cloud_api_key"

CONFIG_KEYS: tuple[str, ...] = (MAX_ENTRIES_KEY, TTL_DAYS_KEY, USE_CLOUD_KEY, API_KEY_KEY)

DEFAULT_MAX_ENTRIES = 1000
DEFAULT_TTL_DAYS = 30


class TranslationConfig(BaseModel):
    """Immutable configuration snapshot consumed by the engine."""

    model_config = ConfigDict(frozen=True)

    max_persist_entries: int = Field(default=DEFAULT_MAX_ENTRIES, ge=1)
    # 0 (or negative) disables expiry.
    cache_ttl_days: int = DEFAULT_TTL_DAYS
    use_cloud_provider: bool = False
    cloud_api_key: str = Field(default="", repr=False)

    @property
    def provider_mode(self) -> ProviderMode:
        """Cloud only when it is both enabled and usable."""
        if self.use_cloud_provider and self.cloud_api_key:
            return ProviderMode.CLOUD
        return ProviderMode.PUBLIC

    def with_store_values(self, values: dict[str, Any]) -> TranslationConfig:
        """Return a copy updated from raw store values, ignoring invalid ones.

        Each key is validated on its own so that one bad value does not
        discard the others.
        """
        update: dict[str, Any] = {}
        max_entries = values.get(MAX_ENTRIES_KEY)
        if _is_int(max_entries) and max_entries >= 1:
            update["max_persist_entries"] = max_entries
        ttl_days = values.get(TTL_DAYS_KEY)
        if _is_int(ttl_days):
            update["cache_ttl_days"] = ttl_days
        if USE_CLOUD_KEY in values:
            update["use_cloud_provider"] = bool(values[USE_CLOUD_KEY])
        if API_KEY_KEY in values:
            api_key = values[API_KEY_KEY]
            update["cloud_api_key"] = api_key if isinstance(api_key, str) else ""
        if not update:
            return self
        return self.model_copy(update=update)

    def describe(self) -> dict[str, Any]:
        """Loggable view with the API key reduced to a presence flag."""
        return {
            "max_persist_entries": self.max_persist_entries,
            "cache_ttl_days": self.cache_ttl_days,
            "use_cloud_provider": self.use_cloud_provider,
            "cloud_api_key_set": bool(self.cloud_api_key),
            "provider_mode": self.provider_mode.value,
        }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
