"""Process settings loaded from environment variables via pydantic-settings.

Sources, in priority order:

  1. Environment variables, e.g. ``XLATE_BATCH_WINDOW_MS=200``
  2. ``.env`` in the working directory
  3. The defaults below

Field ``batch_window_ms`` maps to ``XLATE_BATCH_WINDOW_MS``.  ``APP_ENV``
and ``LOG_LEVEL`` are read without the prefix so they match what the
logging module looks at.

The ``default_*`` fields seed the runtime
:class:`~xlate.models.config.TranslationConfig`; values stored in the
durable store take precedence over them.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from xlate.models.config import DEFAULT_MAX_ENTRIES, DEFAULT_TTL_DAYS, TranslationConfig


class Settings(BaseSettings):
    """xlate process settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="XLATE_",
        extra="ignore",
        populate_by_name=True,
    )

    # === Durable store ===
    # "sqlite" persists across restarts; "memory" is for tests and one-off runs.
    store_backend: str = "sqlite"
    store_db_path: str = "data/translation_store.db"
    # How often the SQLite store checks for writes by other processes; 0 disables.
    store_poll_interval_ms: int = Field(default=1000, ge=0)

    # === Engine timing ===
    batch_window_ms: int = Field(default=120, ge=0)
    persist_delay_ms: int = Field(default=2000, ge=0)
    max_concurrent_batches: int = Field(default=4, ge=1)

    # === Translation providers ===
    cloud_endpoint: str = "https://translation.googleapis.com/language/translate/v2"
    public_endpoint: str = "https://translate.googleapis.com/translate_a/single"
    http_timeout_seconds: float = 10.0

    # === Runtime config defaults (overridden by durable store values) ===
    default_max_persist_entries: int = Field(default=DEFAULT_MAX_ENTRIES, ge=1)
    default_cache_ttl_days: int = DEFAULT_TTL_DAYS
    default_use_cloud_provider: bool = False
    default_cloud_api_key: str = Field(default="", repr=False)

    # === App Config ===
    app_host: str = "127.0.0.1"
    app_port: int = 8000
    app_env: str = Field(default="development", validation_alias=AliasChoices("APP_ENV", "XLATE_APP_ENV"))
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "XLATE_LOG_LEVEL"))

    @property
    def batch_window_seconds(self) -> float:
        return self.batch_window_ms / 1000

    @property
    def persist_delay_seconds(self) -> float:
        return self.persist_delay_ms / 1000

    @property
    def store_poll_interval_seconds(self) -> float:
        return self.store_poll_interval_ms / 1000

    def default_translation_config(self) -> TranslationConfig:
        """Snapshot used until (or instead of) the one in the durable store."""
        return TranslationConfig(
            max_persist_entries=self.default_max_persist_entries,
            cache_ttl_days=self.default_cache_ttl_days,
            use_cloud_provider=self.default_use_cloud_provider,
            cloud_api_key=self.default_cloud_api_key,
        )
