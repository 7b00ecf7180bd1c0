"""Configuration module -- exports Settings and the runtime config loader."""

from xlate.config.loader import apply_config_changes, load_translation_config
from xlate.config.settings import Settings

__all__ = ["Settings", "apply_config_changes", "load_translation_config"]
