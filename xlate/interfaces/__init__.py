"""Public interface definitions for the engine's external collaborators.

The engine talks to the outside world only through these abstract base
classes; concrete adapters live in ``xlate/providers/`` and are wired up
in ``xlate/main.py`` (or injected directly by tests).

    Interface              ->  Concrete implementations
    -----------------------------------------------------------------
    IDurableStore          ->  SQLiteDurableStore, MemoryDurableStore
    ITranslationProvider   ->  CloudTranslationProvider,
                               PublicTranslationProvider
"""

from xlate.interfaces.durable_store import IDurableStore, StoreListener
from xlate.interfaces.translation_provider import ITranslationProvider

__all__ = [
    "IDurableStore",
    "ITranslationProvider",
    "StoreListener",
]
