"""Abstract base class for the durable key-value store.

The engine persists exactly one large value (the serialized cache blob)
and a handful of scalar settings.  Implementations may use SQLite, a
plain dict, a browser-extension storage bridge or anything else that can
hold JSON-compatible values under string keys.

Stores also publish a change feed: every ``set``/``remove`` notifies the
registered listeners with the changed keys and an optional ``source`` tag
naming the writer, so a component can recognise (and ignore) its own
writes.  Stores shared between processes can also watch for
foreign writes and publish them with ``source=None``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

# listener(changes, source) -> None | Awaitable[None]
# ``changes`` maps each changed key to its new value (``None`` when removed).
StoreListener = Callable[[dict[str, Any], str | None], Awaitable[None] | None]


class IDurableStore(ABC):
    """Contract for the asynchronous durable key-value store.

    All operations are async to allow for disk- or network-backed stores
    without blocking the event loop.  Implementations raise
    :class:`~xlate.utils.errors.StoreError` on I/O failures.
    """

    @abstractmethod
    async def get(self, keys: list[str]) -> dict[str, Any]:
        """Return the stored values for *keys*.

        Parameters
        ----------
        keys:
            Keys to read.

        Returns
        -------
        dict[str, Any]
            Only the keys that are present; missing keys are omitted.
        """

    @abstractmethod
    async def set(self, items: dict[str, Any], source: str | None = None) -> None:
        """Store every key/value pair in *items*, replacing existing values.

        Parameters
        ----------
        items:
            JSON-compatible values keyed by store key.
        source:
            Optional tag identifying the writer, forwarded to listeners.
        """

    @abstractmethod
    async def remove(self, key: str, source: str | None = None) -> None:
        """Delete *key*.  A no-op if the key does not exist."""

    @abstractmethod
    def register_listener(self, callback: StoreListener) -> None:
        """Subscribe *callback* to the change feed."""

    @abstractmethod
    def unregister_listener(self, callback: StoreListener) -> None:
        """Unsubscribe *callback*.  A no-op if it is not registered."""

    async def initialize(self) -> None:
        """Prepare the backing storage.  Default: nothing to do."""

    async def start_watching(self, interval: float) -> None:
        """Begin publishing writes made by other processes.

        Stores that cannot be written from outside this process (the
        default) have nothing to watch.
        """

    async def stop_watching(self) -> None:
        """Stop the watcher started by :meth:`start_watching`, if any."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
