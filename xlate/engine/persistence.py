"""Debounced persistence of the translation cache.

Every successful insert asks for a flush; the debouncer turns any number of
those requests into at most one durable write per ``delay`` seconds.  A
failed write is logged and dropped: the in-memory tiers stay authoritative
and the next insert arms a new flush.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog

from xlate.utils.concurrency import OneShotTimer
from xlate.utils.errors import StoreError
from xlate.utils.logging import get_logger


class PersistenceDebouncer:
    """Single-shot delayed writer.

    Parameters
    ----------
    write:
        Coroutine function performing the write; returns the number of
        entries written.
    delay:
        Seconds between the first :meth:`schedule_flush` and the write.
    """

    def __init__(self, write: Callable[[], Awaitable[int]], delay: float) -> None:
        self._write = write
        self._timer = OneShotTimer(delay, self._flush, name="cache_persistence")
        self._logger: structlog.BoundLogger = get_logger(__name__)
        self._flushes = 0
        self._failures = 0

    @property
    def armed(self) -> bool:
        return self._timer.armed

    @property
    def flush_count(self) -> int:
        return self._flushes

    @property
    def failure_count(self) -> int:
        return self._failures

    def schedule_flush(self) -> bool:
        """Arm the write timer.  Calls while armed are no-ops."""
        return self._timer.arm()

    def cancel(self) -> bool:
        return self._timer.cancel()

    async def flush_now(self) -> None:
        """Write immediately if a flush is pending, then wait for any write in progress."""
        await self._timer.fire_now()
        await self._timer.wait_idle()

    async def _flush(self) -> None:
        try:
            written = await self._write()
        except StoreError as exc:
            self._failures += 1
            self._logger.warning(
                "cache_persist_failed",
                error=str(exc),
                failures=self._failures,
            )
            return
        self._flushes += 1
        self._logger.debug("cache_persisted", entries=written)
