"""Shared asyncio primitives for the translation engine.

``throttled_gather`` is a drop-in replacement for ``asyncio.gather`` that
wraps each awaitable in a semaphore acquire/release.  The batch scheduler
uses it to fan one flush out into one provider call per target-language
group while capping how many outbound calls are open at once.

``OneShotTimer`` is the single-shot alarm both the batch window and the
persistence delay are built on: arming an armed timer is a no-op, and the
action runs once per arming.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from xlate.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most ``semaphore`` slots at a time.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Semaphore bounding how many awaitables run simultaneously.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


class OneShotTimer:
    """Single-shot alarm that runs an async action after a fixed delay.

    The timer is either idle or armed.  :meth:`arm` on an idle timer
    schedules the action ``delay`` seconds later; on an armed timer it does
    nothing, so the delay is measured from the *first* arming (bounded
    latency, not a trailing debounce).  The timer returns to idle just
    before the action starts, so anything armed from inside the action or
    while it awaits begins a fresh cycle.

    Parameters
    ----------
    delay:
        Seconds between arming and running the action.
    action:
        Zero-argument coroutine function to run when the timer fires.
    name:
        Label used in log events and task names.
    """

    def __init__(
        self,
        delay: float,
        action: Callable[[], Awaitable[None]],
        name: str,
    ) -> None:
        self._delay = max(0.0, delay)
        self._action = action
        self._name = name
        self._sleeper: asyncio.Task[None] | None = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def armed(self) -> bool:
        return self._sleeper is not None

    @property
    def delay(self) -> float:
        return self._delay

    def arm(self) -> bool:
        """Arm the timer.  Returns ``True`` only if this call armed it."""
        if self._sleeper is not None:
            return False
        self._sleeper = asyncio.get_running_loop().create_task(
            self._sleep_then_fire(), name=f"timer:{self._name}"
        )
        return True

    def cancel(self) -> bool:
        """Disarm without running the action.  An action already running is unaffected."""
        sleeper, self._sleeper = self._sleeper, None
        if sleeper is None:
            return False
        sleeper.cancel()
        return True

    async def fire_now(self) -> None:
        """Run the action immediately if the timer is armed."""
        if self.cancel():
            task = asyncio.get_running_loop().create_task(
                self._run_action(), name=f"timer:{self._name}:now"
            )
            await task

    async def wait_idle(self) -> None:
        """Wait until no armed delay and no running action remain."""
        while self._sleeper is not None or self._running:
            pending = [t for t in (self._sleeper, *self._running) if t is not None]
            await asyncio.wait(pending)

    async def _sleep_then_fire(self) -> None:
        await asyncio.sleep(self._delay)
        self._sleeper = None
        await self._run_action()

    async def _run_action(self) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._running.add(task)
        try:
            await self._action()
        except Exception as exc:
            # The action owns its error policy; anything reaching here is a bug
            # and must not leave the timer wedged in the armed state.
            _logger.error("timer_action_failed", timer=self._name, error=str(exc), exc_info=True)
        finally:
            if task is not None:
                self._running.discard(task)
