"""Unit tests for throttled_gather and OneShotTimer."""

from __future__ import annotations

import asyncio

import pytest

from xlate.utils.concurrency import OneShotTimer, throttled_gather

# ======================================================================
# throttled_gather
# ======================================================================


class TestThrottledGather:
    @pytest.mark.asyncio
    async def test_preserves_order_and_bounds_concurrency(self) -> None:
        running = 0
        peak = 0

        async def work(i: int) -> int:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return i * 10

        results = await throttled_gather([work(i) for i in range(6)], asyncio.Semaphore(2))

        assert results == [0, 10, 20, 30, 40, 50]
        assert peak == 2

    @pytest.mark.asyncio
    async def test_exceptions_returned_in_place(self) -> None:
        async def ok() -> str:
            return "ok"

        async def bad() -> str:
            raise ValueError("bad")

        results = await throttled_gather([ok(), bad()], asyncio.Semaphore(1))

        assert results[0] == "ok"
        assert isinstance(results[1], ValueError)


# ======================================================================
# OneShotTimer
# ======================================================================


class TestOneShotTimer:
    @pytest.mark.asyncio
    async def test_fires_once_after_delay(self) -> None:
        fired: list[float] = []

        async def action() -> None:
            fired.append(asyncio.get_running_loop().time())

        timer = OneShotTimer(0.02, action, name="test")
        assert timer.arm() is True
        assert timer.armed is True
        await timer.wait_idle()

        assert len(fired) == 1
        assert timer.armed is False

    @pytest.mark.asyncio
    async def test_rearming_while_armed_is_a_noop(self) -> None:
        calls = 0

        async def action() -> None:
            nonlocal calls
            calls += 1

        timer = OneShotTimer(0.02, action, name="test")
        assert timer.arm() is True
        assert timer.arm() is False
        assert timer.arm() is False
        await timer.wait_idle()

        assert calls == 1

    @pytest.mark.asyncio
    async def test_delay_measured_from_first_arm(self) -> None:
        loop = asyncio.get_running_loop()
        fired_at: list[float] = []

        async def action() -> None:
            fired_at.append(loop.time())

        timer = OneShotTimer(0.05, action, name="test")
        start = loop.time()
        timer.arm()
        await asyncio.sleep(0.03)
        timer.arm()
        await timer.wait_idle()

        # A trailing debounce would have fired at ~0.08s.
        assert fired_at[0] - start < 0.075

    @pytest.mark.asyncio
    async def test_cancel_prevents_action(self) -> None:
        calls = 0

        async def action() -> None:
            nonlocal calls
            calls += 1

        timer = OneShotTimer(0.01, action, name="test")
        timer.arm()
        assert timer.cancel() is True
        assert timer.cancel() is False
        await asyncio.sleep(0.03)

        assert calls == 0

    @pytest.mark.asyncio
    async def test_fire_now_runs_immediately_only_when_armed(self) -> None:
        calls = 0

        async def action() -> None:
            nonlocal calls
            calls += 1

        timer = OneShotTimer(10.0, action, name="test")
        await timer.fire_now()
        assert calls == 0

        timer.arm()
        await timer.fire_now()
        assert calls == 1
        assert timer.armed is False

    @pytest.mark.asyncio
    async def test_arm_inside_action_starts_new_cycle(self) -> None:
        calls = 0
        timer: OneShotTimer

        async def action() -> None:
            nonlocal calls
            calls += 1
            if calls == 1:
                assert timer.arm() is True

        timer = OneShotTimer(0.01, action, name="test")
        timer.arm()
        await timer.wait_idle()

        assert calls == 2

    @pytest.mark.asyncio
    async def test_failing_action_leaves_timer_usable(self) -> None:
        calls = 0

        async def action() -> None:
            nonlocal calls
            calls += 1
            raise RuntimeError("boom")

        timer = OneShotTimer(0.0, action, name="test")
        timer.arm()
        await timer.wait_idle()
        assert timer.arm() is True
        await timer.wait_idle()

        assert calls == 2
