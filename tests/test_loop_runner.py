# tests/test_loop_runner.py

from __future__ import annotations

import asyncio
import threading

import pytest

from pomodoro_tracker.runtime.loop_runner import AsyncioIntervalScheduler, BackgroundLoop


@pytest.mark.asyncio
async def test_interval_scheduler_repeats_until_cancelled() -> None:
    sched = AsyncioIntervalScheduler(asyncio.get_running_loop())
    fired: list[int] = []

    handle = sched.schedule(lambda: fired.append(1), 0.01)
    await asyncio.sleep(0.08)
    sched.cancel(handle)
    count = len(fired)
    await asyncio.sleep(0.05)

    assert count >= 2
    assert len(fired) == count


@pytest.mark.asyncio
async def test_callback_can_cancel_its_own_handle() -> None:
    sched = AsyncioIntervalScheduler(asyncio.get_running_loop())
    fired: list[int] = []
    holder: dict[str, object] = {}

    def once() -> None:
        fired.append(1)
        sched.cancel(holder["h"])

    holder["h"] = sched.schedule(once, 0.01)
    await asyncio.sleep(0.06)
    assert fired == [1]


@pytest.mark.asyncio
async def test_call_later_fires_once_and_can_be_cancelled() -> None:
    sched = AsyncioIntervalScheduler(asyncio.get_running_loop())
    fired: list[str] = []

    sched.call_later(0.01, lambda: fired.append("a"))
    cancelled = sched.call_later(0.01, lambda: fired.append("b"))
    sched.cancel(cancelled)
    await asyncio.sleep(0.05)

    assert fired == ["a"]


def test_background_loop_marshals_calls_onto_its_thread() -> None:
    runner = BackgroundLoop(name="test-loop")
    started: list[str] = []
    stopped: list[str] = []
    runner.start(
        on_start=lambda: started.append(threading.current_thread().name),
        on_stop=lambda: stopped.append(threading.current_thread().name),
    )
    try:
        assert started == ["test-loop"]
        assert runner.call(lambda: threading.current_thread().name) == "test-loop"
        assert runner.call(lambda a, b: a + b, 2, 3) == 5

        async def coro(x: int) -> int:
            await asyncio.sleep(0)
            return x * 2

        assert runner.call(coro, 21) == 42

        def boom() -> None:
            raise KeyError("nope")

        with pytest.raises(KeyError):
            runner.call(boom)
    finally:
        runner.stop()
        runner.join(timeout=5.0)

    assert stopped == ["test-loop"]
    with pytest.raises(RuntimeError):
        runner.call(lambda: None)
