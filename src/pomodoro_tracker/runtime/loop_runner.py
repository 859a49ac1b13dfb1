# src/pomodoro_tracker/runtime/loop_runner.py

from __future__ import annotations

"""
Event-loop plumbing.

All core logic (timer ticks, cleanup polling, console commands) runs on one
asyncio loop hosted by a daemon thread. The blocking console REPL stays on the
main thread and marshals each command onto the loop with BackgroundLoop.call().
"""

import asyncio
import concurrent.futures
import contextlib
import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class _RepeatingCall:
    """A callback re-armed with loop.call_later after each run until cancelled."""

    def __init__(self, loop: asyncio.AbstractEventLoop, callback: Callable[[], None], interval: float) -> None:
        self._loop = loop
        self._callback = callback
        self._interval = interval
        self._handle: asyncio.TimerHandle | None = None
        self.cancelled = False

    def arm(self) -> None:
        if not self.cancelled:
            self._handle = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self.cancelled:
            return
        try:
            self._callback()
        except Exception:
            logger.exception("Repeating callback failed")
        # The callback may have cancelled us.
        self.arm()

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioIntervalScheduler:
    """IntervalScheduler backed by the loop's call_later. Use from the loop thread only."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def schedule(self, callback: Callable[[], None], interval_seconds: float) -> _RepeatingCall:
        rc = _RepeatingCall(self._loop, callback, max(0.001, float(interval_seconds)))
        rc.arm()
        return rc

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(max(0.0, float(delay_seconds)), callback)

    def cancel(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()


class BackgroundLoop:
    """
    asyncio loop in a daemon thread.

    on_start / on_stop run on the loop thread, right after the loop starts and
    right before it shuts down.
    """

    def __init__(self, name: str = "pomodoro-loop") -> None:
        self._name = name
        self._ready = threading.Event()
        self._thread: threading.Thread | None = None
        self._on_start: Callable[[], Any] | None = None
        self._on_stop: Callable[[], Any] | None = None
        self._stop_event: asyncio.Event | None = None
        # Created up front so schedulers can be wired before the thread starts.
        self.loop = asyncio.new_event_loop()

    def start(
        self,
        *,
        on_start: Callable[[], Any] | None = None,
        on_stop: Callable[[], Any] | None = None,
        timeout: float = 5.0,
    ) -> None:
        if self._thread is not None:
            raise RuntimeError("background loop already started")

        self._on_start = on_start
        self._on_stop = on_stop
        self._thread = threading.Thread(target=self._runner, name=self._name, daemon=True)
        self._thread.start()

        if not self._ready.wait(timeout=timeout):
            raise RuntimeError("background loop did not start in time")

    def _runner(self) -> None:
        loop = self.loop
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(self._serve())
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    async def _serve(self) -> None:
        self._stop_event = asyncio.Event()
        try:
            if self._on_start is not None:
                await _maybe_await(self._on_start())
        except Exception:
            logger.exception("Background loop on_start failed")
        finally:
            self._ready.set()

        logger.info("Background loop running.")
        try:
            await self._stop_event.wait()
        finally:
            if self._on_stop is not None:
                try:
                    await _maybe_await(self._on_stop())
                except Exception:
                    logger.exception("Background loop on_stop failed")
            logger.info("Background loop stopped.")

    def call(self, fn: Callable[..., Any], *args: Any, timeout: float | None = 30.0) -> Any:
        """
        Run fn(*args) on the loop thread and wait for the result.

        Coroutine functions are awaited. Exceptions propagate to the caller.
        """
        loop = self.loop
        if not loop.is_running():
            raise RuntimeError("background loop is not running")

        if inspect.iscoroutinefunction(fn):
            return asyncio.run_coroutine_threadsafe(fn(*args), loop).result(timeout=timeout)

        fut: concurrent.futures.Future[Any] = concurrent.futures.Future()

        def run() -> None:
            if not fut.set_running_or_notify_cancel():
                return
            try:
                fut.set_result(fn(*args))
            except BaseException as e:
                fut.set_exception(e)

        loop.call_soon_threadsafe(run)
        return fut.result(timeout=timeout)

    def stop(self) -> None:
        stop_event = self._stop_event
        if stop_event is None or self.loop.is_closed():
            return
        try:
            self.loop.call_soon_threadsafe(stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
