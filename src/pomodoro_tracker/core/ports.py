# src/pomodoro_tracker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage, time, scheduling and the native video commands swappable
and makes testing deterministic (see tests/fakes.py).
"""

from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Protocol


class KeyValueRepo(Protocol):
    """Key -> JSON document store. Whole-document reads and writes only."""

    def get(self, key: str) -> Any | None: ...
    def set(self, key: str, value: Any) -> None: ...
    def delete(self, key: str) -> bool: ...
    def update(self, key: str, mutate: Callable[[Any], Any], default: Any = None) -> Any: ...
    def load_list(self, key: str) -> list[Any]: ...
    def load_object(self, key: str) -> dict[str, Any] | None: ...

    @property
    def writer_lock(self) -> AbstractContextManager[Any]: ...


class Clock(Protocol):
    def now(self) -> datetime: ...
    def now_iso(self) -> str: ...
    def today(self) -> str: ...  # YYYY-MM-DD


class IntervalScheduler(Protocol):
    """
    Repeating/one-shot callback scheduling on the single core thread.

    After cancel(handle) returns, the callback must not fire again.
    """

    def schedule(self, callback: Callable[[], None], interval_seconds: float) -> Any: ...
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> Any: ...
    def cancel(self, handle: Any) -> None: ...


class CleanupAction(Protocol):
    """Native-side deletion of old recordings. Raises on failure."""

    async def cleanup_old_videos(self, days_old: int) -> str: ...


class VideoRecorder(Protocol):
    """Camera capture owned by one controller; never shared across threads."""

    @property
    def is_recording(self) -> bool: ...

    def start_recording(self, session_type: Any) -> None: ...
    def stop_recording(self) -> None: ...
    def stop_recording_and_save(self, session_id: str) -> str | None: ...


class SessionNotifier(Protocol):
    def session_completed(self, session_type: Any, duration_minutes: int) -> None: ...
