# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from pomodoro_tracker.cli.bootstrap import create_initial_state
from pomodoro_tracker.core.state import AppState
from pomodoro_tracker.storage.kv_store import KeyValueStore
from pomodoro_tracker.tasks.task_store import TaskRepository
from pomodoro_tracker.timer.session_recorder import SessionRecorder
from pomodoro_tracker.timer.timer_controller import TimerController
from pomodoro_tracker.timer.timer_models import TimerSettings

from .fakes import FakeClock, FakeNotifier, FakeScheduler

START = datetime(2025, 1, 15, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(START)


@pytest.fixture()
def store(tmp_path: Path) -> KeyValueStore:
    return KeyValueStore(tmp_path / "store.sqlite3")


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def repo(store: KeyValueStore, clock: FakeClock) -> TaskRepository:
    return TaskRepository(store, clock)


@pytest.fixture()
def recorder(store: KeyValueStore, clock: FakeClock, repo: TaskRepository) -> SessionRecorder:
    return SessionRecorder(store, clock, repo)


@pytest.fixture()
def fast_settings() -> TimerSettings:
    """One-minute work/short sessions, two-minute long break, long break every 4th."""
    return TimerSettings(
        work_duration_minutes=1,
        short_break_duration_minutes=1,
        long_break_duration_minutes=2,
        sessions_before_short_break=1,
        sessions_before_long_break=4,
    )


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def timer(
    store: KeyValueStore,
    clock: FakeClock,
    scheduler: FakeScheduler,
    recorder: SessionRecorder,
    fast_settings: TimerSettings,
    notifier: FakeNotifier,
) -> TimerController:
    return TimerController(store, clock, scheduler, recorder, settings=fast_settings, notifier=notifier)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object for the composition root.

    A SimpleNamespace instead of the real config keeps tests isolated from the
    environment.
    """
    return SimpleNamespace(
        data_dir=tmp_path,
        store_db_path=tmp_path / "app.sqlite3",
        videos_dir=tmp_path / "videos",
        tick_interval_seconds=1.0,
        auto_start_delay_seconds=1.0,
        cleanup_poll_seconds=600.0,
        cleanup_scheduler_enabled=False,
    )


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock, scheduler: FakeScheduler) -> AppState:
    """AppState wired with real SQLite + filesystem and deterministic time."""
    return create_initial_state(settings=settings, scheduler=scheduler, clock=clock)
