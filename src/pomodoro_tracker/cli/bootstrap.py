# src/pomodoro_tracker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store, clock, scheduler,
  timer, tasks, cleanup, theme, videos).
"""

from __future__ import annotations

import asyncio
import logging

from ..cleanup.cleanup_scheduler import CleanupScheduler
from ..config import get_settings
from ..core.clock import SystemClock
from ..core.ports import Clock, IntervalScheduler, SessionNotifier
from ..core.state import AppState
from ..media.camera import CameraSettings
from ..media.video_library import VideoLibrary
from ..runtime.loop_runner import AsyncioIntervalScheduler
from ..storage.kv_store import KeyValueStore
from ..tasks.task_controller import TaskController
from ..tasks.task_store import TaskRepository
from ..theme.theme import ThemeController
from ..timer.session_recorder import SessionRecorder
from ..timer.timer_controller import TimerController

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.videos_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    loop: asyncio.AbstractEventLoop | None = None,
    scheduler: IntervalScheduler | None = None,
    clock: Clock | None = None,
    notifier: SessionNotifier | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Either `loop` (for the asyncio-backed scheduler) or an explicit `scheduler`
    must be given. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()
    if scheduler is None:
        if loop is None:
            raise ValueError("create_initial_state needs a loop or a scheduler")
        scheduler = AsyncioIntervalScheduler(loop)
    clock = clock or SystemClock()

    _ensure_local_dirs(settings)

    store = KeyValueStore(settings.store_db_path)
    repo = TaskRepository(store, clock)
    tasks = TaskController(repo)
    recorder = SessionRecorder(store, clock, repo)
    videos = VideoLibrary(settings.videos_dir, clock)
    camera_settings = CameraSettings.load(store)

    timer = TimerController(
        store,
        clock,
        scheduler,
        recorder,
        task_selection=tasks.get_current_selection,
        camera_settings=camera_settings,
        notifier=notifier,
        tick_interval_seconds=settings.tick_interval_seconds,
        auto_start_delay_seconds=settings.auto_start_delay_seconds,
    )

    cleanup = CleanupScheduler(
        store,
        clock,
        videos,
        poll_interval_seconds=settings.cleanup_poll_seconds,
    )

    theme = ThemeController(store, clock)
    theme.apply_auto_dark_mode()

    logger.info("State ready (store=%s, videos=%s)", settings.store_db_path, settings.videos_dir)

    return AppState(
        settings=settings,
        store=store,
        clock=clock,
        timer=timer,
        recorder=recorder,
        tasks=tasks,
        cleanup=cleanup,
        theme=theme,
        videos=videos,
        camera_settings=camera_settings,
    )
