# src/pomodoro_tracker/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .ports import Clock, KeyValueRepo

if TYPE_CHECKING:
    from ..cleanup.cleanup_scheduler import CleanupScheduler
    from ..media.camera import CameraSettings
    from ..media.video_library import VideoLibrary
    from ..tasks.task_controller import TaskController
    from ..theme.theme import ThemeController
    from ..timer.session_recorder import SessionRecorder
    from ..timer.timer_controller import TimerController


@dataclass
class AppState:
    """
    Composition root container.

    Everything is wired by cli/bootstrap.py; connectors and commands only read
    from here. All members are touched from the event-loop thread only.
    """

    settings: Any
    store: KeyValueRepo
    clock: Clock

    timer: TimerController
    recorder: SessionRecorder
    tasks: TaskController
    cleanup: CleanupScheduler
    theme: ThemeController
    videos: VideoLibrary
    camera_settings: CameraSettings
