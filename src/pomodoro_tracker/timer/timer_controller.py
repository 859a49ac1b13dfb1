# src/pomodoro_tracker/timer/timer_controller.py

"""
Timer state machine.

States: Stopped / Running / Paused, crossed with the session type
(Work / ShortBreak / LongBreak).

- start():  Stopped -> Running (fresh countdown), Paused -> Running (resume)
- pause():  Running -> Paused
- stop():   any -> Stopped (countdown reset to the full duration)
- tick:     Running only, -1 per second; reaching 0 completes the session once

On completion the session is recorded, the Work cycle counter advances and the
next session type is chosen (long break first, then short break, else work).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from ..core.clock import to_iso
from ..core.errors import PomodoroError, ValidationError
from ..core.ports import Clock, IntervalScheduler, KeyValueRepo, SessionNotifier, VideoRecorder
from ..media.camera import CameraSettings
from ..utils.time_format import calculate_progress_percentage, format_time
from .session_recorder import SessionRecorder, generate_session_id
from .timer_models import SessionStats, SessionType, TimerSettings, TimerState, next_session_type

logger = logging.getLogger(__name__)

TaskSelection = Callable[[], tuple[str | None, str | None]]


class TimerController:
    def __init__(
        self,
        store: KeyValueRepo,
        clock: Clock,
        scheduler: IntervalScheduler,
        recorder: SessionRecorder,
        *,
        settings: TimerSettings | None = None,
        task_selection: TaskSelection | None = None,
        video_recorder: VideoRecorder | None = None,
        camera_settings: CameraSettings | None = None,
        notifier: SessionNotifier | None = None,
        tick_interval_seconds: float = 1.0,
        auto_start_delay_seconds: float = 1.0,
    ) -> None:
        self._store = store
        self._clock = clock
        self._scheduler = scheduler
        self._recorder = recorder
        self._task_selection = task_selection
        self._video_recorder = video_recorder
        self._notifier = notifier
        self._tick_interval = max(0.001, float(tick_interval_seconds))
        self._auto_start_delay = max(0.0, float(auto_start_delay_seconds))

        self.timer_settings = settings if settings is not None else TimerSettings.load(store)
        self.camera_settings = camera_settings or CameraSettings()

        self.timer_state = TimerState.STOPPED
        self.session_type = SessionType.WORK
        self.time_remaining = self.session_type.duration_seconds(self.timer_settings)
        self.session_start_time: str | None = None
        self._planned_s: int | None = None
        self.current_session_id: str | None = None

        # Historical total (from the session log) vs. the cycle that drives breaks.
        self.completed_work_sessions = 0
        self.current_cycle_work_sessions = 0

        self.session_stats: SessionStats | None = None
        self.last_error: str | None = None

        self._tick_handle: Any = None
        self._auto_start_handle: Any = None
        self._completing = False

        self.load_session_stats()

    # ---- derived views ----

    @property
    def planned_duration_s(self) -> int:
        """Length of the active session as it was when started; settings edits apply to the next one."""
        if self._planned_s is not None:
            return self._planned_s
        return self.session_type.duration_seconds(self.timer_settings)

    @property
    def formatted_time(self) -> str:
        return format_time(self.time_remaining)

    @property
    def progress_percentage(self) -> float:
        return calculate_progress_percentage(self.time_remaining, self.planned_duration_s)

    @property
    def is_ticking(self) -> bool:
        return self._tick_handle is not None

    # ---- tick plumbing ----

    def _cancel_tick(self) -> None:
        handle, self._tick_handle = self._tick_handle, None
        if handle is not None:
            self._scheduler.cancel(handle)

    def _cancel_auto_start(self) -> None:
        handle, self._auto_start_handle = self._auto_start_handle, None
        if handle is not None:
            self._scheduler.cancel(handle)

    def _tick(self) -> None:
        if self.timer_state is not TimerState.RUNNING:
            self._cancel_tick()
            return

        if self.time_remaining > 0:
            self.time_remaining -= 1

        if self.time_remaining == 0:
            self.complete_session()

    # ---- state transitions ----

    def start(self) -> bool:
        if self.timer_state is TimerState.RUNNING:
            return False

        self._cancel_auto_start()

        if self.timer_state is TimerState.STOPPED:
            self._planned_s = self.session_type.duration_seconds(self.timer_settings)
            self.time_remaining = self._planned_s
            self.session_start_time = self._clock.now_iso()
            self.current_session_id = generate_session_id()
            self._maybe_start_recording()

        self.timer_state = TimerState.RUNNING
        self._tick_handle = self._scheduler.schedule(self._tick, self._tick_interval)
        logger.info("Timer started for %s session (%ss left)", self.session_type.value, self.time_remaining)
        return True

    def pause(self) -> bool:
        if self.timer_state is not TimerState.RUNNING:
            return False
        self._cancel_tick()
        self.timer_state = TimerState.PAUSED
        logger.info("Timer paused at %s", self.formatted_time)
        return True

    def stop(self) -> None:
        # Cancel before resetting so a pending tick cannot touch the reset value.
        self._cancel_tick()
        self._cancel_auto_start()
        self._stop_recording()

        self.timer_state = TimerState.STOPPED
        self._planned_s = None
        self.time_remaining = self.planned_duration_s
        self.session_start_time = None
        self.current_session_id = None
        logger.info("Timer stopped")

    def set_session_type(self, session_type: SessionType) -> bool:
        if self.timer_state is not TimerState.STOPPED:
            logger.debug("Session type change ignored while %s", self.timer_state.value)
            return False
        self.session_type = session_type
        self.time_remaining = self.planned_duration_s
        logger.info("Session type changed to: %s", session_type.value)
        return True

    def reset_work_sessions(self) -> None:
        self.current_cycle_work_sessions = 0
        logger.info("Work session cycle count reset")

    # ---- completion ----

    def complete_session(self) -> str | None:
        """
        Finish the current session, record it and switch to the next type.

        Runs when the countdown hits zero, or manually (Running/Paused) to
        count a partial session. Returns the recorded session id, or None when
        nothing was recorded.
        """
        if self._completing or self.timer_state is TimerState.STOPPED:
            return None

        self._completing = True
        try:
            self._cancel_tick()
            self.timer_state = TimerState.STOPPED

            session_type = self.session_type
            settings = self.timer_settings
            planned = self.planned_duration_s
            self._planned_s = None
            actual = max(0, planned - self.time_remaining)
            end_time = self._clock.now_iso()
            start_time = self.session_start_time or to_iso(self._clock.now() - timedelta(seconds=actual))
            session_id = self.current_session_id or generate_session_id()
            task_id, subtask_id = self._task_selection() if self._task_selection else (None, None)

            self._notify(session_type)

            if session_type is SessionType.WORK:
                self.current_cycle_work_sessions += 1
            next_type = next_session_type(session_type, self.current_cycle_work_sessions, settings)
            logger.info(
                "Session complete type=%s actual=%ss cycle_work=%s next=%s",
                session_type.value,
                actual,
                self.current_cycle_work_sessions,
                next_type.value,
            )

            video_path = self._finish_recording(session_id)

            recorded_id: str | None = None
            try:
                recorded_id = self._recorder.record_completion(
                    session_type,
                    planned,
                    actual,
                    start_time,
                    end_time,
                    task_id,
                    subtask_id,
                    video_path=video_path,
                    session_id=session_id,
                )
            except PomodoroError as e:
                logger.exception("Error saving session %s", session_id)
                self.last_error = f"Failed to save session: {e}"
            else:
                self.load_session_stats()

            self.session_type = next_type
            self.time_remaining = next_type.duration_seconds(settings)
            self.session_start_time = None
            self.current_session_id = None

            if self._should_auto_start(next_type):
                logger.info("Auto-starting %s in %ss", next_type.value, self._auto_start_delay)
                self._auto_start_handle = self._scheduler.call_later(self._auto_start_delay, self._auto_start)

            return recorded_id
        finally:
            self._completing = False

    def _should_auto_start(self, session_type: SessionType) -> bool:
        if session_type.is_break:
            return self.timer_settings.auto_start_breaks
        return self.timer_settings.auto_start_work

    def _auto_start(self) -> None:
        self._auto_start_handle = None
        if self.timer_state is TimerState.STOPPED:
            self.start()

    def get_next_session_info(self) -> tuple[SessionType, str]:
        """Predict the session that follows the current one."""
        n = self.current_cycle_work_sessions
        if self.session_type is SessionType.WORK:
            n += 1
        nxt = next_session_type(self.session_type, n, self.timer_settings)
        if nxt is SessionType.SHORT_BREAK:
            return nxt, f"Short break after {n} work session(s)"
        if nxt is SessionType.LONG_BREAK:
            return nxt, f"Long break after {n} work sessions!"
        return nxt, "Back to work!"

    # ---- settings / stats ----

    def update_timer_settings(self, new_settings: TimerSettings) -> bool:
        """Validate and persist; on rejection the previous settings stay in effect."""
        try:
            new_settings.validate()
            new_settings.save(self._store)
        except ValidationError as e:
            self.last_error = "; ".join(e.errors)
            logger.info("Timer settings rejected: %s", self.last_error)
            return False
        except PomodoroError as e:
            self.last_error = f"Failed to save timer settings: {e}"
            logger.exception("Failed to save timer settings")
            return False

        self.timer_settings = new_settings
        if self.timer_state is TimerState.STOPPED:
            self.time_remaining = self.planned_duration_s
        self.last_error = None
        logger.info("Timer settings updated")
        return True

    def load_session_stats(self) -> SessionStats | None:
        try:
            stats = self._recorder.get_session_stats()
        except PomodoroError:
            logger.exception("Error loading session stats")
            return None
        self.session_stats = stats
        self.completed_work_sessions = stats.work_sessions
        return stats

    # ---- collaborators (failures never block the timer) ----

    def _notify(self, session_type: SessionType) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.session_completed(session_type, session_type.duration_minutes(self.timer_settings))
        except Exception:
            logger.exception("Session notification failed")

    def _maybe_start_recording(self) -> None:
        rec = self._video_recorder
        if rec is None or not self.camera_settings.should_record(self.session_type):
            return
        try:
            rec.start_recording(self.session_type)
            logger.info("Camera recording started for %s session", self.session_type.value)
        except Exception:
            logger.exception("Failed to start camera recording")

    def _stop_recording(self) -> None:
        rec = self._video_recorder
        if rec is None or not rec.is_recording:
            return
        try:
            rec.stop_recording()
            logger.info("Camera recording stopped")
        except Exception:
            logger.exception("Failed to stop camera recording")

    def _finish_recording(self, session_id: str) -> str | None:
        rec = self._video_recorder
        if rec is None or not rec.is_recording:
            return None
        try:
            path = rec.stop_recording_and_save(session_id)
        except Exception:
            logger.exception("Failed to save video for session %s", session_id)
            return None
        logger.info("Video recording saved path=%s", path)
        return path
