# tests/test_timer_controller.py

from __future__ import annotations

import dataclasses

import pytest

from pomodoro_tracker.core.errors import StoreUnavailableError
from pomodoro_tracker.media.camera import CameraSettings
from pomodoro_tracker.timer.timer_controller import TimerController
from pomodoro_tracker.timer.timer_models import SessionType, TimerSettings, TimerState

from .fakes import FakeNotifier, FakeScheduler, FakeVideoRecorder


def run_to_completion(timer: TimerController, scheduler: FakeScheduler) -> None:
    if timer.timer_state is not TimerState.RUNNING:
        assert timer.start()
    scheduler.tick(timer.time_remaining)


def test_countdown_never_increases_while_running(timer, scheduler) -> None:
    assert timer.start()
    seen = [timer.time_remaining]
    for _ in range(30):
        scheduler.tick()
        seen.append(timer.time_remaining)

    assert seen == sorted(seen, reverse=True)
    assert timer.time_remaining == 30
    assert timer.formatted_time == "00:30"
    assert timer.progress_percentage == 50.0


def test_reaching_zero_completes_exactly_once(timer, scheduler, recorder, notifier) -> None:
    run_to_completion(timer, scheduler)
    # Extra ticks after completion must not record anything else.
    scheduler.tick(5)

    sessions = recorder.list_sessions()
    assert len(sessions) == 1
    assert sessions[0].session_type is SessionType.WORK
    assert sessions[0].actual_duration_s == 60
    assert sessions[0].planned_duration_s == 60
    assert notifier.completed == [(SessionType.WORK, 1)]

    assert timer.timer_state is TimerState.STOPPED
    assert timer.session_type is SessionType.SHORT_BREAK
    assert timer.time_remaining == 60
    assert timer.current_cycle_work_sessions == 1
    assert timer.completed_work_sessions == 1
    assert not timer.is_ticking


def test_break_sequence_prefers_long_break(timer, scheduler) -> None:
    observed = []
    for _ in range(8):
        assert timer.session_type is SessionType.WORK
        run_to_completion(timer, scheduler)
        observed.append(timer.session_type)
        run_to_completion(timer, scheduler)  # the break itself

    S, L = SessionType.SHORT_BREAK, SessionType.LONG_BREAK
    assert observed == [S, S, S, L, S, S, S, L]


def test_breaks_always_return_to_work(timer, scheduler) -> None:
    for forced in (SessionType.SHORT_BREAK, SessionType.LONG_BREAK):
        assert timer.set_session_type(forced)
        run_to_completion(timer, scheduler)
        assert timer.session_type is SessionType.WORK
    assert timer.current_cycle_work_sessions == 0


def test_pause_freezes_and_resume_continues(timer, scheduler) -> None:
    timer.start()
    scheduler.tick(5)
    assert timer.pause()
    scheduler.tick(5)

    assert timer.timer_state is TimerState.PAUSED
    assert timer.time_remaining == 55
    assert not timer.is_ticking
    assert timer.pause() is False

    assert timer.start()
    scheduler.tick(5)
    assert timer.time_remaining == 50


def test_stop_cancels_tick_before_reset(timer, scheduler) -> None:
    timer.start()
    scheduler.tick(3)
    timer.stop()

    assert scheduler.repeating == {}
    assert timer.timer_state is TimerState.STOPPED
    assert timer.time_remaining == 60
    assert timer.session_start_time is None

    scheduler.tick(10)
    assert timer.time_remaining == 60


def test_start_while_running_is_rejected(timer, scheduler) -> None:
    assert timer.start()
    assert timer.start() is False
    assert len(scheduler.repeating) == 1


def test_session_type_changes_only_while_stopped(timer, scheduler) -> None:
    timer.start()
    assert timer.set_session_type(SessionType.LONG_BREAK) is False
    assert timer.session_type is SessionType.WORK

    timer.stop()
    assert timer.set_session_type(SessionType.LONG_BREAK)
    assert timer.time_remaining == 120


def test_manual_completion_records_partial_time(timer, scheduler, recorder) -> None:
    timer.start()
    scheduler.tick(30)
    session_id = timer.complete_session()

    assert session_id is not None
    (session,) = recorder.list_sessions()
    assert session.id == session_id
    assert session.actual_duration_s == 30
    assert timer.complete_session() is None


def test_auto_start_break_after_delay(store, clock, scheduler, recorder, fast_settings) -> None:
    settings = dataclasses.replace(fast_settings, auto_start_breaks=True)
    timer = TimerController(store, clock, scheduler, recorder, settings=settings, auto_start_delay_seconds=1.0)

    run_to_completion(timer, scheduler)
    assert timer.timer_state is TimerState.STOPPED
    assert [delay for _, delay in scheduler.delayed.values()] == [1.0]

    scheduler.run_delayed()
    assert timer.timer_state is TimerState.RUNNING
    assert timer.session_type is SessionType.SHORT_BREAK

    # auto_start_work is off: the following work session waits for the user.
    scheduler.tick(timer.time_remaining)
    assert timer.session_type is SessionType.WORK
    assert scheduler.delayed == {}


def test_stop_cancels_pending_auto_start(store, clock, scheduler, recorder, fast_settings) -> None:
    settings = dataclasses.replace(fast_settings, auto_start_breaks=True)
    timer = TimerController(store, clock, scheduler, recorder, settings=settings)

    run_to_completion(timer, scheduler)
    timer.stop()
    scheduler.run_delayed()

    assert timer.timer_state is TimerState.STOPPED


def test_work_time_is_attributed_to_selected_task(store, clock, scheduler, recorder, repo, fast_settings) -> None:
    task = repo.create_task("Write report")
    timer = TimerController(
        store, clock, scheduler, recorder, settings=fast_settings, task_selection=lambda: (task.id, None)
    )

    run_to_completion(timer, scheduler)  # work: attributed
    run_to_completion(timer, scheduler)  # break: never attributed

    updated = repo.get_task(task.id)
    assert updated.total_focus_time_s == 60
    assert updated.actual_pomodoros == 1
    assert [s.task_id for s in recorder.list_sessions()] == [task.id, task.id]


def test_recording_failure_does_not_block_transition(store, clock, scheduler, fast_settings) -> None:
    class BrokenRecorder:
        def record_completion(self, *args, **kwargs):
            raise StoreUnavailableError("disk full")

        def get_session_stats(self):
            raise StoreUnavailableError("disk full")

    timer = TimerController(store, clock, scheduler, BrokenRecorder(), settings=fast_settings)
    run_to_completion(timer, scheduler)

    assert timer.session_type is SessionType.SHORT_BREAK
    assert timer.timer_state is TimerState.STOPPED
    assert "disk full" in (timer.last_error or "")


def test_notifier_failure_is_swallowed(store, clock, scheduler, recorder, fast_settings) -> None:
    notifier = FakeNotifier(fail=True)
    timer = TimerController(store, clock, scheduler, recorder, settings=fast_settings, notifier=notifier)

    run_to_completion(timer, scheduler)
    assert len(recorder.list_sessions()) == 1


def test_camera_recording_attaches_video_path(store, clock, scheduler, recorder, fast_settings) -> None:
    video = FakeVideoRecorder()
    camera = CameraSettings(enabled=True, only_during_breaks=True)
    timer = TimerController(
        store, clock, scheduler, recorder, settings=fast_settings, video_recorder=video, camera_settings=camera
    )

    run_to_completion(timer, scheduler)  # work: not recorded
    assert video.started == []

    run_to_completion(timer, scheduler)  # short break: recorded
    assert video.started == [SessionType.SHORT_BREAK]

    latest = recorder.list_sessions(limit=1)[0]
    assert latest.session_type is SessionType.SHORT_BREAK
    assert latest.video_path == f"/videos/session_{latest.id}.webm"


def test_settings_update_is_validated_and_persisted(timer, store) -> None:
    before = timer.timer_settings
    bad = TimerSettings(sessions_before_short_break=4, sessions_before_long_break=4)

    assert timer.update_timer_settings(bad) is False
    assert "greater than short break interval" in (timer.last_error or "")
    assert timer.timer_settings is before

    good = TimerSettings(work_duration_minutes=50)
    assert timer.update_timer_settings(good)
    assert timer.last_error is None
    assert timer.time_remaining == 50 * 60
    assert TimerSettings.load(store) == good


def test_next_session_info(timer, scheduler) -> None:
    assert timer.get_next_session_info() == (SessionType.SHORT_BREAK, "Short break after 1 work session(s)")

    for _ in range(3):
        run_to_completion(timer, scheduler)
        run_to_completion(timer, scheduler)
    assert timer.get_next_session_info() == (SessionType.LONG_BREAK, "Long break after 4 work sessions!")

    timer.set_session_type(SessionType.SHORT_BREAK)
    assert timer.get_next_session_info() == (SessionType.WORK, "Back to work!")


def test_settings_change_mid_session_applies_to_next_session(timer, scheduler, recorder, fast_settings) -> None:
    assert timer.start()
    scheduler.tick(10)

    assert timer.update_timer_settings(dataclasses.replace(fast_settings, work_duration_minutes=5))
    assert timer.time_remaining == 50
    assert timer.progress_percentage == pytest.approx(100 * 10 / 60)

    timer.complete_session()
    (session,) = recorder.list_sessions()
    assert (session.planned_duration_s, session.actual_duration_s) == (60, 10)

    # Back on Work the new duration is in effect.
    timer.set_session_type(SessionType.WORK)
    assert timer.time_remaining == 300
    assert timer.start()
    assert timer.planned_duration_s == 300


def test_shorter_settings_mid_session_keep_elapsed_time(timer, scheduler, recorder, fast_settings) -> None:
    timer.update_timer_settings(dataclasses.replace(fast_settings, work_duration_minutes=3))
    assert timer.start()
    scheduler.tick(100)
    timer.pause()

    assert timer.update_timer_settings(fast_settings)
    timer.complete_session()

    (session,) = recorder.list_sessions()
    assert (session.planned_duration_s, session.actual_duration_s) == (180, 100)
