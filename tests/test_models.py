# tests/test_models.py

from __future__ import annotations

import pytest

from pomodoro_tracker.core.errors import PomodoroError, ValidationError
from pomodoro_tracker.storage.kv_store import TIMER_SETTINGS_KEY
from pomodoro_tracker.timer.timer_models import SessionType, TimerSettings, next_session_type
from pomodoro_tracker.utils.time_format import (
    calculate_progress_percentage,
    format_duration_hours_minutes,
    format_time,
)


def test_default_timer_settings_are_valid() -> None:
    s = TimerSettings()
    s.validate()
    assert (s.work_duration_minutes, s.short_break_duration_minutes, s.long_break_duration_minutes) == (25, 5, 15)
    assert (s.sessions_before_short_break, s.sessions_before_long_break) == (1, 4)


def test_validation_lists_every_problem() -> None:
    bad = TimerSettings(work_duration_minutes=0, short_break_duration_minutes=61, sessions_before_short_break=0)
    with pytest.raises(ValidationError) as exc:
        bad.validate()
    assert len(exc.value.errors) == 3
    assert isinstance(exc.value, PomodoroError)


def test_timer_settings_load_falls_back_to_defaults(store) -> None:
    assert TimerSettings.load(store) == TimerSettings()

    store.set(TIMER_SETTINGS_KEY, {"work_duration_minutes": 0})
    assert TimerSettings.load(store) == TimerSettings()

    store.set(TIMER_SETTINGS_KEY, {"work_duration_minutes": "many"})
    assert TimerSettings.load(store) == TimerSettings()

    TimerSettings(work_duration_minutes=45, auto_start_work=True).save(store)
    loaded = TimerSettings.load(store)
    assert loaded.work_duration_minutes == 45
    assert loaded.auto_start_work is True


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Work", SessionType.WORK),
        ("short", SessionType.SHORT_BREAK),
        ("ShortBreak", SessionType.SHORT_BREAK),
        ("long-break", SessionType.LONG_BREAK),
        ("L", SessionType.LONG_BREAK),
    ],
)
def test_session_type_parse(raw: str, expected: SessionType) -> None:
    assert SessionType.parse(raw) is expected


def test_next_session_type_with_custom_intervals() -> None:
    s = TimerSettings(sessions_before_short_break=2, sessions_before_long_break=6)
    got = [next_session_type(SessionType.WORK, n, s) for n in range(1, 7)]
    W, S, L = SessionType.WORK, SessionType.SHORT_BREAK, SessionType.LONG_BREAK
    assert got == [W, S, W, S, W, L]
    assert next_session_type(SessionType.LONG_BREAK, 6, s) is W


def test_time_format_helpers() -> None:
    assert format_time(0) == "00:00"
    assert format_time(25 * 60) == "25:00"
    assert format_time(61) == "01:01"
    assert format_time(-5) == "00:00"

    assert format_duration_hours_minutes(59) == "0m"
    assert format_duration_hours_minutes(25 * 60) == "25m"
    assert format_duration_hours_minutes(3 * 3600 + 20 * 60) == "3h 20m"

    assert calculate_progress_percentage(1500, 1500) == 0.0
    assert calculate_progress_percentage(750, 1500) == 50.0
    assert calculate_progress_percentage(0, 1500) == 100.0
    assert calculate_progress_percentage(10, 0) == 0.0
