# tests/test_session_recorder.py

from __future__ import annotations

import pytest

from pomodoro_tracker.core.errors import ValidationError
from pomodoro_tracker.tasks.task_store import pomodoro_units
from pomodoro_tracker.timer.timer_models import Session, SessionType

START = "2025-01-15T09:00:00.000+00:00"
END = "2025-01-15T09:25:00.000+00:00"


def _work(recorder, actual: int, task_id=None, subtask_id=None) -> str:
    return recorder.record_completion(SessionType.WORK, 1500, actual, START, END, task_id, subtask_id)


@pytest.mark.parametrize(("seconds", "units"), [(0, 0), (1, 1), (1500, 1), (1501, 2), (3000, 2), (3001, 3)])
def test_pomodoro_units_round_up(seconds: int, units: int) -> None:
    assert pomodoro_units(seconds) == units


def test_partial_session_counts_as_a_whole_pomodoro(recorder, repo) -> None:
    task = repo.create_task("Inbox zero")
    _work(recorder, 1, task_id=task.id)
    _work(recorder, 1501, task_id=task.id)

    updated = repo.get_task(task.id)
    assert updated.total_focus_time_s == 1502
    assert updated.actual_pomodoros == 3


def test_subtask_takes_precedence_over_task(recorder, repo) -> None:
    task = repo.create_task("Thesis")
    sub = repo.create_subtask(task.id, "Chapter 1")

    _work(recorder, 1500, task_id=task.id, subtask_id=sub.id)

    assert repo.get_task(task.id).total_focus_time_s == 0
    assert repo.get_subtask(sub.id).total_focus_time_s == 1500
    assert repo.get_subtask(sub.id).actual_pomodoros == 1


def test_breaks_and_empty_sessions_are_not_attributed(recorder, repo) -> None:
    task = repo.create_task("Thesis")
    recorder.record_completion(SessionType.SHORT_BREAK, 300, 300, START, END, task.id)
    _work(recorder, 0, task_id=task.id)

    assert repo.get_task(task.id).total_focus_time_s == 0
    assert len(recorder.list_sessions()) == 2


def test_unknown_target_still_records_session(recorder, repo) -> None:
    session_id = _work(recorder, 600, task_id="task_missing")
    assert [s.id for s in recorder.list_sessions()] == [session_id]


def test_ids_are_unique_and_duplicates_rejected(recorder) -> None:
    ids = {_work(recorder, 60) for _ in range(20)}
    assert len(ids) == 20

    with pytest.raises(ValidationError):
        recorder.record_completion(SessionType.WORK, 60, 60, START, END, session_id=next(iter(ids)))
    assert len(recorder.list_sessions()) == 20


def test_list_sessions_newest_first_with_filter_and_limit(recorder, clock) -> None:
    first = _work(recorder, 60)
    clock.advance(minutes=5)
    brk = recorder.record_completion(SessionType.SHORT_BREAK, 300, 300, START, END)
    clock.advance(minutes=5)
    last = _work(recorder, 60)

    assert [s.id for s in recorder.list_sessions()] == [last, brk, first]
    assert [s.id for s in recorder.list_sessions(limit=2)] == [last, brk]
    assert [s.id for s in recorder.list_sessions(session_type=SessionType.WORK)] == [last, first]


def test_delete_session(recorder) -> None:
    sid = _work(recorder, 60)
    assert recorder.delete_session(sid) is True
    assert recorder.delete_session(sid) is False
    assert recorder.list_sessions() == []


def test_session_stats(recorder) -> None:
    _work(recorder, 1500)
    _work(recorder, 900)
    recorder.record_completion(SessionType.LONG_BREAK, 900, 600, START, END)

    stats = recorder.get_session_stats()
    assert stats.total_sessions == 3
    assert stats.work_sessions == 2
    assert stats.long_break_sessions == 1
    assert stats.short_break_sessions == 0
    assert stats.total_focus_time_s == 2400
    assert stats.average_session_duration_s == pytest.approx(1000.0)
    assert stats.completion_rate == 100.0


def test_reconcile_rebuilds_task_totals_from_log(recorder, repo) -> None:
    task = repo.create_task("Thesis")
    sub = repo.create_subtask(task.id, "Chapter 1")
    _work(recorder, 1500, task_id=task.id)
    _work(recorder, 100, task_id=task.id, subtask_id=sub.id)
    _work(recorder, 100, task_id="task_deleted")

    # Simulate a lost aggregate update.
    repo.replace_focus_totals({}, {})
    assert repo.get_task(task.id).total_focus_time_s == 0

    assert recorder.reconcile_task_totals() == 2
    assert repo.get_task(task.id).total_focus_time_s == 1500
    assert repo.get_task(task.id).actual_pomodoros == 1
    assert repo.get_subtask(sub.id).total_focus_time_s == 100
    assert repo.get_subtask(sub.id).actual_pomodoros == 1


def test_sessions_round_trip_through_the_store(recorder, clock) -> None:
    bare_id = recorder.record_completion(SessionType.WORK, 1500, 1500, START, END)
    full_id = recorder.record_completion(
        SessionType.SHORT_BREAK,
        300,
        120,
        START,
        END,
        "task_1",
        "subtask_1",
        video_path="/videos/session_x.webm",
        session_id="session_fixed",
    )
    created_at = clock.now_iso()

    expected = {
        bare_id: Session(bare_id, SessionType.WORK, 1500, 1500, START, END, True, created_at),
        full_id: Session(
            "session_fixed",
            SessionType.SHORT_BREAK,
            300,
            120,
            START,
            END,
            True,
            created_at,
            video_path="/videos/session_x.webm",
            task_id="task_1",
            subtask_id="subtask_1",
        ),
    }
    assert {s.id: s for s in recorder.list_sessions()} == expected
