# src/pomodoro_tracker/timer/session_recorder.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from ..core.errors import ValidationError
from ..core.ports import Clock, KeyValueRepo
from ..storage.kv_store import SESSIONS_KEY
from ..tasks.task_store import TaskRepository, pomodoro_units
from .timer_models import Session, SessionStats, SessionType

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    return f"session_{uuid.uuid4().hex}"


class SessionRecorder:
    """
    Append-only session log plus task focus-time attribution.

    The session record is written first and is the durable source of truth.
    If the task aggregate update fails afterwards the error propagates but the
    session stays recorded; reconcile_task_totals() can rebuild aggregates.
    """

    def __init__(self, store: KeyValueRepo, clock: Clock, tasks: TaskRepository) -> None:
        self._store = store
        self._clock = clock
        self._tasks = tasks

    def record_completion(
        self,
        session_type: SessionType,
        planned_duration_s: int,
        actual_duration_s: int,
        start_time: str,
        end_time: str,
        task_id: str | None = None,
        subtask_id: str | None = None,
        *,
        video_path: str | None = None,
        session_id: str | None = None,
    ) -> str:
        session = Session(
            id=session_id or generate_session_id(),
            session_type=session_type,
            planned_duration_s=int(planned_duration_s),
            actual_duration_s=max(0, int(actual_duration_s)),
            start_time=start_time,
            end_time=end_time,
            completed=True,
            created_at=self._clock.now_iso(),
            video_path=video_path,
            task_id=task_id,
            subtask_id=subtask_id,
        )

        def append(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
            if any(r.get("id") == session.id for r in records):
                raise ValidationError(f"Duplicate session id {session.id}")
            return [*records, session.to_dict()]

        self._store.update(SESSIONS_KEY, append, default=[])
        logger.info(
            "Session recorded id=%s type=%s actual=%ss task=%s subtask=%s",
            session.id,
            session_type.value,
            session.actual_duration_s,
            task_id,
            subtask_id,
        )

        if session_type is SessionType.WORK and (task_id or subtask_id) and session.actual_duration_s > 0:
            self._tasks.add_focus_time(
                task_id=task_id,
                subtask_id=subtask_id,
                seconds=session.actual_duration_s,
            )

        return session.id

    def list_sessions(
        self,
        limit: int | None = None,
        session_type: SessionType | None = None,
    ) -> list[Session]:
        """Newest first, optionally filtered by type."""
        out: list[Session] = []
        for raw in self._store.load_list(SESSIONS_KEY):
            try:
                s = Session.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed session record: %r", raw)
                continue
            if session_type is None or s.session_type is session_type:
                out.append(s)
        # Log order breaks created_at ties: later appends first.
        out.reverse()
        out.sort(key=lambda s: s.created_at, reverse=True)
        if limit is not None:
            out = out[: max(0, int(limit))]
        return out

    def delete_session(self, session_id: str) -> bool:
        deleted = False

        def mutate(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
            nonlocal deleted
            kept = [r for r in records if r.get("id") != session_id]
            deleted = len(kept) != len(records)
            return kept

        self._store.update(SESSIONS_KEY, mutate, default=[])
        if deleted:
            logger.info("Session deleted id=%s", session_id)
        return deleted

    def get_session_stats(self) -> SessionStats:
        return SessionStats.from_sessions(self.list_sessions())

    def reconcile_task_totals(self) -> int:
        """
        Rebuild every task/subtask focus total from the session log.

        Only attributions whose target still exists are counted (same subtask
        precedence as record_completion). Returns the number of Work sessions
        that contributed.
        """
        task_ids = {t.id for t in self._tasks.list_tasks()}
        subtask_ids = {st.id for st in self._tasks.list_subtasks()}
        task_totals: dict[str, tuple[int, int]] = {}
        subtask_totals: dict[str, tuple[int, int]] = {}
        counted = 0

        for s in self.list_sessions():
            if s.session_type is not SessionType.WORK or s.actual_duration_s <= 0:
                continue
            if s.subtask_id:
                if s.subtask_id not in subtask_ids:
                    continue
                bucket, key = subtask_totals, s.subtask_id
            elif s.task_id and s.task_id in task_ids:
                bucket, key = task_totals, s.task_id
            else:
                continue
            seconds, units = bucket.get(key, (0, 0))
            bucket[key] = (seconds + s.actual_duration_s, units + pomodoro_units(s.actual_duration_s))
            counted += 1

        self._tasks.replace_focus_totals(task_totals, subtask_totals)
        logger.info(
            "Task totals reconciled sessions=%s tasks=%s subtasks=%s",
            counted,
            len(task_totals),
            len(subtask_totals),
        )
        return counted
