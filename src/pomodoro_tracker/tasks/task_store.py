# src/pomodoro_tracker/tasks/task_store.py

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable, Iterable
from typing import Any

from ..core.errors import ValidationError
from ..core.ports import Clock, KeyValueRepo
from ..storage.kv_store import SUBTASKS_KEY, TASKS_KEY
from .task_models import DEFAULT_TASK_COLOR, SubTask, Task, TaskProgress, TaskStats

logger = logging.getLogger(__name__)

POMODORO_SECONDS = 1500


def pomodoro_units(seconds: int) -> int:
    """Pomodoro-equivalents for `seconds` of focus, rounded up (1s -> 1, 1501s -> 2)."""
    if seconds <= 0:
        return 0
    return math.ceil(seconds / POMODORO_SECONDS)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def _next_order_index(records: Iterable[dict[str, Any]]) -> int:
    indexes = [int(r.get("order_index") or 0) for r in records]
    return max(indexes) + 1 if indexes else 0


def _clean_name(name: str) -> str:
    if not name or not name.strip():
        raise ValidationError("name is required")
    return name.strip()


def _clean_estimate(estimated_pomodoros: int | None) -> int | None:
    if estimated_pomodoros is None:
        return None
    if int(estimated_pomodoros) < 0:
        raise ValidationError("estimated_pomodoros must be >= 0")
    return int(estimated_pomodoros)


def completion_percentage(task: Task, subtasks: list[SubTask]) -> float:
    """
    100 * completed / total over the task's subtasks.

    The task's own flag only counts when it has no subtasks (0.0 or 100.0).
    """
    if not subtasks:
        return 100.0 if task.completed else 0.0
    done = sum(1 for st in subtasks if st.completed)
    return 100.0 * done / len(subtasks)


def _group_subtasks(subtasks: list[SubTask]) -> dict[str, list[SubTask]]:
    out: dict[str, list[SubTask]] = {}
    for st in subtasks:
        out.setdefault(st.task_id, []).append(st)
    return out


def progress_summary(tasks: list[Task], subtasks: list[SubTask]) -> list[TaskProgress]:
    by_task = _group_subtasks(subtasks)
    out: list[TaskProgress] = []
    for task in tasks:
        own = by_task.get(task.id, [])
        out.append(
            TaskProgress(
                task=task,
                completion_percentage=completion_percentage(task, own),
                completed_subtasks=sum(1 for st in own if st.completed),
                total_subtasks=len(own),
            )
        )
    return out


def compute_task_stats(tasks: list[Task], subtasks: list[SubTask]) -> list[TaskStats]:
    """Aggregate focus time and pomodoros across each task and its subtasks."""
    by_task = _group_subtasks(subtasks)
    out: list[TaskStats] = []
    for task in tasks:
        own = by_task.get(task.id, [])
        total_pomodoros = task.actual_pomodoros + sum(st.actual_pomodoros for st in own)
        estimated_vs_actual = (
            (task.estimated_pomodoros, total_pomodoros)
            if task.estimated_pomodoros is not None
            else None
        )
        out.append(
            TaskStats(
                task_id=task.id,
                task_name=task.name,
                total_focus_time_s=task.total_focus_time_s + sum(st.total_focus_time_s for st in own),
                total_pomodoros=total_pomodoros,
                completion_percentage=completion_percentage(task, own),
                completed_subtasks=sum(1 for st in own if st.completed),
                total_subtasks=len(own),
                estimated_vs_actual=estimated_vs_actual,
            )
        )
    return out


class TaskRepository:
    """
    Task/subtask persistence on top of the document store.

    Each mutation is one store.update() per collection: read the full
    collection, change it in memory, write the full collection back.
    """

    def __init__(self, store: KeyValueRepo, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    # ---- reads ----

    def list_tasks(self) -> list[Task]:
        out: list[Task] = []
        for raw in self._store.load_list(TASKS_KEY):
            try:
                out.append(Task.from_dict(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed task record: %r", raw)
        out.sort(key=lambda t: t.order_index)
        return out

    def list_subtasks(self, task_id: str | None = None) -> list[SubTask]:
        out: list[SubTask] = []
        for raw in self._store.load_list(SUBTASKS_KEY):
            try:
                st = SubTask.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed subtask record: %r", raw)
                continue
            if task_id is None or st.task_id == task_id:
                out.append(st)
        out.sort(key=lambda st: (st.task_id, st.order_index))
        return out

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self.list_tasks() if t.id == task_id), None)

    def get_subtask(self, subtask_id: str) -> SubTask | None:
        return next((st for st in self.list_subtasks() if st.id == subtask_id), None)

    # ---- creation ----

    def create_task(
        self,
        name: str,
        description: str | None = None,
        color: str = DEFAULT_TASK_COLOR,
        estimated_pomodoros: int | None = None,
    ) -> Task:
        clean = _clean_name(name)
        estimate = _clean_estimate(estimated_pomodoros)
        created: list[Task] = []

        def mutate(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
            task = Task(
                id=_new_id("task"),
                name=clean,
                description=(description or None),
                color=color or DEFAULT_TASK_COLOR,
                created_at=self._clock.now_iso(),
                order_index=_next_order_index(records),
                estimated_pomodoros=estimate,
            )
            created.append(task)
            return [*records, task.to_dict()]

        self._store.update(TASKS_KEY, mutate, default=[])
        logger.info("Task created id=%s name=%s", created[0].id, clean)
        return created[0]

    def create_subtask(
        self,
        task_id: str,
        name: str,
        description: str | None = None,
        estimated_pomodoros: int | None = None,
    ) -> SubTask:
        clean = _clean_name(name)
        estimate = _clean_estimate(estimated_pomodoros)
        created: list[SubTask] = []

        def mutate(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
            siblings = [r for r in records if r.get("task_id") == task_id]
            subtask = SubTask(
                id=_new_id("subtask"),
                task_id=task_id,
                name=clean,
                description=(description or None),
                created_at=self._clock.now_iso(),
                order_index=_next_order_index(siblings),
                estimated_pomodoros=estimate,
            )
            created.append(subtask)
            return [*records, subtask.to_dict()]

        # Parent check and insert form one step against delete_task's cascade.
        with self._store.writer_lock:
            if self.get_task(task_id) is None:
                raise ValidationError(f"Task '{task_id}' does not exist")
            self._store.update(SUBTASKS_KEY, mutate, default=[])
        logger.info("Subtask created id=%s task_id=%s name=%s", created[0].id, task_id, clean)
        return created[0]

    # ---- updates ----

    def _patch(self, key: str, record_id: str, change: Callable[[dict[str, Any]], None]) -> bool:
        found = False

        def mutate(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
            nonlocal found
            out = []
            for r in records:
                if r.get("id") == record_id:
                    r = dict(r)
                    change(r)
                    found = True
                out.append(r)
            return out

        self._store.update(key, mutate, default=[])
        return found

    def update_task(self, task: Task) -> bool:
        _clean_name(task.name)

        def change(r: dict[str, Any]) -> None:
            r.update(task.to_dict())

        return self._patch(TASKS_KEY, task.id, change)

    def update_subtask(self, subtask: SubTask) -> bool:
        _clean_name(subtask.name)

        def change(r: dict[str, Any]) -> None:
            r.update(subtask.to_dict())

        return self._patch(SUBTASKS_KEY, subtask.id, change)

    def toggle_task_completion(self, task_id: str) -> bool:
        def change(r: dict[str, Any]) -> None:
            r["completed"] = not bool(r.get("completed", False))

        ok = self._patch(TASKS_KEY, task_id, change)
        logger.debug("Task completion toggled id=%s found=%s", task_id, ok)
        return ok

    def toggle_subtask_completion(self, subtask_id: str) -> bool:
        def change(r: dict[str, Any]) -> None:
            r["completed"] = not bool(r.get("completed", False))

        ok = self._patch(SUBTASKS_KEY, subtask_id, change)
        logger.debug("Subtask completion toggled id=%s found=%s", subtask_id, ok)
        return ok

    def add_focus_time(self, *, task_id: str | None, subtask_id: str | None, seconds: int) -> bool:
        """
        Attribute focus seconds to the subtask (if given) or else the task.

        Returns False when nothing matched or seconds <= 0.
        """
        if seconds <= 0:
            return False
        units = pomodoro_units(seconds)

        def change(r: dict[str, Any]) -> None:
            r["total_focus_time_s"] = int(r.get("total_focus_time_s") or 0) + int(seconds)
            r["actual_pomodoros"] = int(r.get("actual_pomodoros") or 0) + units

        if subtask_id:
            ok = self._patch(SUBTASKS_KEY, subtask_id, change)
            target = f"subtask:{subtask_id}"
        elif task_id:
            ok = self._patch(TASKS_KEY, task_id, change)
            target = f"task:{task_id}"
        else:
            return False

        if ok:
            logger.info("Focus time added target=%s seconds=%s pomodoros=+%s", target, seconds, units)
        else:
            logger.warning("Focus time target not found target=%s", target)
        return ok

    def replace_focus_totals(
        self,
        task_totals: dict[str, tuple[int, int]],
        subtask_totals: dict[str, tuple[int, int]],
    ) -> None:
        """Overwrite (focus_seconds, pomodoros) for every record; missing ids get zero."""

        def apply(totals: dict[str, tuple[int, int]]) -> Callable[[list[dict[str, Any]]], list[dict[str, Any]]]:
            def mutate(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
                out = []
                for r in records:
                    seconds, units = totals.get(str(r.get("id")), (0, 0))
                    out.append({**r, "total_focus_time_s": seconds, "actual_pomodoros": units})
                return out

            return mutate

        self._store.update(TASKS_KEY, apply(task_totals), default=[])
        self._store.update(SUBTASKS_KEY, apply(subtask_totals), default=[])

    # ---- deletion ----

    def delete_task(self, task_id: str) -> bool:
        """
        Delete a task and all of its subtasks.

        Returns False (not an error) when the task does not exist.
        """
        with self._store.writer_lock:
            if self.get_task(task_id) is None:
                logger.info("Task not found for deletion: %s", task_id)
                return False

            removed_subtasks = 0

            def drop_subtasks(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
                nonlocal removed_subtasks
                kept = [r for r in records if r.get("task_id") != task_id]
                removed_subtasks = len(records) - len(kept)
                return kept

            def drop_task(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
                return [r for r in records if r.get("id") != task_id]

            # Subtasks first so a failed second write cannot leave orphaned subtasks.
            self._store.update(SUBTASKS_KEY, drop_subtasks, default=[])
            self._store.update(TASKS_KEY, drop_task, default=[])

        logger.info("Task deleted id=%s subtasks=%s", task_id, removed_subtasks)
        return True

    def delete_subtask(self, subtask_id: str) -> bool:
        deleted = False

        def mutate(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
            nonlocal deleted
            kept = [r for r in records if r.get("id") != subtask_id]
            deleted = len(kept) != len(records)
            return kept

        self._store.update(SUBTASKS_KEY, mutate, default=[])
        if deleted:
            logger.info("Subtask deleted id=%s", subtask_id)
        else:
            logger.info("Subtask not found for deletion: %s", subtask_id)
        return deleted

