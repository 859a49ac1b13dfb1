# src/pomodoro_tracker/tasks/task_controller.py

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from ..core.errors import PomodoroError
from .task_models import DEFAULT_TASK_COLOR, SubTask, Task, TaskProgress, TaskStats
from .task_store import TaskRepository, compute_task_stats, progress_summary

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskController:
    """
    UI-facing task state: cached collections, selection, filter, last error.

    Every mutation goes through the repository and then reloads the caches, so
    progress and stats are always computed from fresh collections.
    """

    def __init__(self, repository: TaskRepository) -> None:
        self.repository = repository
        self.tasks: list[Task] = []
        self.subtasks: list[SubTask] = []
        self.selected_task: Task | None = None
        self.selected_subtask: SubTask | None = None
        self.show_completed = False
        self.error: str | None = None

        self.load_tasks()

    def _run(self, what: str, op: Callable[[], T]) -> T | None:
        self.error = None
        try:
            result = op()
        except PomodoroError as e:
            logger.info("Error %s: %s", what, e)
            self.error = e.message
            return None
        self.load_tasks()
        return result

    def load_tasks(self) -> bool:
        try:
            self.tasks = self.repository.list_tasks()
            self.subtasks = self.repository.list_subtasks()
        except PomodoroError as e:
            logger.exception("Error loading tasks")
            self.error = e.message
            return False
        self._refresh_selection()
        return True

    def _refresh_selection(self) -> None:
        if self.selected_task is not None:
            self.selected_task = next((t for t in self.tasks if t.id == self.selected_task.id), None)
            if self.selected_task is None:
                self.selected_subtask = None
        if self.selected_subtask is not None:
            self.selected_subtask = next(
                (st for st in self.subtasks if st.id == self.selected_subtask.id), None
            )

    # ---- mutations ----

    def create_task(
        self,
        name: str,
        description: str | None = None,
        color: str = DEFAULT_TASK_COLOR,
        estimated_pomodoros: int | None = None,
    ) -> Task | None:
        return self._run(
            "creating task",
            lambda: self.repository.create_task(name, description, color, estimated_pomodoros),
        )

    def create_subtask(
        self,
        task_id: str,
        name: str,
        description: str | None = None,
        estimated_pomodoros: int | None = None,
    ) -> SubTask | None:
        return self._run(
            "creating subtask",
            lambda: self.repository.create_subtask(task_id, name, description, estimated_pomodoros),
        )

    def update_task(self, task: Task) -> bool:
        return bool(self._run("updating task", lambda: self.repository.update_task(task)))

    def update_subtask(self, subtask: SubTask) -> bool:
        return bool(self._run("updating subtask", lambda: self.repository.update_subtask(subtask)))

    def toggle_task_completion(self, task_id: str) -> bool:
        return bool(self._run("toggling task", lambda: self.repository.toggle_task_completion(task_id)))

    def toggle_subtask_completion(self, subtask_id: str) -> bool:
        return bool(
            self._run("toggling subtask", lambda: self.repository.toggle_subtask_completion(subtask_id))
        )

    def delete_task(self, task_id: str) -> bool:
        # Selection is only cleared once the record is really gone.
        if not self._run("deleting task", lambda: self.repository.delete_task(task_id)):
            return False
        if self.selected_task is not None and self.selected_task.id == task_id:
            self.selected_task = None
            self.selected_subtask = None
        if self.selected_subtask is not None and self.selected_subtask.task_id == task_id:
            self.selected_subtask = None
        return True

    def delete_subtask(self, subtask_id: str) -> bool:
        if not self._run("deleting subtask", lambda: self.repository.delete_subtask(subtask_id)):
            return False
        if self.selected_subtask is not None and self.selected_subtask.id == subtask_id:
            self.selected_subtask = None
        return True

    # ---- selection ----

    def select_task(self, task: Task | None) -> None:
        self.selected_task = task
        self.selected_subtask = None
        logger.debug("Task selection changed: %s", task.id if task else None)

    def select_subtask(self, subtask: SubTask | None) -> None:
        self.selected_subtask = subtask
        if subtask is not None and (self.selected_task is None or self.selected_task.id != subtask.task_id):
            self.selected_task = self.get_task_by_id(subtask.task_id)
        logger.debug("Subtask selection changed: %s", subtask.id if subtask else None)

    def get_current_selection(self) -> tuple[str | None, str | None]:
        if self.selected_subtask is not None:
            return self.selected_subtask.task_id, self.selected_subtask.id
        if self.selected_task is not None:
            return self.selected_task.id, None
        return None, None

    def get_active_task_info(self) -> str | None:
        if self.selected_subtask is not None:
            parent = self.get_task_by_id(self.selected_subtask.task_id)
            if parent is not None:
                return f"{parent.name} → {self.selected_subtask.name}"
            return self.selected_subtask.name
        if self.selected_task is not None:
            return self.selected_task.name
        return None

    # ---- views ----

    def get_task_by_id(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def get_subtask_by_id(self, subtask_id: str) -> SubTask | None:
        return next((st for st in self.subtasks if st.id == subtask_id), None)

    def get_filtered_tasks(self) -> list[Task]:
        if self.show_completed:
            return list(self.tasks)
        return [t for t in self.tasks if not t.completed]

    def get_subtasks_for_task(self, task_id: str) -> list[SubTask]:
        own = [st for st in self.subtasks if st.task_id == task_id]
        if self.show_completed:
            return own
        return [st for st in own if not st.completed]

    def get_progress_summary(self) -> list[TaskProgress]:
        return progress_summary(self.tasks, self.subtasks)

    def get_stats(self) -> list[TaskStats]:
        """Stats always cover every task and subtask, whatever show_completed says."""
        return compute_task_stats(self.tasks, self.subtasks)
