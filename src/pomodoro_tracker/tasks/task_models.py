# src/pomodoro_tracker/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_TASK_COLOR = "#3B82F6"


def _opt_int(raw: Any) -> int | None:
    return None if raw is None else int(raw)


def _opt_str(raw: Any) -> str | None:
    return None if raw is None else str(raw)


@dataclass(slots=True)
class Task:
    id: str
    name: str
    color: str
    created_at: str
    order_index: int

    description: str | None = None
    completed: bool = False
    estimated_pomodoros: int | None = None
    actual_pomodoros: int = 0
    total_focus_time_s: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "created_at": self.created_at,
            "completed": self.completed,
            "estimated_pomodoros": self.estimated_pomodoros,
            "actual_pomodoros": self.actual_pomodoros,
            "total_focus_time_s": self.total_focus_time_s,
            "order_index": self.order_index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            description=_opt_str(data.get("description")),
            color=str(data.get("color") or DEFAULT_TASK_COLOR),
            created_at=str(data.get("created_at") or ""),
            completed=bool(data.get("completed", False)),
            estimated_pomodoros=_opt_int(data.get("estimated_pomodoros")),
            actual_pomodoros=int(data.get("actual_pomodoros") or 0),
            total_focus_time_s=int(data.get("total_focus_time_s") or 0),
            order_index=int(data.get("order_index") or 0),
        )


@dataclass(slots=True)
class SubTask:
    id: str
    task_id: str
    name: str
    created_at: str
    order_index: int

    description: str | None = None
    completed: bool = False
    estimated_pomodoros: int | None = None
    actual_pomodoros: int = 0
    total_focus_time_s: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
            "completed": self.completed,
            "estimated_pomodoros": self.estimated_pomodoros,
            "actual_pomodoros": self.actual_pomodoros,
            "total_focus_time_s": self.total_focus_time_s,
            "order_index": self.order_index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubTask:
        return cls(
            id=str(data["id"]),
            task_id=str(data["task_id"]),
            name=str(data.get("name") or ""),
            description=_opt_str(data.get("description")),
            created_at=str(data.get("created_at") or ""),
            completed=bool(data.get("completed", False)),
            estimated_pomodoros=_opt_int(data.get("estimated_pomodoros")),
            actual_pomodoros=int(data.get("actual_pomodoros") or 0),
            total_focus_time_s=int(data.get("total_focus_time_s") or 0),
            order_index=int(data.get("order_index") or 0),
        )


@dataclass(frozen=True, slots=True)
class TaskProgress:
    task: Task
    completion_percentage: float
    completed_subtasks: int
    total_subtasks: int


@dataclass(frozen=True, slots=True)
class TaskStats:
    """Derived per-task aggregate. Never persisted."""

    task_id: str
    task_name: str
    total_focus_time_s: int
    total_pomodoros: int
    completion_percentage: float
    completed_subtasks: int
    total_subtasks: int
    # (estimated, actual); None when the task has no estimate
    estimated_vs_actual: tuple[int, int] | None
