# src/pomodoro_tracker/timer/timer_models.py

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from enum import StrEnum
from typing import Any

from ..core.errors import ValidationError
from ..core.ports import KeyValueRepo
from ..storage.kv_store import TIMER_SETTINGS_KEY

logger = logging.getLogger(__name__)


class TimerState(StrEnum):
    STOPPED = "Stopped"
    RUNNING = "Running"
    PAUSED = "Paused"


class SessionType(StrEnum):
    WORK = "Work"
    SHORT_BREAK = "ShortBreak"
    LONG_BREAK = "LongBreak"

    @property
    def display_name(self) -> str:
        return {
            SessionType.WORK: "Work",
            SessionType.SHORT_BREAK: "Short Break",
            SessionType.LONG_BREAK: "Long Break",
        }[self]

    @property
    def is_break(self) -> bool:
        return self is not SessionType.WORK

    def duration_minutes(self, settings: TimerSettings) -> int:
        if self is SessionType.WORK:
            return settings.work_duration_minutes
        if self is SessionType.SHORT_BREAK:
            return settings.short_break_duration_minutes
        return settings.long_break_duration_minutes

    def duration_seconds(self, settings: TimerSettings) -> int:
        return self.duration_minutes(settings) * 60

    @classmethod
    def parse(cls, raw: str) -> SessionType:
        """Accept stored values ("ShortBreak") and loose user input ("short", "long")."""
        s = (raw or "").strip().lower().replace("_", "").replace(" ", "").replace("-", "")
        aliases = {
            "work": cls.WORK,
            "w": cls.WORK,
            "shortbreak": cls.SHORT_BREAK,
            "short": cls.SHORT_BREAK,
            "s": cls.SHORT_BREAK,
            "longbreak": cls.LONG_BREAK,
            "long": cls.LONG_BREAK,
            "l": cls.LONG_BREAK,
        }
        try:
            return aliases[s]
        except KeyError:
            raise ValueError(f"Unknown session type: {raw!r}") from None


@dataclass(slots=True)
class TimerSettings:
    work_duration_minutes: int = 25
    short_break_duration_minutes: int = 5
    long_break_duration_minutes: int = 15
    sessions_before_short_break: int = 1
    sessions_before_long_break: int = 4
    auto_start_breaks: bool = False
    auto_start_work: bool = False

    def validate(self) -> None:
        """Raise ValidationError listing every violated rule."""
        errors: list[str] = []
        if not 1 <= self.work_duration_minutes <= 120:
            errors.append("Work duration must be between 1-120 minutes")
        if not 1 <= self.short_break_duration_minutes <= 60:
            errors.append("Short break must be between 1-60 minutes")
        if not 1 <= self.long_break_duration_minutes <= 120:
            errors.append("Long break must be between 1-120 minutes")
        if not 1 <= self.sessions_before_short_break <= 10:
            errors.append("Sessions before short break must be between 1-10")
        if not 1 <= self.sessions_before_long_break <= 20:
            errors.append("Sessions before long break must be between 1-20")
        if self.sessions_before_long_break <= self.sessions_before_short_break:
            errors.append("Long break interval must be greater than short break interval")
        if errors:
            raise ValidationError("Invalid timer settings", errors)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerSettings:
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for name, value in data.items():
            if name not in known:
                continue
            if name.startswith("auto_start"):
                values[name] = bool(value)
            else:
                values[name] = int(value)
        return cls(**values)

    @classmethod
    def load(cls, store: KeyValueRepo) -> TimerSettings:
        """Persisted settings, or defaults on absence/corruption/invalid values."""
        raw = store.load_object(TIMER_SETTINGS_KEY)
        if raw is None:
            logger.info("Using default timer settings")
            return cls()
        try:
            settings = cls.from_dict(raw)
            settings.validate()
        except (TypeError, ValueError, ValidationError):
            logger.warning("Stored timer settings rejected; using defaults.", exc_info=True)
            return cls()
        logger.info("Timer settings loaded")
        return settings

    def save(self, store: KeyValueRepo) -> None:
        store.set(TIMER_SETTINGS_KEY, self.to_dict())


def next_session_type(
    current: SessionType, completed_work_sessions: int, settings: TimerSettings
) -> SessionType:
    """
    Session type that follows `current`.

    For Work, `completed_work_sessions` must already include the session that
    just finished. Long break wins on common multiples of both intervals.
    """
    if current is not SessionType.WORK:
        return SessionType.WORK

    n = completed_work_sessions
    if n > 0 and n % settings.sessions_before_long_break == 0:
        return SessionType.LONG_BREAK
    if n > 0 and n % settings.sessions_before_short_break == 0:
        return SessionType.SHORT_BREAK
    return SessionType.WORK


@dataclass(frozen=True, slots=True)
class Session:
    id: str
    session_type: SessionType
    planned_duration_s: int
    actual_duration_s: int
    start_time: str
    end_time: str
    completed: bool
    created_at: str
    video_path: str | None = None
    task_id: str | None = None
    subtask_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "session_type": self.session_type.value,
            "planned_duration_s": self.planned_duration_s,
            "actual_duration_s": self.actual_duration_s,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "completed": self.completed,
            "created_at": self.created_at,
            "video_path": self.video_path,
            "task_id": self.task_id,
            "subtask_id": self.subtask_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        return cls(
            id=str(data["id"]),
            session_type=SessionType(data["session_type"]),
            planned_duration_s=int(data.get("planned_duration_s") or 0),
            actual_duration_s=int(data.get("actual_duration_s") or 0),
            start_time=str(data.get("start_time") or ""),
            end_time=str(data.get("end_time") or ""),
            completed=bool(data.get("completed", False)),
            created_at=str(data.get("created_at") or ""),
            video_path=data.get("video_path"),
            task_id=data.get("task_id"),
            subtask_id=data.get("subtask_id"),
        )


@dataclass(frozen=True, slots=True)
class SessionStats:
    total_sessions: int
    completed_sessions: int
    work_sessions: int
    short_break_sessions: int
    long_break_sessions: int
    total_focus_time_s: int
    average_session_duration_s: float
    completion_rate: float

    @classmethod
    def from_sessions(cls, sessions: list[Session]) -> SessionStats:
        total = len(sessions)
        completed = sum(1 for s in sessions if s.completed)
        work = [s for s in sessions if s.session_type is SessionType.WORK]
        short = sum(1 for s in sessions if s.session_type is SessionType.SHORT_BREAK)
        long_ = sum(1 for s in sessions if s.session_type is SessionType.LONG_BREAK)
        durations = sum(s.actual_duration_s for s in sessions)
        return cls(
            total_sessions=total,
            completed_sessions=completed,
            work_sessions=len(work),
            short_break_sessions=short,
            long_break_sessions=long_,
            total_focus_time_s=sum(s.actual_duration_s for s in work),
            average_session_duration_s=(durations / total) if total else 0.0,
            completion_rate=(100.0 * completed / total) if total else 0.0,
        )
