# src/pomodoro_tracker/cleanup/cleanup_models.py

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from ..core.errors import ValidationError
from ..core.ports import KeyValueRepo
from ..storage.kv_store import CLEANUP_SETTINGS_KEY

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CleanupScheduleSettings:
    auto_cleanup_enabled: bool = True
    days_to_keep: int = 3
    last_cleanup_date: str | None = None  # YYYY-MM-DD
    cleanup_hour: int = 2  # 0-23

    def validate(self) -> None:
        errors: list[str] = []
        if not 0 <= self.cleanup_hour <= 23:
            errors.append("Cleanup hour must be between 0-23")
        if self.days_to_keep < 1:
            errors.append("Days to keep must be at least 1")
        if errors:
            raise ValidationError("Invalid cleanup schedule", errors)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CleanupScheduleSettings:
        last = data.get("last_cleanup_date")
        return cls(
            auto_cleanup_enabled=bool(data.get("auto_cleanup_enabled", True)),
            days_to_keep=int(data.get("days_to_keep", 3)),
            last_cleanup_date=None if last is None else str(last),
            cleanup_hour=int(data.get("cleanup_hour", 2)),
        )

    @classmethod
    def load(cls, store: KeyValueRepo) -> CleanupScheduleSettings:
        raw = store.load_object(CLEANUP_SETTINGS_KEY)
        if raw is None:
            return cls()
        try:
            settings = cls.from_dict(raw)
            settings.validate()
        except (TypeError, ValueError, ValidationError):
            logger.warning("Stored cleanup schedule rejected; using defaults.", exc_info=True)
            return cls()
        return settings

    def save(self, store: KeyValueRepo) -> None:
        store.set(CLEANUP_SETTINGS_KEY, self.to_dict())
