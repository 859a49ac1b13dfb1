# src/pomodoro_tracker/media/camera.py

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from ..core.errors import ValidationError
from ..core.ports import KeyValueRepo
from ..storage.kv_store import CAMERA_SETTINGS_KEY
from ..timer.timer_models import SessionType

logger = logging.getLogger(__name__)

VIDEO_QUALITIES = ("low", "medium", "high")


@dataclass(slots=True)
class CameraSettings:
    enabled: bool = False
    only_during_breaks: bool = True
    video_quality: str = "medium"

    def should_record(self, session_type: SessionType) -> bool:
        if not self.enabled:
            return False
        if self.only_during_breaks:
            return session_type.is_break
        return True

    def validate(self) -> None:
        if self.video_quality not in VIDEO_QUALITIES:
            raise ValidationError(
                f"video_quality must be one of {', '.join(VIDEO_QUALITIES)}",
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CameraSettings:
        return cls(
            enabled=bool(data.get("enabled", False)),
            only_during_breaks=bool(data.get("only_during_breaks", True)),
            video_quality=str(data.get("video_quality") or "medium"),
        )

    @classmethod
    def load(cls, store: KeyValueRepo) -> CameraSettings:
        raw = store.load_object(CAMERA_SETTINGS_KEY)
        if raw is None:
            return cls()
        settings = cls.from_dict(raw)
        try:
            settings.validate()
        except ValidationError:
            logger.warning("Stored camera settings rejected; using defaults.")
            return cls()
        return settings

    def save(self, store: KeyValueRepo) -> None:
        self.validate()
        store.set(CAMERA_SETTINGS_KEY, self.to_dict())


def video_filename(session_id: str, timestamp_ms: int) -> str:
    return f"session_{session_id}_{timestamp_ms}.webm"
