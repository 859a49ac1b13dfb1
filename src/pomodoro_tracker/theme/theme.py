# src/pomodoro_tracker/theme/theme.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..core.errors import PomodoroError
from ..core.ports import Clock, KeyValueRepo
from ..storage.kv_store import THEME_SETTINGS_KEY
from ..timer.timer_models import SessionType

logger = logging.getLogger(__name__)

# Night hours for auto dark mode: [18:00, 06:00)
DARK_FROM_HOUR = 18
DARK_UNTIL_HOUR = 6


class ThemeType(StrEnum):
    CLASSIC = "classic"
    NORDIC = "nordic"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def description(self) -> str:
        if self is ThemeType.NORDIC:
            return "Cool Scandinavian-inspired palette"
        return "Traditional Pomodoro colors"

    @property
    def is_dark(self) -> bool:
        return self is ThemeType.NORDIC

    def session_color(self, session_type: SessionType) -> str:
        return _PALETTES[self][session_type]

    @classmethod
    def parse(cls, raw: str) -> ThemeType:
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            raise ValueError(f"unknown theme {raw!r} (expected: {', '.join(t.value for t in cls)})") from None


_PALETTES: dict[ThemeType, dict[SessionType, str]] = {
    ThemeType.CLASSIC: {
        SessionType.WORK: "#EF4444",
        SessionType.SHORT_BREAK: "#22C55E",
        SessionType.LONG_BREAK: "#3B82F6",
    },
    ThemeType.NORDIC: {
        SessionType.WORK: "#5E81AC",
        SessionType.SHORT_BREAK: "#88C0D0",
        SessionType.LONG_BREAK: "#81A1C1",
    },
}


@dataclass(slots=True)
class ThemeSettings:
    current_theme: ThemeType = ThemeType.CLASSIC
    auto_dark_mode: bool = False
    system_theme_sync: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_theme": self.current_theme.value,
            "auto_dark_mode": self.auto_dark_mode,
            "system_theme_sync": self.system_theme_sync,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ThemeSettings:
        return cls(
            current_theme=ThemeType.parse(str(data.get("current_theme") or "classic")),
            auto_dark_mode=bool(data.get("auto_dark_mode", False)),
            system_theme_sync=bool(data.get("system_theme_sync", False)),
        )

    @classmethod
    def load(cls, store: KeyValueRepo) -> ThemeSettings:
        raw = store.load_object(THEME_SETTINGS_KEY)
        if raw is None:
            return cls()
        try:
            return cls.from_dict(raw)
        except ValueError:
            logger.warning("Stored theme settings rejected; using defaults.")
            return cls()

    def save(self, store: KeyValueRepo) -> None:
        store.set(THEME_SETTINGS_KEY, self.to_dict())


class ThemeController:
    def __init__(self, store: KeyValueRepo, clock: Clock, settings: ThemeSettings | None = None) -> None:
        self._store = store
        self._clock = clock
        self.settings = settings if settings is not None else ThemeSettings.load(store)
        self.last_error: str | None = None

    @property
    def current_theme(self) -> ThemeType:
        return self.settings.current_theme

    def session_color(self, session_type: SessionType) -> str:
        return self.settings.current_theme.session_color(session_type)

    def _persist(self) -> bool:
        try:
            self.settings.save(self._store)
        except PomodoroError as e:
            self.last_error = f"Failed to save theme settings: {e}"
            logger.exception("Failed to save theme settings")
            return False
        self.last_error = None
        return True

    def set_theme(self, theme: ThemeType) -> bool:
        self.settings.current_theme = theme
        logger.info("Theme changed to: %s", theme.value)
        return self._persist()

    def toggle_auto_dark_mode(self) -> bool:
        self.settings.auto_dark_mode = not self.settings.auto_dark_mode
        logger.info("Auto dark mode: %s", self.settings.auto_dark_mode)
        ok = self._persist()
        self.apply_auto_dark_mode()
        return ok

    def apply_auto_dark_mode(self) -> ThemeType:
        """Switch to Nordic at night and back to Classic by day, when enabled."""
        if not self.settings.auto_dark_mode:
            return self.current_theme

        hour = self._clock.now().hour
        should_be_dark = hour >= DARK_FROM_HOUR or hour < DARK_UNTIL_HOUR
        if should_be_dark and self.current_theme is not ThemeType.NORDIC:
            self.set_theme(ThemeType.NORDIC)
        elif not should_be_dark and self.current_theme is ThemeType.NORDIC:
            self.set_theme(ThemeType.CLASSIC)
        return self.current_theme
