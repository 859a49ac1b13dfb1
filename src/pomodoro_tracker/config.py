# src/pomodoro_tracker/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Core controllers never read it: the composition root passes values in.
- Legacy module-level constants are exported for scripts.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "POMODORO"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path
    videos_dir: Path

    # ---- Timing ----
    tick_interval_seconds: float
    auto_start_delay_seconds: float
    cleanup_poll_seconds: float
    cleanup_scheduler_enabled: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "pomodoro") or "pomodoro"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pomodoro"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "store.sqlite3")
        videos_dir = _env_path(_k("VIDEOS_DIR"), data_dir / "videos")

        tick_interval_seconds = _env_float(_k("TICK_INTERVAL_SECONDS"), 1.0)
        auto_start_delay_seconds = _env_float(_k("AUTO_START_DELAY_SECONDS"), 1.0)
        cleanup_poll_seconds = float(_env_int(_k("CLEANUP_POLL_SECONDS"), 600))
        cleanup_scheduler_enabled = _env_bool(_k("CLEANUP_SCHEDULER_ENABLED"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            store_db_path=store_db_path,
            videos_dir=videos_dir,
            tick_interval_seconds=tick_interval_seconds,
            auto_start_delay_seconds=auto_start_delay_seconds,
            cleanup_poll_seconds=cleanup_poll_seconds,
            cleanup_scheduler_enabled=cleanup_scheduler_enabled,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS


# --------------------------------------------------------------------------------------
# Module-level constants.
# --------------------------------------------------------------------------------------

APP_NAME = SETTINGS.app_name
LOG_LEVEL = SETTINGS.log_level

CONSOLE_ENABLED = SETTINGS.console_enabled

DATA_DIR = SETTINGS.data_dir
STORE_DB_PATH = SETTINGS.store_db_path
VIDEOS_DIR = SETTINGS.videos_dir

TICK_INTERVAL_SECONDS = SETTINGS.tick_interval_seconds
AUTO_START_DELAY_SECONDS = SETTINGS.auto_start_delay_seconds
CLEANUP_POLL_SECONDS = SETTINGS.cleanup_poll_seconds
CLEANUP_SCHEDULER_ENABLED = SETTINGS.cleanup_scheduler_enabled
