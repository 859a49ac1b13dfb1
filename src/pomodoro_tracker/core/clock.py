# src/pomodoro_tracker/core/clock.py

from __future__ import annotations

from datetime import datetime


def date_string(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d")


def to_iso(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds")


class SystemClock:
    """Wall clock in local time (timezone-aware)."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def now_iso(self) -> str:
        return to_iso(self.now())

    def today(self) -> str:
        return date_string(self.now())
