# src/pomodoro_tracker/utils/time_format.py

from __future__ import annotations


def format_time(total_seconds: int) -> str:
    """MM:SS (minutes are not wrapped into hours)."""
    total_seconds = max(0, int(total_seconds))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_duration_hours_minutes(total_seconds: int) -> str:
    total_seconds = max(0, int(total_seconds))
    hours, rem = divmod(total_seconds, 3600)
    minutes = rem // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def calculate_progress_percentage(time_remaining: int, total_duration: int) -> float:
    if total_duration <= 0:
        return 0.0
    elapsed = max(0, total_duration - time_remaining)
    return min(100.0, 100.0 * elapsed / total_duration)
