# src/pomodoro_tracker/core/errors.py

"""
Error taxonomy shared by the store and the controllers.

"Not found" is deliberately absent: deletes return bool and lookups return None.
"""

from __future__ import annotations

from typing import Any


class PomodoroError(Exception):
    """Base exception for all pomodoro_tracker errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class StoreUnavailableError(PomodoroError):
    """Raised when the underlying storage cannot be read or written."""


class ValidationError(PomodoroError):
    """Raised when input or settings are rejected before any mutation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message, {"errors": errors} if errors else None)
        self.errors = list(errors or [message])


class SerializationError(PomodoroError):
    """Raised when a persisted document cannot be decoded or encoded."""
