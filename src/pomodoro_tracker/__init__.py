"""Pomodoro timer core: timer state machine, session log, task progress and video cleanup."""

__version__ = "0.1.0"
