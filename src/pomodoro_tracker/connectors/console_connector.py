# src/pomodoro_tracker/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..timer.timer_models import SessionType

logger = logging.getLogger(__name__)

# Runs fn(*args) on the core thread and returns its result.
Dispatcher = Callable[..., Any]


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except OSError:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def completion_message(session_type: SessionType, duration_minutes: int) -> str:
    if session_type is SessionType.WORK:
        return f"Work session completed! ({duration_minutes}m) Time for a break!"
    if session_type is SessionType.SHORT_BREAK:
        return f"Short break completed! ({duration_minutes}m) Back to work!"
    return f"Long break completed! ({duration_minutes}m) Ready for focused work!"


class ConsoleNotifier:
    """SessionNotifier that prints completions (with a terminal bell) to stdout."""

    def __init__(self, bell: bool = True) -> None:
        self._bell = bell

    def session_completed(self, session_type: SessionType, duration_minutes: int) -> None:
        bell = "\a" if self._bell else ""
        print(f"\n{bell}[{_ts_local()}] [TIMER] {completion_message(session_type, duration_minutes)}", flush=True)


def run_console_loop(state: AppState, dispatch: Dispatcher) -> None:
    """
    Blocking REPL on the main thread.

    Every command is handed to `dispatch`, which runs it on the event-loop
    thread that owns the timer and stores.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type /help for commands, /start to begin a session. Use /exit to quit.\n")

    while True:
        try:
            user_input = input(">>> ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            _print_ts("Commands start with '/'. Use /help to list them.")
            continue

        try:
            cmd_response = dispatch(command_registry.handle, state, user_input, _print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            _print_ts(cmd_response)

    logger.info("Console connector finished.")
