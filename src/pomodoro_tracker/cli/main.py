# src/pomodoro_tracker/cli/main.py

"""
CLI entrypoint.

Initializes logging, starts the background event loop, builds AppState on it,
then runs the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier, run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..runtime.loop_runner import BackgroundLoop

logger = logging.getLogger(__name__)


def _on_loop_start(state: AppState) -> None:
    if state.settings.cleanup_scheduler_enabled:
        state.cleanup.start()
    else:
        logger.info("Cleanup scheduler disabled via settings.")


def _on_loop_stop(state: AppState) -> None:
    """Runs on the loop thread right before it exits."""
    state.cleanup.stop()
    state.timer.stop()


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    runner = BackgroundLoop()
    state = create_initial_state(settings=settings, loop=runner.loop, notifier=ConsoleNotifier())
    runner.start(on_start=lambda: _on_loop_start(state), on_stop=lambda: _on_loop_stop(state))

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)
    except (ValueError, OSError):
        logger.debug("Signal handlers not installed.", exc_info=True)

    try:
        if settings.console_enabled:
            run_console_loop(state, runner.call)
            stop_main.set()
        else:
            logger.info("Console disabled. Running background loop only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        runner.stop()
        runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
