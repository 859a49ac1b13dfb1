# src/pomodoro_tracker/cleanup/cleanup_scheduler.py

from __future__ import annotations

"""
Cleanup scheduler.

A small polling loop, independent of the timer, that:
- checks whether today's cleanup window is open,
- invokes the injected cleanup action with days_to_keep,
- stamps last_cleanup_date on success (persisted immediately).

A failed cleanup leaves last_cleanup_date untouched, so the next poll inside
the same one-hour window retries. Once the window closes, retrying resumes the
next day.
"""

import asyncio
import logging
from datetime import datetime, timedelta

from ..core.clock import date_string
from ..core.errors import PomodoroError, ValidationError
from ..core.ports import CleanupAction, Clock, KeyValueRepo
from .cleanup_models import CleanupScheduleSettings

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 600.0


class CleanupScheduler:
    def __init__(
        self,
        store: KeyValueRepo,
        clock: Clock,
        action: CleanupAction,
        *,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        settings: CleanupScheduleSettings | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._action = action
        self._poll_interval = max(0.01, float(poll_interval_seconds))

        self.settings = settings if settings is not None else CleanupScheduleSettings.load(store)
        self.last_check: datetime | None = None
        self.last_result: str | None = None
        self.last_error: str | None = None

        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Spawn the polling task on the running loop. No-op if already running."""
        if self.is_running:
            return False
        self._task = asyncio.get_running_loop().create_task(self._run_loop(), name="cleanup-scheduler")
        logger.info(
            "Cleanup scheduler started (hour=%s, keep=%s days, enabled=%s)",
            self.settings.cleanup_hour,
            self.settings.days_to_keep,
            self.settings.auto_cleanup_enabled,
        )
        return True

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("Cleanup scheduler stopped")

    async def _run_loop(self) -> None:
        """To stop the loop, call stop() (cancels the task)."""
        while True:
            try:
                await self.run_pending()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("cleanup poll failed")
            await asyncio.sleep(self._poll_interval)

    # ---- schedule gate ----

    def should_run_cleanup(self) -> bool:
        s = self.settings
        if not s.auto_cleanup_enabled:
            return False

        now = self._clock.now()
        if s.last_cleanup_date == date_string(now):
            return False

        return s.cleanup_hour <= now.hour < s.cleanup_hour + 1

    async def run_pending(self) -> bool:
        """One poll iteration. Returns True when a cleanup ran successfully."""
        ran = False
        if self.should_run_cleanup():
            logger.info("Running scheduled video cleanup")
            ran = await self._perform_cleanup()
        self.last_check = self._clock.now()
        return ran

    async def force_cleanup_now(self) -> bool:
        """Run cleanup regardless of the schedule; still stamps last_cleanup_date."""
        logger.info("Forcing video cleanup")
        return await self._perform_cleanup()

    async def _perform_cleanup(self) -> bool:
        days = self.settings.days_to_keep
        try:
            result = await self._action.cleanup_old_videos(days)
        except Exception as e:
            self.last_error = f"Cleanup failed: {e}"
            logger.exception("Video cleanup failed (days_to_keep=%s)", days)
            return False

        self.last_result = result
        self.last_error = None
        logger.info("Cleanup completed: %s", result)

        self.settings.last_cleanup_date = self._clock.today()
        try:
            self.settings.save(self._store)
        except PomodoroError:
            logger.exception("Failed to persist last cleanup date")
        return True

    def get_next_cleanup_time(self) -> str | None:
        s = self.settings
        if not s.auto_cleanup_enabled:
            return None

        now = self._clock.now()
        today = date_string(now)
        tomorrow = date_string(now + timedelta(days=1))

        if s.last_cleanup_date == today or now.hour >= s.cleanup_hour:
            next_date = tomorrow
        else:
            next_date = today

        return f"{next_date} at {s.cleanup_hour:02d}:00"

    # ---- settings ----

    def update_settings(self, new_settings: CleanupScheduleSettings) -> bool:
        """Validate and persist; prior settings stay in effect on rejection."""
        try:
            new_settings.validate()
            new_settings.save(self._store)
        except ValidationError as e:
            self.last_error = "; ".join(e.errors)
            logger.info("Cleanup settings rejected: %s", self.last_error)
            return False
        except PomodoroError as e:
            self.last_error = f"Failed to save cleanup settings: {e}"
            logger.exception("Failed to save cleanup settings")
            return False

        self.settings = new_settings
        self.last_error = None
        logger.info(
            "Cleanup settings updated (hour=%s, keep=%s days, enabled=%s)",
            new_settings.cleanup_hour,
            new_settings.days_to_keep,
            new_settings.auto_cleanup_enabled,
        )
        return True
