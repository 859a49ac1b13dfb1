# src/pomodoro_tracker/media/video_library.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from ..core.errors import StoreUnavailableError
from ..core.ports import Clock

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86_400


@dataclass(slots=True, frozen=True)
class StorageInfo:
    file_count: int
    total_bytes: int


class VideoLibrary:
    """
    Filesystem side of session recordings: save, list, age-based cleanup.

    Implements the CleanupAction port used by the cleanup scheduler.
    """

    def __init__(self, videos_dir: str | Path, clock: Clock) -> None:
        self._dir = Path(videos_dir)
        self._clock = clock

    @property
    def videos_dir(self) -> Path:
        return self._dir

    def _ensure_dir(self) -> Path:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(
                "Failed to create videos directory",
                {"path": str(self._dir), "error": str(e)},
            ) from e
        return self._dir

    def _files(self) -> list[Path]:
        if not self._dir.is_dir():
            return []
        return sorted(p for p in self._dir.iterdir() if p.is_file())

    def save_video_file(self, filename: str, data: bytes) -> str:
        name = Path(filename).name
        if not name:
            raise ValueError("filename is required")

        path = self._ensure_dir() / name
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StoreUnavailableError(
                "Failed to write video file",
                {"path": str(path), "error": str(e)},
            ) from e

        logger.info("Video saved path=%s bytes=%s", path, len(data))
        return str(path)

    def list_video_files(self) -> list[str]:
        return [p.name for p in self._files()]

    def storage_info(self) -> StorageInfo:
        total = 0
        files = self._files()
        for p in files:
            try:
                total += p.stat().st_size
            except OSError:
                logger.debug("stat failed for %s", p)
        return StorageInfo(file_count=len(files), total_bytes=total)

    async def cleanup_old_videos(self, days_old: int) -> str:
        days = max(1, int(days_old))
        cutoff = self._clock.now().timestamp() - days * _SECONDS_PER_DAY
        deleted, freed = await asyncio.to_thread(self._delete_older_than, cutoff)
        summary = f"Deleted {deleted} video file(s) older than {days} day(s), freed {freed} bytes"
        logger.info(summary)
        return summary

    def _delete_older_than(self, cutoff_ts: float) -> tuple[int, int]:
        deleted = 0
        freed = 0
        for p in self._files():
            try:
                st = p.stat()
                if st.st_mtime >= cutoff_ts:
                    continue
                p.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise StoreUnavailableError(
                    "Failed to delete old video",
                    {"path": str(p), "error": str(e)},
                ) from e
            deleted += 1
            freed += st.st_size
            logger.debug("Deleted old video %s", p.name)
        return deleted, freed
