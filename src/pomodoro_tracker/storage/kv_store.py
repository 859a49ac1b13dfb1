# src/pomodoro_tracker/storage/kv_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..core.errors import SerializationError, StoreUnavailableError

logger = logging.getLogger(__name__)

SESSIONS_KEY = "sessions"
TASKS_KEY = "tasks"
SUBTASKS_KEY = "subtasks"
TIMER_SETTINGS_KEY = "timer-settings"
THEME_SETTINGS_KEY = "theme-settings"
CLEANUP_SETTINGS_KEY = "cleanup-schedule-settings"
CAMERA_SETTINGS_KEY = "camera-settings"


class KeyValueStore:
    """
    SQLite-backed key -> JSON document store.

    Every key holds one whole document (a JSON array of records or a settings
    object). Writers never touch part of a document: they read it, change it in
    memory and write it back in a single statement.

    Concurrency:
    - each method opens its own SQLite connection
    - update() runs read-modify-write under a single-writer lock, so two
      mutations of the same collection cannot interleave and lose an update
    """

    def __init__(self, db_path: str | Path = "pomodoro.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._lock = threading.RLock()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_schema()
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailableError(
                "Cannot open document store", {"db": str(self._db_path), "error": str(e)}
            ) from e
        logger.info("KeyValueStore ready db=%s keys=%s", self._db_path, len(self.keys()))

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def writer_lock(self) -> threading.RLock:
        """Held by update(); take it to make several updates one logical write."""
        return self._lock

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _read_raw(self, key: str) -> str | None:
        try:
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT value FROM documents WHERE key = ?", (key,)).fetchone()
                return None if row is None else str(row["value"])
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to read '{key}'", {"error": str(e)}) from e

    def _write_raw(self, key: str, raw: str) -> None:
        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO documents(key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, raw, time.time()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to write '{key}'", {"error": str(e)}) from e

    @staticmethod
    def _decode(key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except ValueError as e:
            raise SerializationError(f"Corrupted document '{key}'", {"error": str(e)}) from e

    @staticmethod
    def _encode(key: str, value: Any) -> str:
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode document '{key}'", {"error": str(e)}) from e

    # ---- public API ----

    def get(self, key: str) -> Any | None:
        raw = self._read_raw(key)
        if raw is None:
            return None
        return self._decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        raw = self._encode(key, value)
        with self._lock:
            self._write_raw(key, raw)
        logger.debug("Document written key=%s bytes=%s", key, len(raw))

    def delete(self, key: str) -> bool:
        with self._lock:
            try:
                conn = self._get_conn()
                try:
                    cur = conn.execute("DELETE FROM documents WHERE key = ?", (key,))
                    conn.commit()
                    return cur.rowcount == 1
                finally:
                    conn.close()
            except sqlite3.Error as e:
                raise StoreUnavailableError(f"Failed to delete '{key}'", {"error": str(e)}) from e

    def keys(self) -> list[str]:
        try:
            conn = self._get_conn()
            try:
                rows = conn.execute("SELECT key FROM documents ORDER BY key").fetchall()
                return [str(r["key"]) for r in rows]
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreUnavailableError("Failed to list keys", {"error": str(e)}) from e

    def update(self, key: str, mutate: Callable[[Any], Any], default: Any = None) -> Any:
        """
        Read-modify-write of one document under the single-writer lock.

        `mutate` receives the current document (or `default` when the key is
        absent, corrupted, or not the same JSON container type as a list/dict
        `default`) and returns the document to store. If `mutate` raises,
        nothing is written.
        """
        with self._lock:
            try:
                current = self.get(key)
            except SerializationError:
                logger.warning("Corrupted document %s replaced on write.", key)
                current = None
            if (
                current is not None
                and isinstance(default, (list, dict))
                and not isinstance(current, type(default))
            ):
                logger.warning(
                    "Document %s is a %s, expected %s; replaced on write.",
                    key,
                    type(current).__name__,
                    type(default).__name__,
                )
                current = None
            if current is None:
                current = default
            new_value = mutate(current)
            self._write_raw(key, self._encode(key, new_value))
            return new_value

    def load_list(self, key: str) -> list[Any]:
        """Collection read that degrades to [] on corrupted or mistyped data."""
        try:
            value = self.get(key)
        except SerializationError:
            logger.warning("Corrupted collection %s; using empty list.", key, exc_info=True)
            return []
        if value is None:
            return []
        if not isinstance(value, list):
            logger.warning("Collection %s is not a JSON array; using empty list.", key)
            return []
        return value

    def load_object(self, key: str) -> dict[str, Any] | None:
        """Settings read that degrades to None on corrupted or mistyped data."""
        try:
            value = self.get(key)
        except SerializationError:
            logger.warning("Corrupted settings %s; using defaults.", key, exc_info=True)
            return None
        if value is not None and not isinstance(value, dict):
            logger.warning("Settings %s is not a JSON object; using defaults.", key)
            return None
        return value
