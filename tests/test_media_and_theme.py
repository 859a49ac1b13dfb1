# tests/test_media_and_theme.py

from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest

from pomodoro_tracker.core.errors import ValidationError
from pomodoro_tracker.media.camera import CameraSettings, video_filename
from pomodoro_tracker.media.video_library import VideoLibrary
from pomodoro_tracker.storage.kv_store import CAMERA_SETTINGS_KEY
from pomodoro_tracker.theme.theme import ThemeController, ThemeSettings, ThemeType
from pomodoro_tracker.timer.timer_models import SessionType

from .fakes import FakeClock


# ---- video library ----


def test_save_and_list_videos(tmp_path, clock) -> None:
    lib = VideoLibrary(tmp_path / "videos", clock)
    assert lib.list_video_files() == []

    path = lib.save_video_file(video_filename("abc", 1700000000000), b"\x1a\x45\xdf\xa3")
    assert path == str(tmp_path / "videos" / "session_abc_1700000000000.webm")
    assert lib.list_video_files() == ["session_abc_1700000000000.webm"]

    info = lib.storage_info()
    assert (info.file_count, info.total_bytes) == (1, 4)


def test_save_strips_directories_from_filename(tmp_path, clock) -> None:
    lib = VideoLibrary(tmp_path / "videos", clock)
    path = lib.save_video_file("../../escape.webm", b"x")
    assert path == str(tmp_path / "videos" / "escape.webm")


@pytest.mark.asyncio
async def test_cleanup_deletes_only_old_files(tmp_path) -> None:
    now = datetime(2025, 1, 15, 2, 0, tzinfo=timezone.utc)
    lib = VideoLibrary(tmp_path, FakeClock(now))

    old = tmp_path / "old.webm"
    fresh = tmp_path / "fresh.webm"
    old.write_bytes(b"12345")
    fresh.write_bytes(b"1")
    four_days_ago = now.timestamp() - 4 * 86400
    one_day_ago = now.timestamp() - 1 * 86400
    os.utime(old, (four_days_ago, four_days_ago))
    os.utime(fresh, (one_day_ago, one_day_ago))

    summary = await lib.cleanup_old_videos(3)

    assert summary == "Deleted 1 video file(s) older than 3 day(s), freed 5 bytes"
    assert lib.list_video_files() == ["fresh.webm"]


@pytest.mark.asyncio
async def test_cleanup_of_missing_directory_is_a_noop(tmp_path, clock) -> None:
    lib = VideoLibrary(tmp_path / "never-created", clock)
    assert (await lib.cleanup_old_videos(3)).startswith("Deleted 0 video file(s)")


# ---- camera settings ----


def test_camera_should_record() -> None:
    assert CameraSettings().should_record(SessionType.SHORT_BREAK) is False

    breaks_only = CameraSettings(enabled=True, only_during_breaks=True)
    assert breaks_only.should_record(SessionType.WORK) is False
    assert breaks_only.should_record(SessionType.LONG_BREAK) is True

    always = CameraSettings(enabled=True, only_during_breaks=False)
    assert always.should_record(SessionType.WORK) is True


def test_camera_settings_persistence(store) -> None:
    with pytest.raises(ValidationError):
        CameraSettings(video_quality="8k").save(store)

    CameraSettings(enabled=True, video_quality="high").save(store)
    loaded = CameraSettings.load(store)
    assert (loaded.enabled, loaded.video_quality) == (True, "high")

    store.set(CAMERA_SETTINGS_KEY, {"enabled": True, "video_quality": "potato"})
    assert CameraSettings.load(store) == CameraSettings()


# ---- theme ----


def test_theme_palettes() -> None:
    assert ThemeType.CLASSIC.session_color(SessionType.WORK) == "#EF4444"
    assert ThemeType.CLASSIC.session_color(SessionType.SHORT_BREAK) == "#22C55E"
    assert ThemeType.CLASSIC.session_color(SessionType.LONG_BREAK) == "#3B82F6"
    assert ThemeType.NORDIC.session_color(SessionType.WORK) == "#5E81AC"
    assert ThemeType.NORDIC.session_color(SessionType.SHORT_BREAK) == "#88C0D0"
    assert ThemeType.NORDIC.session_color(SessionType.LONG_BREAK) == "#81A1C1"


def test_theme_controller_persists_choice(store, clock) -> None:
    theme = ThemeController(store, clock)
    assert theme.current_theme is ThemeType.CLASSIC

    assert theme.set_theme(ThemeType.NORDIC)
    assert ThemeController(store, clock).current_theme is ThemeType.NORDIC
    assert ThemeSettings.load(store).current_theme is ThemeType.NORDIC


def test_auto_dark_mode_follows_time_of_day(store) -> None:
    clock = FakeClock(datetime(2025, 1, 15, 21, 0, tzinfo=timezone.utc))
    theme = ThemeController(store, clock)

    theme.toggle_auto_dark_mode()
    assert theme.settings.auto_dark_mode is True
    assert theme.current_theme is ThemeType.NORDIC

    clock.set(datetime(2025, 1, 16, 10, 0, tzinfo=timezone.utc))
    assert theme.apply_auto_dark_mode() is ThemeType.CLASSIC

    theme.toggle_auto_dark_mode()
    clock.set(datetime(2025, 1, 16, 23, 0, tzinfo=timezone.utc))
    assert theme.apply_auto_dark_mode() is ThemeType.CLASSIC
