# src/pomodoro_tracker/cli/commands.py

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..cleanup.cleanup_models import CleanupScheduleSettings
from ..core.state import AppState
from ..tasks.task_models import SubTask, Task
from ..theme.theme import ThemeType
from ..timer.timer_models import SessionType, TimerSettings
from ..utils.time_format import format_duration_hours_minutes, format_time

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /start, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- reference helpers ----
# Tasks are addressed by their 1-based position in /tasks or by id (prefix);
# subtasks as "<task>.<n>" or by id (prefix).


def _resolve_task(state: AppState, ref: str) -> Task | None:
    tc = state.tasks
    if ref.isdigit():
        listed = tc.get_filtered_tasks()
        i = int(ref) - 1
        return listed[i] if 0 <= i < len(listed) else None
    matches = [t for t in tc.tasks if t.id == ref or t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def _resolve_subtask(state: AppState, ref: str) -> SubTask | None:
    tc = state.tasks
    head, sep, tail = ref.partition(".")
    if sep and tail.isdigit():
        task = _resolve_task(state, head)
        if task is None:
            return None
        listed = tc.get_subtasks_for_task(task.id)
        i = int(tail) - 1
        return listed[i] if 0 <= i < len(listed) else None
    matches = [st for st in tc.subtasks if st.id == ref or st.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def _on_off(raw: str) -> bool | None:
    s = raw.strip().lower()
    if s in ("on", "1", "true", "yes"):
        return True
    if s in ("off", "0", "false", "no"):
        return False
    return None


# ---- general ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    t = state.timer
    _, next_info = t.get_next_session_info()
    active = state.tasks.get_active_task_info() or "none"
    lines = [
        "Status:",
        f"  Session: {t.session_type.display_name} ({t.timer_state.value})",
        f"  Time left: {t.formatted_time} ({t.progress_percentage:.0f}% done)",
        f"  Next: {next_info}",
        f"  Work sessions: {t.current_cycle_work_sessions} this cycle, {t.completed_work_sessions} total",
        f"  Active task: {active}",
        f"  Theme: {state.theme.current_theme.display_name} ({state.theme.session_color(t.session_type)})",
    ]
    if t.last_error:
        lines.append(f"  Last error: {t.last_error}")
    return "\n".join(lines)


# ---- timer ----


def cmd_start(state: AppState, args: list[str]) -> str:
    t = state.timer
    if not t.start():
        return "Timer is already running."
    active = state.tasks.get_active_task_info()
    suffix = f" on {active}" if active and t.session_type is SessionType.WORK else ""
    return f"{t.session_type.display_name} started{suffix}: {t.formatted_time} left."


def cmd_pause(state: AppState, args: list[str]) -> str:
    if not state.timer.pause():
        return "Timer is not running."
    return f"Paused at {state.timer.formatted_time}."


def cmd_stop(state: AppState, args: list[str]) -> str:
    state.timer.stop()
    return f"Timer stopped. {state.timer.session_type.display_name} reset to {state.timer.formatted_time}."


def cmd_type(state: AppState, args: list[str]) -> str:
    """
    /type work | short | long
    """
    if not args:
        return f"Current session type: {state.timer.session_type.display_name}. Usage: /type work|short|long"
    try:
        st = SessionType.parse(args[0])
    except ValueError as e:
        return str(e)
    if not state.timer.set_session_type(st):
        return "Stop the timer before changing the session type."
    return f"Session type: {st.display_name} ({state.timer.formatted_time})."


def cmd_skip(state: AppState, args: list[str]) -> str:
    t = state.timer
    finished = t.session_type
    session_id = t.complete_session()
    if session_id is None:
        if t.last_error:
            return t.last_error
        return "Nothing to complete (timer is stopped)."
    return f"{finished.display_name} completed early. Next: {t.session_type.display_name}."


def _render_timer_settings(s: TimerSettings) -> str:
    return (
        "Timer settings:\n"
        f"  work={s.work_duration_minutes}m short={s.short_break_duration_minutes}m "
        f"long={s.long_break_duration_minutes}m\n"
        f"  short_every={s.sessions_before_short_break} long_every={s.sessions_before_long_break}\n"
        f"  auto_breaks={'on' if s.auto_start_breaks else 'off'} "
        f"auto_work={'on' if s.auto_start_work else 'off'}"
    )


_SETTING_KEYS = {
    "work": "work_duration_minutes",
    "short": "short_break_duration_minutes",
    "long": "long_break_duration_minutes",
    "short_every": "sessions_before_short_break",
    "long_every": "sessions_before_long_break",
    "auto_breaks": "auto_start_breaks",
    "auto_work": "auto_start_work",
}


def cmd_settings(state: AppState, args: list[str]) -> str:
    """
    /settings                     -> show
    /settings work=50 short=10    -> update (validated as a whole)
    """
    current = state.timer.timer_settings
    if not args:
        return _render_timer_settings(current)

    changes: dict[str, object] = {}
    for arg in args:
        key, sep, raw = arg.partition("=")
        field_name = _SETTING_KEYS.get(key.lower())
        if not sep or field_name is None:
            return f"Unknown setting {arg!r}. Keys: {', '.join(_SETTING_KEYS)}"
        if field_name.startswith("auto_start"):
            flag = _on_off(raw)
            if flag is None:
                return f"{key} expects on/off."
            changes[field_name] = flag
        else:
            try:
                changes[field_name] = int(raw)
            except ValueError:
                return f"{key} expects a whole number."

    updated = dataclasses.replace(current, **changes)
    if not state.timer.update_timer_settings(updated):
        return f"Settings rejected: {state.timer.last_error}"
    return "Settings saved.\n" + _render_timer_settings(updated)


# ---- tasks ----


def _render_tasks(state: AppState) -> str:
    tc = state.tasks
    listed = tc.get_filtered_tasks()
    if not listed:
        return "No tasks. Add one with /task add <name>."

    progress = {p.task.id: p for p in tc.get_progress_summary()}
    sel_task, sel_sub = tc.get_current_selection()
    lines = ["Tasks:"]
    for i, task in enumerate(listed, start=1):
        p = progress.get(task.id)
        pct = p.completion_percentage if p else 0.0
        mark = "x" if task.completed else " "
        star = " *" if task.id == sel_task and sel_sub is None else ""
        est = f"/{task.estimated_pomodoros}" if task.estimated_pomodoros is not None else ""
        lines.append(
            f"  {i}. [{mark}] {task.name} {pct:.0f}% "
            f"({task.actual_pomodoros}{est} pomodoros, {format_duration_hours_minutes(task.total_focus_time_s)}){star}"
        )
        for j, st in enumerate(tc.get_subtasks_for_task(task.id), start=1):
            smark = "x" if st.completed else " "
            sstar = " *" if st.id == sel_sub else ""
            lines.append(f"      {i}.{j} [{smark}] {st.name} ({st.actual_pomodoros} pomodoros){sstar}")
    return "\n".join(lines)


def cmd_tasks(state: AppState, args: list[str]) -> str:
    # Session completions update totals behind the controller.
    state.tasks.load_tasks()
    return _render_tasks(state)


def cmd_task(state: AppState, args: list[str]) -> str:
    """
    /task add <name...>
    /task done <n>
    /task del <n>
    /task completed on|off   -> show/hide completed items
    """
    usage = "Usage: /task add <name> | done <n> | del <n> | completed on|off"
    if not args:
        return usage

    tc = state.tasks
    sub = args[0].lower()

    if sub == "add":
        task = tc.create_task(" ".join(args[1:]))
        if task is None:
            return f"Task not created: {tc.error}"
        return f"Task added: {task.name}"

    if sub == "completed" and len(args) > 1:
        flag = _on_off(args[1])
        if flag is None:
            return usage
        tc.show_completed = flag
        return f"Completed items are now {'shown' if flag else 'hidden'}."

    if sub in ("done", "del") and len(args) > 1:
        task = _resolve_task(state, args[1])
        if task is None:
            return f"No task {args[1]!r}."
        if sub == "done":
            if not tc.toggle_task_completion(task.id):
                return f"Task not updated: {tc.error or 'task not found'}"
            updated = tc.get_task_by_id(task.id)
            return f"Task {'completed' if updated and updated.completed else 'reopened'}: {task.name}"
        if not tc.delete_task(task.id):
            return tc.error or f"Task already gone: {task.name}"
        return f"Task deleted: {task.name}"

    return usage


def cmd_sub(state: AppState, args: list[str]) -> str:
    """
    /sub add <task> <name...>
    /sub done <task>.<n>
    /sub del <task>.<n>
    """
    usage = "Usage: /sub add <task> <name> | done <task>.<n> | del <task>.<n>"
    if len(args) < 2:
        return usage

    tc = state.tasks
    sub = args[0].lower()

    if sub == "add":
        task = _resolve_task(state, args[1])
        if task is None:
            return f"No task {args[1]!r}."
        st = tc.create_subtask(task.id, " ".join(args[2:]))
        if st is None:
            return f"Subtask not created: {tc.error}"
        return f"Subtask added to {task.name}: {st.name}"

    st = _resolve_subtask(state, args[1])
    if st is None:
        return f"No subtask {args[1]!r}."

    if sub == "done":
        if not tc.toggle_subtask_completion(st.id):
            return f"Subtask not updated: {tc.error or 'subtask not found'}"
        updated = tc.get_subtask_by_id(st.id)
        return f"Subtask {'completed' if updated and updated.completed else 'reopened'}: {st.name}"

    if sub == "del":
        if not tc.delete_subtask(st.id):
            return tc.error or f"Subtask already gone: {st.name}"
        return f"Subtask deleted: {st.name}"

    return usage


def cmd_select(state: AppState, args: list[str]) -> str:
    """
    /select <task>        -> attribute work sessions to a task
    /select <task>.<n>    -> ... or to one of its subtasks
    /select none
    """
    tc = state.tasks
    if not args:
        return f"Active task: {tc.get_active_task_info() or 'none'}"

    ref = args[0]
    if ref.lower() == "none":
        tc.select_task(None)
        return "Task selection cleared."

    if "." in ref:
        st = _resolve_subtask(state, ref)
        if st is None:
            return f"No subtask {ref!r}."
        tc.select_subtask(st)
    else:
        task = _resolve_task(state, ref)
        if task is None:
            return f"No task {ref!r}."
        tc.select_task(task)
    return f"Active task: {tc.get_active_task_info()}"


# ---- stats / history ----


def cmd_stats(state: AppState, args: list[str]) -> str:
    """
    /stats        -> session stats
    /stats tasks  -> per-task stats
    """
    if args and args[0].lower() == "tasks":
        state.tasks.load_tasks()
        stats = state.tasks.get_stats()
        if not stats:
            return "No tasks yet."
        lines = ["Task stats:"]
        for s in stats:
            est = ""
            if s.estimated_vs_actual is not None:
                e, a = s.estimated_vs_actual
                est = f", estimate {e} vs actual {a}"
            lines.append(
                f"  {s.task_name}: {format_duration_hours_minutes(s.total_focus_time_s)}, "
                f"{s.total_pomodoros} pomodoros, {s.completion_percentage:.0f}% "
                f"({s.completed_subtasks}/{s.total_subtasks} subtasks){est}"
            )
        return "\n".join(lines)

    st = state.timer.load_session_stats()
    if st is None:
        return "Session stats unavailable."
    return (
        "Session stats:\n"
        f"  Sessions: {st.total_sessions} (work {st.work_sessions}, short {st.short_break_sessions}, "
        f"long {st.long_break_sessions})\n"
        f"  Focus time: {format_duration_hours_minutes(st.total_focus_time_s)}\n"
        f"  Average session: {format_time(round(st.average_session_duration_s))}\n"
        f"  Completion rate: {st.completion_rate:.0f}%"
    )


def cmd_history(state: AppState, args: list[str]) -> str:
    """
    /history [n]   -> last n sessions (default 10)
    """
    limit = 10
    if args:
        try:
            limit = max(1, int(args[0]))
        except ValueError:
            return "Usage: /history [n]"

    sessions = state.recorder.list_sessions(limit=limit)
    if not sessions:
        return "No sessions recorded yet."

    lines = [f"Last {len(sessions)} session(s):"]
    for s in sessions:
        target = ""
        if s.subtask_id:
            st = state.tasks.get_subtask_by_id(s.subtask_id)
            target = f" -> {st.name}" if st else ""
        elif s.task_id:
            task = state.tasks.get_task_by_id(s.task_id)
            target = f" -> {task.name}" if task else ""
        video = " [video]" if s.video_path else ""
        lines.append(
            f"  {s.end_time[:16].replace('T', ' ')} {s.session_type.display_name} "
            f"{format_time(s.actual_duration_s)}/{format_time(s.planned_duration_s)}{target}{video}"
        )
    return "\n".join(lines)


# ---- cleanup / theme ----


def _render_cleanup(state: AppState) -> str:
    s = state.cleanup.settings
    nxt = state.cleanup.get_next_cleanup_time() or "disabled"
    info = state.videos.storage_info()
    return (
        "Video cleanup:\n"
        f"  Auto cleanup: {'on' if s.auto_cleanup_enabled else 'off'}, keep {s.days_to_keep} day(s), "
        f"at {s.cleanup_hour:02d}:00\n"
        f"  Last run: {s.last_cleanup_date or 'never'}; next: {nxt}\n"
        f"  Videos: {info.file_count} file(s), {info.total_bytes} bytes"
    )


def cmd_cleanup(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /cleanup              -> show schedule
    /cleanup now          -> run cleanup immediately
    /cleanup on|off
    /cleanup hour <0-23>
    /cleanup keep <days>
    """
    if not args:
        return _render_cleanup(state)

    sub = args[0].lower()
    sched = state.cleanup

    if sub == "now":
        task = asyncio.get_running_loop().create_task(sched.force_cleanup_now())

        def _report(t: asyncio.Task[bool]) -> None:
            if emit is None or t.cancelled():
                return
            if t.exception() is None and t.result():
                emit(f"[CLEANUP] {sched.last_result}")
            else:
                emit(f"[CLEANUP] {sched.last_error or 'Cleanup failed.'}")

        task.add_done_callback(_report)
        return "Cleanup started."

    current = sched.settings
    new: CleanupScheduleSettings | None = None
    flag = _on_off(sub)
    if flag is not None:
        new = dataclasses.replace(current, auto_cleanup_enabled=flag)
    elif sub in ("hour", "keep") and len(args) > 1:
        try:
            value = int(args[1])
        except ValueError:
            return f"/cleanup {sub} expects a whole number."
        if sub == "hour":
            new = dataclasses.replace(current, cleanup_hour=value)
        else:
            new = dataclasses.replace(current, days_to_keep=value)

    if new is None:
        return "Usage: /cleanup [now | on | off | hour <0-23> | keep <days>]"
    if not sched.update_settings(new):
        return f"Cleanup settings rejected: {sched.last_error}"
    return _render_cleanup(state)


def cmd_theme(state: AppState, args: list[str]) -> str:
    """
    /theme                  -> show
    /theme classic|nordic
    /theme auto             -> toggle auto dark mode
    """
    th = state.theme
    if not args:
        auto = "on" if th.settings.auto_dark_mode else "off"
        names = ", ".join(t.value for t in ThemeType)
        return f"Theme: {th.current_theme.display_name} - {th.current_theme.description} (auto dark: {auto}). Available: {names}"

    arg = args[0].lower()
    if arg == "auto":
        th.toggle_auto_dark_mode()
        return f"Auto dark mode {'on' if th.settings.auto_dark_mode else 'off'}; theme: {th.current_theme.display_name}."

    try:
        theme = ThemeType.parse(arg)
    except ValueError as e:
        return str(e)
    if not th.set_theme(theme):
        return th.last_error or "Theme not saved."
    return f"Theme: {theme.display_name}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show timer state, next session and active task.", aliases=["s"])
registry.register("start", cmd_start, help_text="Start or resume the timer.")
registry.register("pause", cmd_pause, help_text="Pause the running timer.")
registry.register("stop", cmd_stop, help_text="Stop and reset the current session.")
registry.register("type", cmd_type, help_text="Switch session type while stopped: /type work|short|long.")
registry.register("skip", cmd_skip, help_text="Complete the current session now (records the partial time).")
registry.register("settings", cmd_settings, help_text="Show or change timer settings: /settings work=50 short=10.")
registry.register("task", cmd_task, help_text="Tasks: /task add <name> | done <n> | del <n> | completed on|off.")
registry.register("sub", cmd_sub, help_text="Subtasks: /sub add <task> <name> | done <t>.<n> | del <t>.<n>.")
registry.register("select", cmd_select, help_text="Attribute work to a task: /select <n> | <n>.<m> | none.")
registry.register("tasks", cmd_tasks, help_text="List tasks with progress.")
registry.register("stats", cmd_stats, help_text="Session stats, or per-task stats with /stats tasks.")
registry.register("history", cmd_history, help_text="Recent sessions: /history [n].")
registry.register("cleanup", cmd_cleanup, help_text="Video cleanup: /cleanup [now | on | off | hour <h> | keep <days>].")
registry.register("theme", cmd_theme, help_text="Theme: /theme classic | nordic | auto.")
