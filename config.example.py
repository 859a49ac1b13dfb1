# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Put local values in .env (gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "POMODORO_APP_NAME": "App display name (default: pomodoro).",
    "POMODORO_LOG_LEVEL": "Logging level (default: INFO).",
    # Connectors
    "POMODORO_CONSOLE_ENABLED": "Enable console REPL (true/false, default: true).",
    # Paths (gitignored)
    "POMODORO_DATA_DIR": "Local data directory (default: .local/pomodoro).",
    "POMODORO_STORE_DB_PATH": "Key-value store SQLite path (default: <data_dir>/store.sqlite3).",
    "POMODORO_VIDEOS_DIR": "Session recordings directory (default: <data_dir>/videos).",
    # Timer
    "POMODORO_TICK_INTERVAL_SECONDS": "Seconds between countdown ticks (default: 1.0).",
    "POMODORO_AUTO_START_DELAY_SECONDS": "Delay before an auto-started session begins (default: 1.0).",
    # Cleanup
    "POMODORO_CLEANUP_SCHEDULER_ENABLED": "Run the daily video cleanup loop (true/false, default: true).",
    "POMODORO_CLEANUP_POLL_SECONDS": "Seconds between cleanup window checks (default: 600).",
}
