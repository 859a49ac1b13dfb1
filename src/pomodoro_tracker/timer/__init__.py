"""
Timer subsystem.

Components:
- timer_models.py: TimerState, SessionType, TimerSettings, Session, SessionStats
- timer_controller.py: the Stopped/Running/Paused state machine
- session_recorder.py: session log + focus-time attribution to tasks
"""
