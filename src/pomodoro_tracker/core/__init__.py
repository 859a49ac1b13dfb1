"""
Core contracts.

Components:
- ports.py: Protocols for store, clock, scheduling and native collaborators
- clock.py: system clock + date helpers
- errors.py: error taxonomy
- state.py: AppState container wired by cli/bootstrap.py
"""
