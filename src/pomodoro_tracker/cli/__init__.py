"""
CLI layer.

Components:
- bootstrap.py: composition root (AppState wiring)
- commands.py: slash-command registry
- main.py: entry point
"""
