"""
Task subsystem.

Components:
- task_models.py: data structures (Task, SubTask, TaskStats, TaskProgress)
- task_store.py: document-store CRUD + progress/stats computations
- task_controller.py: UI-facing state (selection, filtering, last error)
"""
