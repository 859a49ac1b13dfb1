"""
Cleanup subsystem.

Components:
- cleanup_models: CleanupScheduleSettings (persisted schedule)
- cleanup_scheduler: asyncio polling loop that deletes old recordings once a day
"""
