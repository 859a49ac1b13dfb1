"""
Runtime subsystem.

Components:
- loop_runner: asyncio-backed IntervalScheduler and the BackgroundLoop thread
"""
