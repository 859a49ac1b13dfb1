"""
Storage subsystem.

Components:
- kv_store.py: SQLite-backed key -> JSON document store + collection keys
"""
