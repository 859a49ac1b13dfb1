"""
Connectors.

Components:
- console_connector.py: blocking REPL + console completion notifier
"""
