"""
Theme subsystem.

Components:
- theme: ThemeType palettes, persisted ThemeSettings, ThemeController
"""
