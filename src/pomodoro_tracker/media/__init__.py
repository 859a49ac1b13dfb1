"""
Media subsystem.

Components:
- camera.py: camera recording settings
- video_library.py: filesystem implementation of the native video commands
"""
