"""
Capture session management.

Turns a camera selector into a running session that pushes frames to a
consumer from its own thread.
"""

from .session import (
    CameraSelector,
    CaptureSession,
    SessionState,
    create_source,
    start,
    stop,
)

__all__ = [
    "CameraSelector",
    "CaptureSession",
    "SessionState",
    "create_source",
    "start",
    "stop",
]
