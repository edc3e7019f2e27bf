"""
Typed models for the detection overlay application.

Frames flow in from the capture session, detections come back from the
inference service, and overlay state is what the render surface shows.
"""

from .frame import FrameData
from .detection import Detection, NormalizedBox
from .overlay import OverlayRect, OverlayState
from .config import (
    Config,
    CameraConfig,
    InferenceConfig,
    OverlayConfig,
    DisplayConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "NormalizedBox",
    # Overlay
    "OverlayRect",
    "OverlayState",
    # Config
    "Config",
    "CameraConfig",
    "InferenceConfig",
    "OverlayConfig",
    "DisplayConfig",
]
