"""
Observation layer for pluggable video/image sources.

This layer abstracts the source of frames (camera, still image) from the
capture session. Each source implements the ObservationSource interface and
returns FrameData objects.
"""

from .base import ObservationSource, ObservationConfig, DeviceUnavailable, ConfigurationError
from .opencv_source import OpenCVSource, OpenCVSourceConfig
from .picamera2_source import Picamera2Source, Picamera2SourceConfig
from .image_source import ImageSource, ImageSourceConfig

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "DeviceUnavailable",
    "ConfigurationError",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "Picamera2Source",
    "Picamera2SourceConfig",
    "ImageSource",
    "ImageSourceConfig",
]
