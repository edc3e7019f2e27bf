"""
FrameData model for captured video frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


# Orientation hints, named after where the top of the scene ended up in the
# encoded buffer. "right" means the buffer must be rotated 90 degrees
# clockwise to be upright.
ORIENTATIONS = ("up", "down", "left", "right")


@dataclass
class FrameData:
    """
    Metadata and payload for a captured video frame.

    Attributes:
        frame: The raw frame data as a numpy array (BGR format).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when frame was captured.
        frame_index: Sequential frame number since start.
        source: Identifier for the camera/image source.
        pixel_format: Channel layout of `frame`.
        orientation: Orientation hint stamped by the capture session.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None
    pixel_format: str = "BGR"
    orientation: str = "up"

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
        orientation: str = "up",
    ) -> "FrameData":
        """Create FrameData from a numpy array."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
            orientation=orientation,
        )

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Return (height, width, channels)."""
        return self.frame.shape

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    def upright(self) -> np.ndarray:
        """Return the pixel buffer rotated according to the orientation hint."""
        k = _ROTATIONS.get(self.orientation, 0)
        if k == 0:
            return self.frame
        return np.ascontiguousarray(np.rot90(self.frame, k=k))


# np.rot90 quarter turns (positive = counter-clockwise) that make a frame upright.
_ROTATIONS = {"up": 0, "right": -1, "down": 2, "left": 1}
