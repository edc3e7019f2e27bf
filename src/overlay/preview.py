"""
Preview layer: the live camera image under the overlay.
"""

from __future__ import annotations

import threading
from typing import Optional, Tuple

import cv2
import numpy as np

from models.frame import FrameData


def aspect_fill(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Scale `image` to cover width x height, cropping the overflow around the center."""
    src_h, src_w = image.shape[:2]
    if (src_w, src_h) == (width, height):
        return image

    scale = max(width / src_w, height / src_h)
    scaled_w = max(width, int(round(src_w * scale)))
    scaled_h = max(height, int(round(src_h * scale)))
    scaled = cv2.resize(image, (scaled_w, scaled_h), interpolation=cv2.INTER_LINEAR)

    x0 = (scaled_w - width) // 2
    y0 = (scaled_h - height) // 2
    return scaled[y0:y0 + height, x0:x0 + width]


class PreviewLayer:
    """Holds the most recent captured frame for display."""

    def __init__(self):
        self._frame: Optional[np.ndarray] = None
        self._lock = threading.Lock()

    def set_frame(self, frame_data: FrameData) -> None:
        """Store the latest frame, rotated upright. Called from the capture thread."""
        image = frame_data.upright()
        with self._lock:
            self._frame = image

    @property
    def frame_size(self) -> Optional[Tuple[int, int]]:
        """(width, height) of the latest frame, or None before the first one."""
        with self._lock:
            if self._frame is None:
                return None
            return (self._frame.shape[1], self._frame.shape[0])

    def render(self, width: int, height: int) -> np.ndarray:
        with self._lock:
            frame = self._frame
        if frame is None:
            return np.zeros((height, width, 3), dtype=np.uint8)
        return aspect_fill(frame, width, height)
