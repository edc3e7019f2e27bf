"""
Still-image observation source.

Delivers a single image file as one frame, then reports exhaustion.
Useful for checking a model against a known picture without a camera.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from models.frame import FrameData
from .base import DeviceUnavailable, ObservationConfig, ObservationSource


@dataclass
class ImageSourceConfig(ObservationConfig):
    """
    Attributes:
        path: Path to an image file readable by cv2.imread.
    """
    path: str = ""


class ImageSource(ObservationSource):
    """Observation source that yields one still image."""

    def __init__(self, config: ImageSourceConfig):
        super().__init__(config)
        self._image_config = config
        self._image: Optional[np.ndarray] = None
        self._delivered = False

    @property
    def is_finite(self) -> bool:
        return True

    def open(self) -> None:
        if self._is_open:
            return

        path = self._image_config.path
        if not path or not os.path.isfile(path):
            raise DeviceUnavailable(f"Image file not found: {path!r}")

        image = cv2.imread(path, cv2.IMREAD_COLOR)
        if image is None:
            raise DeviceUnavailable(f"Failed to decode image: {path}")

        self._image = image
        self._delivered = False
        self._is_open = True
        self._frame_index = 0
        logging.info(
            f"ImageSource opened: source_id={self.source_id}, path={path}, "
            f"size={image.shape[1]}x{image.shape[0]}"
        )

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._image is None or self._delivered:
            return None
        self._delivered = True
        return self._make_frame(self._image, time.time())

    def close(self) -> None:
        self._image = None
        self._is_open = False
