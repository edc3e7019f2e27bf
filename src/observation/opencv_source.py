"""
OpenCV-based observation source for local cameras (USB webcams, built-in cameras).

The device is opened once. A device index that OpenCV cannot open is reported
as DeviceUnavailable; a device that opens but never produces a frame is
reported as ConfigurationError.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from models.frame import FrameData
from .base import ConfigurationError, DeviceUnavailable, ObservationConfig, ObservationSource


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV camera sources.

    Attributes:
        device_id: Camera index passed to cv2.VideoCapture.
        buffer_size: OpenCV capture buffer size (1 keeps latency low).
        warmup_seconds: Pause after opening before probing the first frame.
    """
    device_id: int = 0
    buffer_size: int = 1
    warmup_seconds: float = 0.5


class OpenCVSource(ObservationSource):
    """
    OpenCV-based observation source.

    Wraps cv2.VideoCapture to provide frames as FrameData objects.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(1280, 720))
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data.frame)
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._primed: Optional[np.ndarray] = None

    @property
    def device_id(self) -> int:
        return self._opencv_config.device_id

    def open(self) -> None:
        """Open the camera and read one frame to confirm it delivers."""
        if self._is_open:
            return

        self._cap = cv2.VideoCapture(self.device_id)
        if not self._cap.isOpened():
            self._release()
            raise DeviceUnavailable(f"No camera device at index {self.device_id}")

        cfg = self._opencv_config
        if cfg.resolution:
            w, h = cfg.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        if cfg.fps:
            self._cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

        actual_w = self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)
        actual_h = self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
        actual_fps = self._cap.get(cv2.CAP_PROP_FPS)
        logging.info(
            f"Camera actual settings - Resolution: ({actual_w}x{actual_h}), FPS: {actual_fps}"
        )

        if cfg.warmup_seconds > 0:
            time.sleep(cfg.warmup_seconds)

        ret, frame = self._cap.read()
        if not ret or frame is None:
            self._release()
            raise ConfigurationError(
                f"Camera device {self.device_id} opened but delivered no frames"
            )
        self._primed = frame

        self._is_open = True
        self._frame_index = 0
        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={self.device_id}, resolution={cfg.resolution}"
        )

    def read(self) -> Optional[FrameData]:
        """Read the next frame from the camera."""
        if not self._is_open or self._cap is None:
            return None

        if self._primed is not None:
            frame, self._primed = self._primed, None
            return self._make_frame(frame, time.time())

        ret, frame = self._cap.read()
        if not ret or frame is None:
            return None
        return self._make_frame(frame, time.time())

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def close(self) -> None:
        """Close the camera and release resources."""
        was_open = self._is_open
        self._release()
        self._primed = None
        self._is_open = False
        if was_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
