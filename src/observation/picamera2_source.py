"""
Picamera2-based observation source.

Supports Raspberry Pi CSI cameras via libcamera/Picamera2.

Requirements:
  - Raspberry Pi with camera module
  - Picamera2 installed: sudo apt install -y python3-picamera2
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from models.frame import FrameData
from .base import ConfigurationError, DeviceUnavailable, ObservationConfig, ObservationSource


@dataclass
class Picamera2SourceConfig(ObservationConfig):
    """
    Configuration for Picamera2-based observation sources.

    Attributes:
        camera_num: Index into Picamera2.global_camera_info().
    """
    camera_num: int = 0


class Picamera2Source(ObservationSource):
    """
    Picamera2-based observation source for Raspberry Pi CSI cameras.

    Frames come out of Picamera2 as RGB888 and are converted to BGR so the
    rest of the pipeline sees one pixel format.
    """

    def __init__(self, config: Picamera2SourceConfig):
        super().__init__(config)
        self._picam_config = config
        self._picam2: Any = None

    def open(self) -> None:
        """Open the Picamera2 source."""
        if self._is_open:
            return

        try:
            from picamera2 import Picamera2  # type: ignore
        except ImportError as e:
            raise DeviceUnavailable(
                "Picamera2 is not available. This backend only works on Raspberry Pi OS. "
                "Install with `sudo apt install -y python3-picamera2` or use backend 'opencv'."
            ) from e

        cameras = Picamera2.global_camera_info()
        camera_num = self._picam_config.camera_num
        if camera_num >= len(cameras):
            raise DeviceUnavailable(
                f"No Picamera2 camera at index {camera_num} ({len(cameras)} detected)"
            )

        resolution = self._picam_config.resolution or (1280, 720)
        fps = self._picam_config.fps or 30

        try:
            self._picam2 = Picamera2(camera_num)
            video_config = self._picam2.create_video_configuration(
                main={"size": resolution, "format": "RGB888"},
                controls={"FrameRate": fps},
            )
            self._picam2.configure(video_config)
            self._picam2.start()
        except Exception as e:
            self._release()
            raise ConfigurationError(f"Failed to configure Picamera2 camera {camera_num}: {e}") from e

        self._is_open = True
        self._frame_index = 0

        logging.info(
            f"Picamera2Source opened: source_id={self.source_id}, "
            f"camera={camera_num}, resolution={resolution}, fps={fps}"
        )

    def read(self) -> Optional[FrameData]:
        """Read the next frame from Picamera2."""
        if not self._is_open or self._picam2 is None:
            return None

        try:
            frame_rgb = self._picam2.capture_array("main")
        except Exception as e:
            logging.error(f"Error capturing frame from Picamera2: {e}")
            return None

        frame_bgr = frame_rgb[..., ::-1].copy()
        return self._make_frame(frame_bgr, time.time())

    def _release(self) -> None:
        if self._picam2 is None:
            return
        try:
            self._picam2.stop()
        except Exception as e:
            logging.debug(f"Picamera2 stop failed: {e}")
        try:
            self._picam2.close()
        except Exception as e:
            logging.debug(f"Picamera2 close failed: {e}")
        self._picam2 = None

    def close(self) -> None:
        """Close Picamera2 and release resources."""
        was_open = self._is_open
        self._release()
        self._is_open = False
        if was_open:
            logging.info(f"Picamera2Source closed: source_id={self.source_id}")
