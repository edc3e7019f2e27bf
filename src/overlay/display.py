"""
OpenCV preview window.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np


class DisplayWindow:
    """Shows composed frames in a cv2 window and reports the quit key."""

    def __init__(self, window_name: str = "Object Detection", wait_ms: int = 1):
        self.window_name = window_name
        self.wait_ms = wait_ms
        self._opened = False

    def show(self, image: np.ndarray) -> bool:
        """
        Display one image.

        Returns False if the user pressed 'q'.
        """
        if not self._opened:
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
            self._opened = True
        cv2.imshow(self.window_name, image)
        key = cv2.waitKey(self.wait_ms) & 0xFF
        return key != ord('q')

    def close(self) -> None:
        if not self._opened:
            return
        try:
            cv2.destroyWindow(self.window_name)
        except cv2.error as e:
            logging.debug(f"destroyWindow failed: {e}")
        self._opened = False
