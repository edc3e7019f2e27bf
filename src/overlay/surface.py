"""
Overlay surface: the layer holding the currently drawn detection rectangles.

State is replaced wholesale on every update and may only be changed from the
dispatcher's owning thread.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

import cv2
import numpy as np

from models.overlay import OverlayRect, OverlayState
from runtime.dispatch import MainThreadDispatcher


class OverlaySurface:
    """
    Full-screen overlay layer of a fixed pixel size.

    Example:
        surface = OverlaySurface(1280, 720, dispatcher)
        surface.replace([OverlayRect(10, 10, 100, 50)])
        annotated = surface.compose(preview_image)
    """

    LABEL_HEIGHT = 20

    def __init__(
        self,
        width: int,
        height: int,
        dispatcher: MainThreadDispatcher,
        color: Sequence[int] = (0, 0, 255),
        line_width: int = 2,
    ):
        self._width = int(width)
        self._height = int(height)
        self._dispatcher = dispatcher
        self.color = tuple(int(c) for c in color)
        self.line_width = line_width
        self._state = OverlayState()
        self.updates = 0

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self._width, self._height)

    @property
    def state(self) -> OverlayState:
        return self._state

    def resize(self, width: int, height: int) -> None:
        """Change the surface size, rescaling the rectangles already shown."""
        self._dispatcher.assert_owner()
        width, height = int(width), int(height)
        if (width, height) == self.size:
            return
        sx = width / self._width
        sy = height / self._height
        rects = tuple(
            OverlayRect(r.x * sx, r.y * sy, r.width * sx, r.height * sy, label=r.label)
            for r in self._state.rects
        )
        self._state = OverlayState(rects=rects, frame_index=self._state.frame_index)
        self._width = width
        self._height = height

    def replace(self, rects: Iterable[OverlayRect], frame_index: Optional[int] = None) -> None:
        """Drop every drawn rectangle and show exactly `rects`."""
        self._dispatcher.assert_owner()
        self._state = OverlayState(rects=tuple(rects), frame_index=frame_index)
        self.updates += 1

    def clear(self) -> None:
        self.replace(())

    def compose(self, background: Optional[np.ndarray] = None) -> np.ndarray:
        """Draw the current overlay onto a copy of `background` (or a black canvas)."""
        if background is None:
            canvas = np.zeros((self._height, self._width, 3), dtype=np.uint8)
        else:
            canvas = background.copy()

        font = cv2.FONT_HERSHEY_SIMPLEX
        for rect in self._state.rects:
            (x1, y1), (x2, y2) = rect.corners()
            cv2.rectangle(canvas, (x1, y1), (x2, y2), self.color, self.line_width)
            if rect.label:
                # Text sits in a band just above the box, clamped to the top edge.
                baseline_y = max(y1 - 5, self.LABEL_HEIGHT - 5)
                cv2.putText(canvas, rect.label, (x1, baseline_y), font, 0.5, self.color, 1)
        return canvas
