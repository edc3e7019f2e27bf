"""
Overlay models: what is currently drawn on the render surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class OverlayRect:
    """
    A rectangle in render-surface pixel coordinates (top-left origin).

    Attributes:
        x: Left edge in pixels.
        y: Top edge in pixels.
        width: Width in pixels.
        height: Height in pixels.
        label: Optional text drawn above the rectangle.
    """
    x: float
    y: float
    width: float
    height: float
    label: Optional[str] = None

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def corners(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        """Return integer ((x1, y1), (x2, y2)) corners for drawing."""
        return (
            (int(round(self.x)), int(round(self.y))),
            (int(round(self.x + self.width)), int(round(self.y + self.height))),
        )


@dataclass(frozen=True)
class OverlayState:
    """The full set of rectangles from one inference result."""
    rects: Tuple[OverlayRect, ...] = ()
    frame_index: Optional[int] = None

    def __len__(self) -> int:
        return len(self.rects)

    @property
    def is_empty(self) -> bool:
        return not self.rects
