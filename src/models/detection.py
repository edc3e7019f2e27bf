"""
Detection models for object detection results.

Detections use the detector's coordinate convention: normalized to [0, 1]
relative to the frame, with the origin at the bottom-left corner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple



@dataclass(frozen=True)
class NormalizedBox:
    """
    A bounding box in normalized, bottom-left-origin coordinates.

    Attributes:
        x: Left edge, fraction of frame width.
        y: Bottom edge, fraction of frame height measured from the bottom.
        width: Box width, fraction of frame width.
        height: Box height, fraction of frame height.
    """
    x: float
    y: float
    width: float
    height: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_pixel_xyxy(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        frame_width: int,
        frame_height: int,
    ) -> "NormalizedBox":
        """
        Convert a top-left-origin pixel box into the normalized detector convention.

        The bottom edge of the pixel box (y2) becomes the normalized origin.
        """
        return cls(
            x=x1 / frame_width,
            y=1.0 - y2 / frame_height,
            width=(x2 - x1) / frame_width,
            height=(y2 - y1) / frame_height,
        )


@dataclass(frozen=True)
class Detection:
    """
    A single detection from the inference service.

    Attributes:
        box: Normalized bounding box (bottom-left origin).
        confidence: Detection confidence score (0-1).
        label: Optional human-readable class label.
        class_id: Optional class ID from the detector.
    """
    box: NormalizedBox
    confidence: float = 1.0
    label: Optional[str] = None
    class_id: Optional[int] = None

    @classmethod
    def from_xywh(
        cls,
        x: float,
        y: float,
        width: float,
        height: float,
        confidence: float = 1.0,
        label: Optional[str] = None,
        class_id: Optional[int] = None,
    ) -> "Detection":
        """Create Detection from normalized x, y, width, height."""
        return cls(
            box=NormalizedBox(x=x, y=y, width=width, height=height),
            confidence=confidence,
            label=label,
            class_id=class_id,
        )
