"""
Coordinate transform from detector space to render-surface space.

The detector reports boxes normalized to [0, 1] with the origin at the
bottom-left; the surface draws in pixels with the origin at the top-left.
"""

from __future__ import annotations

from typing import Optional

from models.detection import Detection, NormalizedBox
from models.overlay import OverlayRect


def to_surface_rect(
    box: NormalizedBox,
    surface_width: float,
    surface_height: float,
    label: Optional[str] = None,
) -> OverlayRect:
    """
    Map a normalized bottom-left-origin box onto a top-left-origin surface.

    Example:
        >>> to_surface_rect(NormalizedBox(0.25, 0.25, 0.5, 0.25), 200, 100).as_tuple()
        (50.0, 50.0, 100.0, 25.0)
    """
    return OverlayRect(
        x=box.x * surface_width,
        y=(1 - box.y - box.height) * surface_height,
        width=box.width * surface_width,
        height=box.height * surface_height,
        label=label,
    )


def confidence_label(detection: Detection) -> str:
    """Label text drawn above a rectangle."""
    if detection.label:
        return f"{detection.label} {detection.confidence:.2f}"
    return f"Conf: {detection.confidence:.2f}"
