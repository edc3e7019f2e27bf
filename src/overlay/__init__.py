"""
Overlay layer: turns detections into rectangles drawn over the live preview.
"""

from .transform import to_surface_rect, confidence_label
from .surface import OverlaySurface
from .preview import PreviewLayer, aspect_fill
from .display import DisplayWindow
from .renderer import DetectionOverlayRenderer, RendererState, RendererStats

__all__ = [
    "to_surface_rect",
    "confidence_label",
    "OverlaySurface",
    "PreviewLayer",
    "aspect_fill",
    "DisplayWindow",
    "DetectionOverlayRenderer",
    "RendererState",
    "RendererStats",
]
