from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from inference.service import InferenceService
from models.config import Config
from overlay.display import DisplayWindow
from overlay.preview import PreviewLayer
from overlay.renderer import DetectionOverlayRenderer
from overlay.surface import OverlaySurface
from runtime.dispatch import MainThreadDispatcher


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: Config
    dispatcher: MainThreadDispatcher
    service: InferenceService
    surface: OverlaySurface
    preview: PreviewLayer
    renderer: DetectionOverlayRenderer
    display: Optional[DisplayWindow] = None
    session: Any = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        service: Optional[InferenceService] = None,
        display: bool = True,
    ) -> "RuntimeContext":
        """
        Wire the overlay stack from a typed config.

        The surface starts at the configured size, or the capture preset's
        resolution (rotated for left/right orientation hints) when unset.
        """
        dispatcher = MainThreadDispatcher()
        service = service or InferenceService(config.inference)

        width, height = config.camera.resolution
        if config.camera.orientation in ("left", "right"):
            width, height = height, width
        width = config.overlay.width or width
        height = config.overlay.height or height

        surface = OverlaySurface(
            width,
            height,
            dispatcher,
            color=config.overlay.color,
            line_width=config.overlay.line_width,
        )
        renderer = DetectionOverlayRenderer(
            service,
            surface,
            dispatcher,
            max_in_flight=config.inference.max_in_flight,
            show_confidence=config.overlay.show_confidence,
        )
        window = DisplayWindow(config.display.window_name) if display else None
        return cls(
            config=config,
            dispatcher=dispatcher,
            service=service,
            surface=surface,
            preview=PreviewLayer(),
            renderer=renderer,
            display=window,
        )

    @property
    def surface_size_fixed(self) -> bool:
        return bool(self.config.overlay.width and self.config.overlay.height)
