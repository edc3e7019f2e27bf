"""
Detection overlay renderer.

Takes frames from the capture session, runs them through the inference
service on worker threads and redraws the overlay from each result.

Frames that arrive while every worker is busy are not queued: the newest one
waits in a single pending slot and replaces whatever was waiting before it.
Results are applied in the order passes complete, so with more than one
worker a slow pass for an older frame can overwrite a newer result.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from inference.backend import InferenceRequestError, InferenceSetupError
from inference.service import InferenceService
from models.detection import Detection
from models.frame import FrameData
from runtime.dispatch import MainThreadDispatcher
from .surface import OverlaySurface
from .transform import confidence_label, to_surface_rect


class RendererState(str, Enum):
    IDLE = "idle"
    AWAITING_RESULT = "awaiting_result"


@dataclass
class RendererStats:
    """Counters for the renderer."""
    frames_submitted: int = 0
    frames_superseded: int = 0
    passes_completed: int = 0
    passes_failed: int = 0
    results_applied: int = 0


class DetectionOverlayRenderer:
    """
    Connects frames -> inference service -> overlay surface.

    Example:
        renderer = DetectionOverlayRenderer(service, surface, dispatcher)
        session = capture.start(selector, renderer.submit)
        ...
        dispatcher.drain()   # on the surface-owning thread
    """

    def __init__(
        self,
        service: InferenceService,
        surface: OverlaySurface,
        dispatcher: MainThreadDispatcher,
        max_in_flight: int = 1,
        show_confidence: bool = True,
    ):
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self.service = service
        self.surface = surface
        self.dispatcher = dispatcher
        self.max_in_flight = max_in_flight
        self.show_confidence = show_confidence
        self.stats = RendererStats()
        self._executor = ThreadPoolExecutor(
            max_workers=max_in_flight,
            thread_name_prefix="inference",
        )
        self._cond = threading.Condition()
        self._in_flight = 0
        self._pending: Optional[FrameData] = None
        self._closed = False

    @property
    def state(self) -> RendererState:
        with self._cond:
            return RendererState.AWAITING_RESULT if self._in_flight else RendererState.IDLE

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def submit(self, frame_data: FrameData) -> Optional[Future]:
        """
        Hand a frame to the inference service.

        Returns the future of the inference pass started for this frame, or
        None if the frame was parked in the pending slot (or the renderer is
        shut down).

        Raises:
            InferenceSetupError: The inference service was never loaded.
        """
        if not self.service.is_loaded:
            raise InferenceSetupError("Inference service is not loaded; frame dropped")

        with self._cond:
            if self._closed:
                return None
            self.stats.frames_submitted += 1
            if self._in_flight < self.max_in_flight:
                self._in_flight += 1
                return self._executor.submit(self._work, frame_data)
            if self._pending is not None:
                self.stats.frames_superseded += 1
            self._pending = frame_data
            return None

    def on_result(self, detections: Iterable[Detection], frame_index: Optional[int] = None) -> None:
        """Schedule an overlay redraw on the surface-owning thread. Safe from any thread."""
        self.dispatcher.post(self._apply, list(detections), frame_index)

    def _apply(self, detections: List[Detection], frame_index: Optional[int]) -> None:
        width, height = self.surface.size
        rects = [
            to_surface_rect(
                d.box,
                width,
                height,
                label=confidence_label(d) if self.show_confidence else None,
            )
            for d in detections
        ]
        self.surface.replace(rects, frame_index=frame_index)
        self.stats.results_applied += 1

    def _work(self, frame_data: Optional[FrameData]) -> None:
        while frame_data is not None:
            self._run_pass(frame_data)
            with self._cond:
                frame_data, self._pending = self._pending, None
                if frame_data is None:
                    self._in_flight -= 1
                    self._cond.notify_all()

    def _run_pass(self, frame_data: FrameData) -> None:
        try:
            detections = list(self.service.detect(frame_data))
        except InferenceRequestError as e:
            with self._cond:
                self.stats.passes_failed += 1
            logging.warning(f"Skipping frame {frame_data.frame_index}: {e}")
            return
        except Exception as e:
            # Anything escaping here would leave the worker slot held
            with self._cond:
                self.stats.passes_failed += 1
            logging.error(f"Inference pass crashed on frame {frame_data.frame_index}: {e}")
            return

        with self._cond:
            self.stats.passes_completed += 1
        logging.debug(f"[DETECT] frame={frame_data.frame_index} detections={len(detections)}")
        self.on_result(detections, frame_data.frame_index)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no inference pass is running. Returns False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._in_flight == 0, timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting frames; drop the pending frame; optionally wait for running passes."""
        with self._cond:
            self._closed = True
            self._pending = None
        self._executor.shutdown(wait=wait)
