"""
Pipeline engine for the detection overlay application.

Wires the capture session to the overlay renderer and runs the
surface-owning loop: drain posted overlay updates, compose the preview with
the overlay, show it, repeat.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import capture
from capture.session import CameraSelector, CaptureSession
from inference.backend import InferenceSetupError
from models.config import Config
from models.frame import FrameData
from observation.base import ConfigurationError, DeviceUnavailable
from runtime.context import RuntimeContext


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        stats_log_interval: Seconds between status log messages.
        max_frames: Stop after this many captured frames (None = run until quit).
        linger: Keep showing the last overlay after a finite source is exhausted,
            until the user quits the window.
        idle_sleep: Loop pause when no window paces the loop.
    """
    stats_log_interval: float = 60.0
    max_frames: Optional[int] = None
    linger: bool = True
    idle_sleep: float = 0.005


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    frames_captured: int = 0
    frames_displayed: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


class PipelineEngine:
    """
    Runs capture -> inference -> overlay until stopped.

    The thread calling run() owns the overlay surface.

    Example:
        ctx = RuntimeContext.from_config(config)
        engine = PipelineEngine(CameraSelector(), ctx, PipelineConfig())
        engine.run()
    """

    def __init__(
        self,
        selector: CameraSelector,
        ctx: RuntimeContext,
        config: PipelineConfig,
    ):
        self.selector = selector
        self.ctx = ctx
        self.config = config
        self.stats = PipelineStats()
        self.session: Optional[CaptureSession] = None
        self._running = False

    def on_frame(self, frame_data: FrameData) -> None:
        """Frame delivery callback; runs on the capture thread."""
        max_frames = self.config.max_frames
        if max_frames is not None and self.stats.frames_captured >= max_frames:
            return
        self.stats.frames_captured += 1
        self.ctx.preview.set_frame(frame_data)
        self.ctx.renderer.submit(frame_data)
        if max_frames is not None and self.stats.frames_captured >= max_frames:
            self._running = False

    def run(self) -> None:
        """
        Load the model, start capture and run the surface loop.

        Raises:
            InferenceSetupError: The model failed to load. Capture is never started.
        """
        self.ctx.dispatcher.claim()
        self.stats = PipelineStats()

        try:
            self.ctx.service.load()
        except InferenceSetupError as e:
            logging.error(f"Inference setup failed: {e}")
            self.ctx.renderer.shutdown(wait=False)
            raise

        self._running = True
        try:
            self.session = capture.start(self.selector, self.on_frame, self.ctx.config.camera)
            self.ctx.session = self.session
            logging.info(f"Pipeline started: source={self.session.source.source_id}")

            while self._running:
                if not self._tick():
                    break
                if self._exhausted():
                    if not self._should_linger():
                        break
        except (DeviceUnavailable, ConfigurationError) as e:
            logging.error(f"Camera unavailable, pipeline not started: {e}")
        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the pipeline to stop after the current loop iteration."""
        self._running = False

    def _tick(self) -> bool:
        """One iteration of the surface loop. Returns False if the user quit."""
        ctx = self.ctx
        self._sync_surface_size()
        ctx.dispatcher.drain()

        keep_going = True
        if ctx.display is not None:
            width, height = ctx.surface.size
            composed = ctx.surface.compose(ctx.preview.render(width, height))
            keep_going = ctx.display.show(composed)
            self.stats.frames_displayed += 1
        else:
            time.sleep(self.config.idle_sleep)

        self._handle_periodic_tasks()
        return keep_going

    def _sync_surface_size(self) -> None:
        """Follow the upright frame size unless the overlay size is configured."""
        if self.ctx.surface_size_fixed:
            return
        frame_size = self.ctx.preview.frame_size
        if frame_size is not None and frame_size != self.ctx.surface.size:
            self.ctx.surface.resize(*frame_size)

    def _should_linger(self) -> bool:
        return (
            self.config.linger
            and self.ctx.display is not None
            and self.session is not None
            and self.session.source.is_finite
        )

    def _exhausted(self) -> bool:
        """True once the producer has ended and every result has been applied."""
        return (
            self.session is not None
            and self.session.producer_done
            and self.ctx.renderer.in_flight == 0
            and self.ctx.dispatcher.pending == 0
        )

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            r = self.ctx.renderer.stats
            logging.info(
                f"Pipeline stats: frames={self.stats.frames_captured}, "
                f"submitted={r.frames_submitted}, superseded={r.frames_superseded}, "
                f"passes={r.passes_completed}, failed={r.passes_failed}, "
                f"applied={r.results_applied}, boxes={len(self.ctx.surface.state)}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        self._running = False
        capture.stop(self.session)
        self.ctx.renderer.shutdown(wait=True)
        self.ctx.dispatcher.drain()
        self._sync_surface_size()
        if self.ctx.display is not None:
            self.ctx.display.close()
        logging.info(
            f"Pipeline stopped: frames={self.stats.frames_captured}, "
            f"results={self.ctx.renderer.stats.results_applied}"
        )


def create_engine_from_config(
    config: Config,
    display: bool = True,
    max_frames: Optional[int] = None,
    ctx: Optional[RuntimeContext] = None,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from a typed config.

    Args:
        config: Full application config.
        display: Show the preview window.
        max_frames: Stop after this many frames.
        ctx: Prebuilt runtime context (tests inject fake services here).
    """
    ctx = ctx or RuntimeContext.from_config(config, display=display and config.display.enabled)
    selector = CameraSelector.from_camera_config(config.camera)
    pipeline_config = PipelineConfig(
        stats_log_interval=config.display.stats_log_interval,
        max_frames=max_frames,
    )
    return PipelineEngine(selector, ctx, pipeline_config)
