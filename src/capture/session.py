"""
Capture session manager.

Opens the selected camera once and pushes every captured frame to a
registered consumer from a dedicated producer thread. The producer never
waits for the consumer to finish with a previous frame; consumers that are
slower than the camera must cope with overlapping deliveries themselves.

Usage:
    session = start(CameraSelector(position="back"), renderer.submit)
    ...
    stop(session)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from models.config import CAPTURE_PRESETS, CameraConfig
from models.frame import ORIENTATIONS, FrameData
from observation import (
    ConfigurationError,
    DeviceUnavailable,
    ImageSource,
    ImageSourceConfig,
    ObservationSource,
    OpenCVSource,
    OpenCVSourceConfig,
    Picamera2Source,
    Picamera2SourceConfig,
)

FrameCallback = Callable[[FrameData], None]

# Default device index per camera position when no explicit index is given.
CAMERA_POSITIONS = {"back": 0, "front": 1}

CAMERA_BACKENDS = ("opencv", "picamera2", "image")


@dataclass(frozen=True)
class CameraSelector:
    """
    Which capture device to open.

    Attributes:
        backend: "opencv", "picamera2" or "image".
        position: "back" (default) or "front"; mapped to a device index.
        device_id: Explicit device index; overrides position.
        image_path: Image file for the "image" backend.
    """
    backend: str = "opencv"
    position: str = "back"
    device_id: Optional[int] = None
    image_path: Optional[str] = None

    @classmethod
    def from_camera_config(cls, cfg: CameraConfig) -> "CameraSelector":
        return cls(
            backend=cfg.backend,
            position=cfg.position,
            device_id=cfg.device_id,
            image_path=cfg.image_path,
        )

    def device_index(self) -> int:
        if self.device_id is not None:
            return self.device_id
        if self.position not in CAMERA_POSITIONS:
            raise DeviceUnavailable(f"Unknown camera position: {self.position}")
        return CAMERA_POSITIONS[self.position]


def create_source(selector: CameraSelector, camera_cfg: Optional[CameraConfig] = None) -> ObservationSource:
    """
    Build (but do not open) the observation source for a selector.

    Raises:
        DeviceUnavailable: Unknown camera position.
        ConfigurationError: Unknown backend, preset or orientation.
    """
    cfg = camera_cfg or CameraConfig()
    if cfg.preset not in CAPTURE_PRESETS:
        raise ConfigurationError(f"Unknown capture preset: {cfg.preset}")
    if cfg.orientation not in ORIENTATIONS:
        raise ConfigurationError(f"Unknown orientation hint: {cfg.orientation}")

    if selector.backend == "image":
        return ImageSource(ImageSourceConfig(
            source_id="image",
            orientation=cfg.orientation,
            path=selector.image_path or "",
        ))

    source_id = f"{selector.position}-camera"
    if selector.backend == "opencv":
        return OpenCVSource(OpenCVSourceConfig(
            source_id=source_id,
            resolution=cfg.resolution,
            fps=cfg.fps,
            orientation=cfg.orientation,
            device_id=selector.device_index(),
        ))
    if selector.backend == "picamera2":
        return Picamera2Source(Picamera2SourceConfig(
            source_id=source_id,
            resolution=cfg.resolution,
            fps=cfg.fps,
            orientation=cfg.orientation,
            camera_num=selector.device_index(),
        ))
    raise ConfigurationError(
        f"Unknown camera backend: {selector.backend} (expected one of {', '.join(CAMERA_BACKENDS)})"
    )


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"


class CaptureSession:
    """
    Owns one observation source and the producer thread reading from it.

    Frames are delivered on the producer thread, one call per captured frame.
    After stop() returns no further frames are delivered.
    """

    def __init__(
        self,
        source: ObservationSource,
        deliver: FrameCallback,
        max_consecutive_failures: int = 10,
        read_retry_delay: float = 0.05,
    ):
        self.source = source
        self._deliver = deliver
        self.max_consecutive_failures = max_consecutive_failures
        self.read_retry_delay = read_retry_delay
        self.state = SessionState.IDLE
        self.frames_delivered = 0
        self.consecutive_failures = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self.state == SessionState.RUNNING

    def start(self) -> None:
        """
        Open the source and begin delivering frames.

        Raises:
            DeviceUnavailable: No matching device.
            ConfigurationError: The device could not be attached.
        """
        with self._lock:
            if self.state != SessionState.IDLE:
                return
            try:
                self.source.open()
            except (DeviceUnavailable, ConfigurationError):
                self.state = SessionState.FAILED
                self.source.close()
                raise

            self.state = SessionState.RUNNING
            self._thread = threading.Thread(
                target=self._run,
                name=f"capture-{self.source.source_id}",
                daemon=True,
            )
            self._thread.start()
        logging.info(f"Capture session started: source={self.source.source_id}")

    def stop(self) -> None:
        """Halt frame delivery and release the device. Idempotent."""
        with self._lock:
            if self.state != SessionState.RUNNING:
                if self.state == SessionState.IDLE:
                    self.state = SessionState.STOPPED
                return
            self.state = SessionState.STOPPED
            self._stop_event.set()
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self.source.close()
        logging.info(
            f"Capture session stopped: source={self.source.source_id}, "
            f"frames={self.frames_delivered}"
        )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the producer thread exits. Returns True if it has."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    @property
    def producer_done(self) -> bool:
        return self._thread is not None and not self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            frame_data = self.source.read()

            if frame_data is None:
                if self.source.is_finite:
                    logging.info(f"Source exhausted: {self.source.source_id}")
                    break
                self.consecutive_failures += 1
                if self.consecutive_failures >= self.max_consecutive_failures:
                    logging.error(
                        f"Too many consecutive read failures ({self.consecutive_failures}), "
                        f"capture stopped"
                    )
                    break
                logging.warning(
                    f"Frame read failed ({self.consecutive_failures}/"
                    f"{self.max_consecutive_failures})"
                )
                self._stop_event.wait(self.read_retry_delay)
                continue

            self.consecutive_failures = 0
            if self._stop_event.is_set():
                break
            try:
                self._deliver(frame_data)
            except Exception as e:
                logging.warning(f"Frame consumer error: {e}")
            self.frames_delivered += 1


def start(
    selector: CameraSelector,
    deliver: FrameCallback,
    camera_cfg: Optional[CameraConfig] = None,
) -> CaptureSession:
    """
    Open the selected camera and stream frames to `deliver`.

    Raises:
        DeviceUnavailable: No matching device exists.
        ConfigurationError: The device cannot be attached to the session.
    """
    cfg = camera_cfg or CameraConfig()
    source = create_source(selector, cfg)
    session = CaptureSession(
        source,
        deliver,
        max_consecutive_failures=cfg.max_consecutive_failures,
    )
    session.start()
    return session


def stop(session: Optional[CaptureSession]) -> None:
    """Halt frame delivery. Safe on None, unstarted or already stopped sessions."""
    if session is None:
        return
    session.stop()
