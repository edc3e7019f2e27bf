"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from inference.backend import RawDetection  # noqa: E402
from inference.service import InferenceService  # noqa: E402
from models.config import InferenceConfig  # noqa: E402
from models.frame import FrameData  # noqa: E402
from observation.base import ObservationConfig, ObservationSource  # noqa: E402


class FakeBackend:
    """Inference backend returning a fixed list of pixel detections."""

    def __init__(self, detections=None, error=None):
        self.detections = list(detections or [])
        self.error = error
        self.images = []

    def detect(self, image):
        self.images.append(image)
        if self.error is not None:
            raise self.error
        return list(self.detections)


class GatedBackend(FakeBackend):
    """Backend that blocks every call until `gate` is set."""

    def __init__(self, detections=None):
        super().__init__(detections)
        self.gate = threading.Event()
        self.started = threading.Event()

    def detect(self, image):
        self.started.set()
        self.gate.wait(timeout=5)
        return super().detect(image)


class FakeSource(ObservationSource):
    """Observation source producing synthetic frames."""

    def __init__(self, config=None, max_frames=None, interval=0.0, open_error=None, finite=True):
        super().__init__(config or ObservationConfig(source_id="fake"))
        self.max_frames = max_frames
        self.interval = interval
        self.open_error = open_error
        self.finite = finite
        self.open_calls = 0
        self.close_calls = 0

    @property
    def is_finite(self) -> bool:
        return self.finite

    def open(self) -> None:
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error
        self._is_open = True
        self._frame_index = 0

    def read(self):
        if not self._is_open:
            return None
        if self.max_frames is not None and self._frame_index >= self.max_frames:
            return None
        if self.interval:
            time.sleep(self.interval)
        frame = np.full((100, 200, 3), self._frame_index + 1, dtype=np.uint8)
        return self._make_frame(frame, time.time())

    def close(self) -> None:
        self.close_calls += 1
        self._is_open = False


def make_frame(value=0, width=200, height=100, frame_index=1, orientation="up"):
    frame = np.full((height, width, 3), value, dtype=np.uint8)
    return FrameData.from_numpy(frame, time.time(), frame_index=frame_index, orientation=orientation)


def make_service(backend, **cfg):
    service = InferenceService(
        InferenceConfig(**cfg),
        backend_factory=lambda _cfg, _path: backend,
    )
    return service


@pytest.fixture
def fake_backend():
    # Box covering x 50..150, y 50..75 of a 200x100 frame
    return FakeBackend([RawDetection(50, 50, 150, 75, confidence=0.9, class_id=2, class_name="car")])


@pytest.fixture
def loaded_service(fake_backend):
    service = make_service(fake_backend)
    service.load()
    return service


@pytest.fixture
def sample_image(tmp_path):
    """A 200x100 PNG on disk."""
    import cv2

    path = tmp_path / "sample.png"
    cv2.imwrite(str(path), np.zeros((100, 200, 3), dtype=np.uint8))
    return str(path)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  position: "back"
  preset: "medium"
  fps: 30

inference:
  backend: "ultralytics"
  model: "yolov8n.pt"
  crop_and_scale: "scale_fit"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "position": "back",
            "preset": "high",
            "orientation": "up",
            "fps": 30,
        },
        "inference": {
            "backend": "ultralytics",
            "model": "best.pt",
            "crop_and_scale": "scale_fit",
            "conf_threshold": 0.25,
            "max_in_flight": 1,
        },
        "overlay": {
            "show_confidence": True,
            "color": [0, 0, 255],
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
