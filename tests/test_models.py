"""
Smoke tests for typed models.
"""

import time

import numpy as np
import pytest

from models.frame import FrameData
from models.detection import Detection, NormalizedBox
from models.overlay import OverlayRect, OverlayState
from models.config import (
    CAPTURE_PRESETS,
    Config,
    CameraConfig,
    InferenceConfig,
    OverlayConfig,
)


class TestNormalizedBox:
    def test_as_tuple(self):
        box = NormalizedBox(x=0.2, y=0.4, width=0.4, height=0.2)
        assert box.as_tuple() == (0.2, 0.4, 0.4, 0.2)

    def test_from_pixel_xyxy_flips_origin(self):
        # Top-left-origin box at the top of the frame lands near y=1 in detector space
        box = NormalizedBox.from_pixel_xyxy(0, 0, 100, 25, frame_width=200, frame_height=100)
        assert box.x == 0.0
        assert box.y == pytest.approx(0.75)
        assert box.width == pytest.approx(0.5)
        assert box.height == pytest.approx(0.25)

    def test_from_pixel_xyxy_bottom_edge(self):
        box = NormalizedBox.from_pixel_xyxy(50, 80, 150, 100, frame_width=200, frame_height=100)
        assert box.y == pytest.approx(0.0)
        assert box.height == pytest.approx(0.2)


class TestDetection:
    def test_from_xywh(self):
        det = Detection.from_xywh(0.1, 0.2, 0.3, 0.4, confidence=0.9, label="dog", class_id=16)
        assert det.box == NormalizedBox(0.1, 0.2, 0.3, 0.4)
        assert det.confidence == 0.9
        assert det.label == "dog"


class TestFrameData:
    def test_from_numpy(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        fd = FrameData.from_numpy(frame, timestamp=time.time(), frame_index=7, source="cam")
        assert fd.size == (640, 480)
        assert fd.shape == (480, 640, 3)
        assert fd.pixel_format == "BGR"
        assert fd.orientation == "up"

    def test_upright_up_is_identity(self):
        frame = np.zeros((2, 3, 3), dtype=np.uint8)
        fd = FrameData.from_numpy(frame, timestamp=0.0)
        assert fd.upright() is frame

    def test_upright_right_rotates_clockwise(self):
        frame = np.zeros((2, 3, 3), dtype=np.uint8)
        frame[0, 0] = 255  # top-left marker
        fd = FrameData.from_numpy(frame, timestamp=0.0, orientation="right")
        upright = fd.upright()
        assert upright.shape == (3, 2, 3)
        # Clockwise rotation moves the top-left pixel to the top-right
        assert upright[0, 1, 0] == 255

    def test_upright_down(self):
        frame = np.zeros((2, 3, 3), dtype=np.uint8)
        frame[0, 0] = 255
        fd = FrameData.from_numpy(frame, timestamp=0.0, orientation="down")
        assert fd.upright()[1, 2, 0] == 255


class TestOverlayModels:
    def test_rect_corners_round(self):
        rect = OverlayRect(x=10.4, y=20.6, width=30.0, height=40.0)
        assert rect.corners() == ((10, 21), (40, 61))

    def test_state_defaults_empty(self):
        state = OverlayState()
        assert state.is_empty
        assert len(state) == 0

    def test_state_len(self):
        state = OverlayState(rects=(OverlayRect(0, 0, 1, 1), OverlayRect(1, 1, 1, 1)), frame_index=3)
        assert len(state) == 2
        assert state.frame_index == 3


class TestConfigModels:
    def test_camera_resolution_from_preset(self):
        assert CameraConfig(preset="medium").resolution == CAPTURE_PRESETS["medium"]
        assert CameraConfig().resolution == (1280, 720)

    def test_config_from_dict(self, valid_config):
        config = Config.from_dict(valid_config)
        assert config.camera.position == "back"
        assert config.inference.model == "best.pt"
        assert config.overlay.color == [0, 0, 255]
        assert config.log_level == "INFO"

    def test_config_defaults_for_missing_sections(self):
        config = Config.from_dict({})
        assert config.camera == CameraConfig()
        assert config.inference == InferenceConfig()
        assert config.overlay == OverlayConfig()

    def test_roundtrip(self, valid_config):
        config = Config.from_dict(valid_config)
        assert Config.from_dict(config.to_dict()) == config
