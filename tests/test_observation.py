"""
Tests for observation layer.
"""

import sys
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from observation import opencv_source
from observation.base import ConfigurationError, DeviceUnavailable, ObservationConfig
from observation.image_source import ImageSource, ImageSourceConfig
from observation.opencv_source import OpenCVSource, OpenCVSourceConfig
from observation.picamera2_source import Picamera2Source, Picamera2SourceConfig
from models.frame import FrameData

from conftest import FakeSource


class TestObservationConfig:
    def test_default_config(self):
        config = ObservationConfig()
        assert config.source_id == "default"
        assert config.resolution is None
        assert config.fps is None
        assert config.orientation == "up"

    def test_custom_config(self):
        config = ObservationConfig(
            source_id="back-camera",
            resolution=(1920, 1080),
            fps=30,
            orientation="right",
        )
        assert config.source_id == "back-camera"
        assert config.resolution == (1920, 1080)
        assert config.orientation == "right"


class TestFakeSource:
    def test_source_lifecycle(self):
        source = FakeSource(ObservationConfig(source_id="test"), max_frames=3)

        assert not source.is_open
        source.open()
        assert source.is_open
        assert source.frame_index == 0

        fd = source.read()
        assert fd is not None
        assert fd.source == "test"
        assert fd.frame_index == 1

        source.close()
        assert not source.is_open

    def test_context_manager_and_iteration(self):
        with FakeSource(ObservationConfig(source_id="iter"), max_frames=5) as source:
            collected = list(source)

        assert [fd.frame_index for fd in collected] == [1, 2, 3, 4, 5]
        assert not source.is_open

    def test_orientation_stamped_on_frames(self):
        with FakeSource(ObservationConfig(orientation="left"), max_frames=1) as source:
            fd = source.read()
        assert fd.orientation == "left"

    def test_iteration_requires_open(self):
        source = FakeSource(max_frames=0)

        with pytest.raises(RuntimeError, match="must be open"):
            list(source)


def _mock_capture(opened=True, frame=None):
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.read.return_value = (frame is not None, frame)
    cap.get.return_value = 0
    return cap


class TestOpenCVSource:
    def test_missing_device_raises_device_unavailable(self):
        cap = _mock_capture(opened=False)
        source = OpenCVSource(OpenCVSourceConfig(device_id=3, warmup_seconds=0))

        with patch.object(opencv_source.cv2, "VideoCapture", return_value=cap):
            with pytest.raises(DeviceUnavailable):
                source.open()

        assert not source.is_open
        cap.release.assert_called_once()

    def test_no_frames_raises_configuration_error(self):
        cap = _mock_capture(opened=True, frame=None)
        source = OpenCVSource(OpenCVSourceConfig(device_id=0, warmup_seconds=0))

        with patch.object(opencv_source.cv2, "VideoCapture", return_value=cap):
            with pytest.raises(ConfigurationError):
                source.open()

        assert not source.is_open

    def test_open_is_not_retried(self):
        cap = _mock_capture(opened=False)
        source = OpenCVSource(OpenCVSourceConfig(device_id=0, warmup_seconds=0))

        with patch.object(opencv_source.cv2, "VideoCapture", return_value=cap) as factory:
            with pytest.raises(DeviceUnavailable):
                source.open()

        assert factory.call_count == 1

    def test_open_frame_is_delivered_first(self):
        first = np.full((480, 640, 3), 7, dtype=np.uint8)
        cap = _mock_capture(opened=True, frame=first)
        config = OpenCVSourceConfig(
            source_id="back-camera",
            device_id=0,
            resolution=(640, 480),
            orientation="right",
            warmup_seconds=0,
        )
        source = OpenCVSource(config)

        with patch.object(opencv_source.cv2, "VideoCapture", return_value=cap):
            source.open()
            fd = source.read()
            source.close()

        assert fd.frame is first
        assert fd.frame_index == 1
        assert fd.orientation == "right"
        assert fd.source == "back-camera"
        # Frame read during open, no extra read for the first frame
        assert cap.read.call_count == 1

    def test_read_failure_returns_none(self):
        first = np.zeros((10, 10, 3), dtype=np.uint8)
        cap = _mock_capture(opened=True, frame=first)
        source = OpenCVSource(OpenCVSourceConfig(device_id=0, warmup_seconds=0))

        with patch.object(opencv_source.cv2, "VideoCapture", return_value=cap):
            source.open()
            source.read()
            cap.read.return_value = (False, None)
            assert source.read() is None

    def test_close_is_idempotent(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        source.close()
        source.close()
        assert not source.is_open


class TestImageSource:
    def test_delivers_exactly_one_frame(self, sample_image):
        source = ImageSource(ImageSourceConfig(source_id="image", path=sample_image))

        with source:
            frames = list(source)

        assert len(frames) == 1
        assert frames[0].size == (200, 100)
        assert source.is_finite

    def test_missing_file_is_device_unavailable(self, tmp_path):
        source = ImageSource(ImageSourceConfig(path=str(tmp_path / "nope.png")))

        with pytest.raises(DeviceUnavailable):
            source.open()

    def test_undecodable_file_is_device_unavailable(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")
        source = ImageSource(ImageSourceConfig(path=str(path)))

        with pytest.raises(DeviceUnavailable):
            source.open()


class TestPicamera2Source:
    def test_missing_library_is_device_unavailable(self):
        source = Picamera2Source(Picamera2SourceConfig())

        with patch.dict(sys.modules, {"picamera2": None}):
            with pytest.raises(DeviceUnavailable, match="Picamera2"):
                source.open()

    def test_no_cameras_is_device_unavailable(self):
        module = MagicMock()
        module.Picamera2.global_camera_info.return_value = []
        source = Picamera2Source(Picamera2SourceConfig(camera_num=0))

        with patch.dict(sys.modules, {"picamera2": module}):
            with pytest.raises(DeviceUnavailable):
                source.open()

    def test_configure_failure_is_configuration_error(self):
        module = MagicMock()
        module.Picamera2.global_camera_info.return_value = [{"Num": 0}]
        module.Picamera2.return_value.configure.side_effect = RuntimeError("busy")
        source = Picamera2Source(Picamera2SourceConfig(camera_num=0))

        with patch.dict(sys.modules, {"picamera2": module}):
            with pytest.raises(ConfigurationError, match="busy"):
                source.open()

    def test_frames_converted_to_bgr(self):
        module = MagicMock()
        module.Picamera2.global_camera_info.return_value = [{"Num": 0}]
        rgb = np.zeros((4, 4, 3), dtype=np.uint8)
        rgb[..., 0] = 255  # red channel first in RGB
        module.Picamera2.return_value.capture_array.return_value = rgb
        source = Picamera2Source(Picamera2SourceConfig(camera_num=0))

        with patch.dict(sys.modules, {"picamera2": module}):
            source.open()
            fd = source.read()
            source.close()

        assert isinstance(fd, FrameData)
        assert fd.frame[0, 0, 2] == 255
        assert fd.frame[0, 0, 0] == 0
