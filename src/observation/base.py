"""
ObservationSource interface for pluggable video/image sources.

This defines the contract that all observation sources must implement,
enabling the capture session to work with any frame source:
- USB/built-in cameras (OpenCV)
- Raspberry Pi CSI cameras (Picamera2)
- Still image files
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from models.frame import FrameData


class DeviceUnavailable(RuntimeError):
    """No capture device matches the requested selector."""


class ConfigurationError(RuntimeError):
    """The device exists but could not be attached to the capture session."""


@dataclass
class ObservationConfig:
    """
    Base configuration for observation sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "back-camera").
        resolution: Target resolution as (width, height). None = use source default.
        fps: Target frames per second. None = use source default.
        orientation: Orientation hint stamped on every frame.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    orientation: str = "up"
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    Abstract base class for observation sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to initialize the source
        3. Call read() repeatedly to get frames
        4. Call close() to release resources

    Can also be used as a context manager:
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data)
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        """Whether the source is currently open and ready to read."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Current frame index (number of frames read since open)."""
        return self._frame_index

    @property
    def is_finite(self) -> bool:
        """Whether running out of frames means the source is exhausted."""
        return False

    @abstractmethod
    def open(self) -> None:
        """
        Open/initialize the observation source.

        Must be called before read(). The device is opened exactly once;
        failures are not retried.

        Raises:
            DeviceUnavailable: If no matching device exists.
            ConfigurationError: If the device cannot be configured or attached.
        """
        pass

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """
        Read the next frame from the source.

        Returns:
            FrameData for the frame, or None if no frame is available.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Close/release the observation source.

        Safe to call multiple times.
        """
        pass

    def _make_frame(self, frame, timestamp: float) -> FrameData:
        self._frame_index += 1
        return FrameData(
            frame=frame,
            width=frame.shape[1],
            height=frame.shape[0],
            timestamp=timestamp,
            frame_index=self._frame_index,
            source=self.source_id,
            orientation=self._config.orientation,
        )

    def __enter__(self) -> "ObservationSource":
        """Context manager entry - opens the source."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes the source."""
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        """
        Iterate over frames from the source.

        Yields FrameData objects until the source is exhausted or closed.
        """
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        while True:
            frame_data = self.read()
            if frame_data is None:
                break
            yield frame_data
