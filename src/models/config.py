"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


# Capture quality presets -> (width, height)
CAPTURE_PRESETS: Dict[str, Tuple[int, int]] = {
    "photo": (1920, 1080),
    "high": (1280, 720),
    "medium": (640, 480),
    "low": (320, 240),
}

CROP_AND_SCALE_OPTIONS = ("scale_fit", "center_crop")


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    position: str = "back"
    device_id: Optional[int] = None
    image_path: Optional[str] = None
    preset: str = "high"
    orientation: str = "up"
    fps: int = 30
    max_consecutive_failures: int = 10

    @property
    def resolution(self) -> Tuple[int, int]:
        return CAPTURE_PRESETS.get(self.preset, CAPTURE_PRESETS["high"])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            position=d.get("position", "back"),
            device_id=d.get("device_id"),
            image_path=d.get("image_path"),
            preset=d.get("preset", "high"),
            orientation=d.get("orientation", "up"),
            fps=d.get("fps", 30),
            max_consecutive_failures=d.get("max_consecutive_failures", 10),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "position": self.position,
            "device_id": self.device_id,
            "image_path": self.image_path,
            "preset": self.preset,
            "orientation": self.orientation,
            "fps": self.fps,
            "max_consecutive_failures": self.max_consecutive_failures,
        }


@dataclass
class InferenceConfig:
    """Inference service configuration."""
    backend: str = "ultralytics"
    model: str = "yolov8n.pt"
    resource_dir: Optional[str] = "resources"
    crop_and_scale: str = "scale_fit"
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    max_in_flight: int = 1
    class_name_overrides: Optional[Dict[int, str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InferenceConfig":
        return cls(
            backend=d.get("backend", "ultralytics"),
            model=d.get("model", "yolov8n.pt"),
            resource_dir=d.get("resource_dir", "resources"),
            crop_and_scale=d.get("crop_and_scale", "scale_fit"),
            conf_threshold=d.get("conf_threshold", 0.25),
            iou_threshold=d.get("iou_threshold", 0.45),
            max_in_flight=d.get("max_in_flight", 1),
            class_name_overrides=d.get("class_name_overrides"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "backend": self.backend,
            "model": self.model,
            "resource_dir": self.resource_dir,
            "crop_and_scale": self.crop_and_scale,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
            "max_in_flight": self.max_in_flight,
        }
        if self.class_name_overrides is not None:
            d["class_name_overrides"] = self.class_name_overrides
        return d


@dataclass
class OverlayConfig:
    """Overlay rendering configuration. width/height None = follow the frame size."""
    width: Optional[int] = None
    height: Optional[int] = None
    show_confidence: bool = True
    line_width: int = 2
    color: List[int] = field(default_factory=lambda: [0, 0, 255])  # BGR red

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverlayConfig":
        return cls(
            width=d.get("width"),
            height=d.get("height"),
            show_confidence=d.get("show_confidence", True),
            line_width=d.get("line_width", 2),
            color=d.get("color", [0, 0, 255]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "show_confidence": self.show_confidence,
            "line_width": self.line_width,
            "color": self.color,
        }


@dataclass
class DisplayConfig:
    """Preview window configuration."""
    enabled: bool = True
    window_name: str = "Object Detection"
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DisplayConfig":
        return cls(
            enabled=d.get("enabled", True),
            window_name=d.get("window_name", "Object Detection"),
            stats_log_interval=d.get("stats_log_interval", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "window_name": self.window_name,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    log_path: str = "logs/app.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            inference=InferenceConfig.from_dict(d.get("inference") or {}),
            overlay=OverlayConfig.from_dict(d.get("overlay") or {}),
            display=DisplayConfig.from_dict(d.get("display") or {}),
            log_path=d.get("log_path", "logs/app.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "camera": self.camera.to_dict(),
            "inference": self.inference.to_dict(),
            "overlay": self.overlay.to_dict(),
            "display": self.display.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
