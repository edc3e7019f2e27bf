"""
Inference service: the object detector as seen by the rest of the app.

The service is loaded once at startup. Each call takes one FrameData,
rotates it upright, applies the crop/scale policy, runs the backend and
returns detections normalized to [0, 1] with a bottom-left origin.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, List, Optional, Tuple

import numpy as np

from models.config import CROP_AND_SCALE_OPTIONS, InferenceConfig
from models.detection import Detection, NormalizedBox
from models.frame import FrameData
from .backend import InferenceBackend, InferenceRequestError, InferenceSetupError, RawDetection
from .cpu_backend import UltralyticsBackend, UltralyticsConfig

BackendFactory = Callable[[InferenceConfig, str], InferenceBackend]

INFERENCE_BACKENDS = ("ultralytics",)


def _ultralytics_factory(cfg: InferenceConfig, model_path: str) -> InferenceBackend:
    return UltralyticsBackend(UltralyticsConfig(
        model=model_path,
        conf_threshold=cfg.conf_threshold,
        iou_threshold=cfg.iou_threshold,
        class_name_overrides=cfg.class_name_overrides,
    ))


def resolve_model_path(model: str, resource_dir: Optional[str]) -> str:
    """
    Resolve a model reference against the resource directory.

    Absolute or existing paths are used as-is; otherwise a file of that name
    under resource_dir wins. Anything else is passed through so the backend
    can resolve named models itself.
    """
    if os.path.isabs(model) or os.path.exists(model):
        return model
    if resource_dir:
        candidate = os.path.join(resource_dir, model)
        if os.path.exists(candidate):
            return candidate
    return model


def center_crop_region(width: int, height: int) -> Tuple[int, int, int]:
    """Return (x_offset, y_offset, side) of the centered square crop."""
    side = min(width, height)
    return ((width - side) // 2, (height - side) // 2, side)


class InferenceService:
    """
    Wraps an InferenceBackend behind a one-time load step.

    Example:
        service = InferenceService(InferenceConfig(model="best.pt"))
        service.load()
        detections = service.detect(frame_data)
    """

    def __init__(self, cfg: InferenceConfig, backend_factory: Optional[BackendFactory] = None):
        self.cfg = cfg
        self._backend_factory = backend_factory
        self._backend: Optional[InferenceBackend] = None
        self._calls = 0
        self._calls_lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._backend is not None

    @property
    def calls(self) -> int:
        """Number of detect() calls that reached the backend."""
        return self._calls

    def load(self) -> None:
        """
        Initialize the model. Called once at startup.

        Raises:
            InferenceSetupError: Unknown backend/policy or the model failed to load.
        """
        if self._backend is not None:
            return
        if self.cfg.crop_and_scale not in CROP_AND_SCALE_OPTIONS:
            raise InferenceSetupError(f"Unknown crop_and_scale option: {self.cfg.crop_and_scale}")

        factory = self._backend_factory
        if factory is None:
            if self.cfg.backend not in INFERENCE_BACKENDS:
                raise InferenceSetupError(f"Unknown inference backend: {self.cfg.backend}")
            factory = _ultralytics_factory

        model_path = resolve_model_path(self.cfg.model, self.cfg.resource_dir)
        try:
            self._backend = factory(self.cfg, model_path)
        except InferenceSetupError:
            raise
        except Exception as e:
            raise InferenceSetupError(f"Failed to initialize model {model_path}: {e}") from e

        logging.info(
            f"Inference service loaded: backend={self.cfg.backend}, model={model_path}, "
            f"crop_and_scale={self.cfg.crop_and_scale}"
        )

    def detect(self, frame_data: FrameData) -> List[Detection]:
        """
        Run the detector on one frame.

        Raises:
            InferenceSetupError: The service was never loaded.
            InferenceRequestError: The backend failed on this frame.
        """
        if self._backend is None:
            raise InferenceSetupError("Inference service is not loaded")

        image = frame_data.upright()
        full_h, full_w = image.shape[:2]

        offset_x, offset_y = 0, 0
        if self.cfg.crop_and_scale == "center_crop":
            offset_x, offset_y, side = center_crop_region(full_w, full_h)
            image = image[offset_y:offset_y + side, offset_x:offset_x + side]

        with self._calls_lock:
            self._calls += 1
        try:
            raw = self._backend.detect(image)
            return [
                self._normalize(r, offset_x, offset_y, full_w, full_h)
                for r in raw
            ]
        except Exception as e:
            raise InferenceRequestError(
                f"Inference failed on frame {frame_data.frame_index}: {e}"
            ) from e

    @staticmethod
    def _normalize(
        r: RawDetection,
        offset_x: int,
        offset_y: int,
        width: int,
        height: int,
    ) -> Detection:
        box = NormalizedBox.from_pixel_xyxy(
            r.x1 + offset_x,
            r.y1 + offset_y,
            r.x2 + offset_x,
            r.y2 + offset_y,
            width,
            height,
        )
        return Detection(
            box=box,
            confidence=r.confidence,
            label=r.class_name,
            class_id=r.class_id,
        )
