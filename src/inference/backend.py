"""
Inference backend interface.

Backends return pixel-space detections (top-left origin) in the coordinate
system of the image they were given. The inference service converts them to
the normalized detector convention.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol

import numpy as np


class InferenceSetupError(RuntimeError):
    """The model or inference service failed to initialize."""


class InferenceRequestError(RuntimeError):
    """A single inference call failed."""


@dataclass(frozen=True)
class RawDetection:
    x1: float
    y1: float
    x2: float
    y2: float
    confidence: float = 1.0
    class_id: Optional[int] = None
    class_name: Optional[str] = None


class InferenceBackend(Protocol):
    def detect(self, image: np.ndarray) -> List[RawDetection]:
        ...
