"""
Inference layer: the object detector treated as an external service.
"""

from .backend import InferenceBackend, InferenceRequestError, InferenceSetupError, RawDetection
from .service import InferenceService, resolve_model_path

__all__ = [
    "InferenceBackend",
    "InferenceRequestError",
    "InferenceSetupError",
    "RawDetection",
    "InferenceService",
    "resolve_model_path",
]
