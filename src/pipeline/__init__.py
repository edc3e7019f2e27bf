"""
Pipeline module for the detection overlay application.

The pipeline orchestrates the full processing flow:
- Frame acquisition from the capture session
- Inference on worker threads
- Overlay updates applied on the surface-owning thread
"""

from .engine import PipelineEngine, PipelineConfig, PipelineStats, create_engine_from_config

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "PipelineStats",
    "create_engine_from_config",
]
