"""
Live object detection overlay.

Opens the back camera, runs every frame through the object detector and
draws the returned boxes over the live preview.

Usage:
    python src/main.py --config config/config.yaml
    python src/main.py --image samples/car.jpg

Arguments:
    --config: Path to configuration file
    --image: Run the detector on one still image instead of the camera
    --headless: Do not open a preview window
    --max-frames: Stop after this many captured frames
"""

import os
import sys
import argparse
import logging
from typing import Any, Dict, Optional, Tuple

import yaml

from capture.session import CAMERA_BACKENDS, CAMERA_POSITIONS
from inference.backend import InferenceSetupError
from inference.service import INFERENCE_BACKENDS
from models.config import CAPTURE_PRESETS, CROP_AND_SCALE_OPTIONS, Config
from models.frame import ORIENTATIONS
from ops.logging import setup_logging
from pipeline.engine import create_engine_from_config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Explicit config_path last, unless it is the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'inference', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    backend = camera.get('backend', 'opencv')
    if backend not in CAMERA_BACKENDS:
        return False, f"camera.backend must be one of: {', '.join(CAMERA_BACKENDS)}"
    if camera.get('position', 'back') not in CAMERA_POSITIONS:
        return False, f"camera.position must be one of: {', '.join(CAMERA_POSITIONS)}"
    device_id = camera.get('device_id')
    if device_id is not None and (not isinstance(device_id, int) or device_id < 0):
        return False, "camera.device_id must be a non-negative integer"
    if backend == 'image' and not camera.get('image_path'):
        return False, "camera.image_path is required when camera.backend is 'image'"
    if camera.get('preset', 'high') not in CAPTURE_PRESETS:
        return False, f"camera.preset must be one of: {', '.join(CAPTURE_PRESETS)}"
    if camera.get('orientation', 'up') not in ORIENTATIONS:
        return False, f"camera.orientation must be one of: {', '.join(ORIENTATIONS)}"
    fps = camera.get('fps', 30)
    if not isinstance(fps, int) or fps <= 0:
        return False, "camera.fps must be a positive integer"

    # Inference
    inference = config.get('inference') or {}
    if inference.get('backend', 'ultralytics') not in INFERENCE_BACKENDS:
        return False, f"inference.backend must be one of: {', '.join(INFERENCE_BACKENDS)}"
    model = inference.get('model')
    if not isinstance(model, str) or not model:
        return False, "inference.model is required"
    if inference.get('crop_and_scale', 'scale_fit') not in CROP_AND_SCALE_OPTIONS:
        return False, f"inference.crop_and_scale must be one of: {', '.join(CROP_AND_SCALE_OPTIONS)}"
    for key in ('conf_threshold', 'iou_threshold'):
        if key in inference:
            value = inference[key]
            if not isinstance(value, (int, float)) or not (0 <= value <= 1):
                return False, f"inference.{key} must be between 0 and 1"
    max_in_flight = inference.get('max_in_flight', 1)
    if not isinstance(max_in_flight, int) or max_in_flight < 1:
        return False, "inference.max_in_flight must be a positive integer"

    # Overlay (optional)
    overlay = config.get('overlay') or {}
    for key in ('width', 'height'):
        value = overlay.get(key)
        if value is not None and (not isinstance(value, int) or value <= 0):
            return False, f"overlay.{key} must be a positive integer"
    color = overlay.get('color', [0, 0, 255])
    if not isinstance(color, list) or len(color) != 3 or not all(isinstance(c, int) and 0 <= c <= 255 for c in color):
        return False, "overlay.color must be a list of three 0-255 integers (BGR)"

    # Logging
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def main(argv=None) -> int:
    """Main application function."""
    parser = argparse.ArgumentParser(description='Live object detection overlay')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--image', type=str, default=None,
                        help='Run on a single image file instead of the camera')
    parser.add_argument('--headless', action='store_true',
                        help='Do not open a preview window')
    parser.add_argument('--max-frames', type=int, default=None,
                        help='Stop after this many captured frames')
    args = parser.parse_args(argv)

    raw_config = load_config(args.config)
    if args.image:
        raw_config.setdefault('camera', {})
        raw_config['camera']['backend'] = 'image'
        raw_config['camera']['image_path'] = args.image

    is_valid, error = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Invalid configuration: {error}")
        return 1

    config = Config.from_dict(raw_config)
    setup_logging(config.log_path, config.log_level)
    logging.info(f"Starting detection overlay (camera={config.camera.backend}, model={config.inference.model})")

    engine = create_engine_from_config(
        config,
        display=not args.headless,
        max_frames=args.max_frames,
    )
    try:
        engine.run()
    except InferenceSetupError:
        logging.critical("Model failed to load; exiting")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
