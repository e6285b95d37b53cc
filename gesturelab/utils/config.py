"""
Centralized configuration manager.
Loads the YAML config over built-in defaults and provides dot-path access.

Sections:
    camera, mediapipe, session, predictor, model,
    data_collection, visualization, logging
"""

import os
import copy
import logging

import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

DEFAULTS = {
    "camera": {
        "device_id": 0,
        "width": 640,
        "height": 480,
        "fps": 30,
        "backend": "auto",
        "flip_horizontal": True,
        "warmup_frames": 5,
        "threaded": True,
    },
    "mediapipe": {
        "max_num_hands": 2,
        "model_complexity": 1,
        "min_detection_confidence": 0.7,
        "min_tracking_confidence": 0.5,
    },
    "session": {
        "frame_limit": 30,
        "num_landmarks": 21,
        "auto_predict": True,
    },
    "predictor": {
        "strategy": "sequence",
        "crop_size": 224,
        "padding_ratio": 0.2,
    },
    "model": {
        "path": "models/gesture_sequence.pth",
        "labels_file": "config/labels.json",
        "labels": None,
        "device": "auto",
    },
    "data_collection": {
        "output_dir": ".",
        "filename": "gesture_dataset.json",
    },
    "visualization": {
        "enabled": True,
        "window_name": "Gesture Lab",
        "show_landmarks": True,
        "show_fps": True,
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
}

# Schema: required sections and their expected types
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "fps": int,
    },
    "mediapipe": {
        "max_num_hands": int,
        "model_complexity": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "session": {
        "frame_limit": int,
        "num_landmarks": int,
        "auto_predict": bool,
    },
    "predictor": {
        "strategy": str,
        "crop_size": int,
        "padding_ratio": float,
    },
    "data_collection": {
        "filename": str,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = copy.deepcopy(DEFAULTS)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file on top of the defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                user_data = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            user_data = {}

        if not isinstance(user_data, dict):
            logger.warning("Config root should be a mapping, got %s; ignoring",
                           type(user_data).__name__)
            user_data = {}

        self._data = _deep_merge(copy.deepcopy(DEFAULTS), user_data)
        self._validate()

        return self

    def _validate(self):
        """Validate critical config fields against schema."""
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if section is None:
                warnings.append(f"Missing config section: '{section_name}'")
                continue
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name in section:
                    value = section[field_name]
                    # Allow int where float is expected
                    if expected_type is float and isinstance(value, (int, float)) \
                            and not isinstance(value, bool):
                        continue
                    if expected_type is int and isinstance(value, bool):
                        warnings.append(f"{section_name}.{field_name}: expected int, got bool")
                        continue
                    if not isinstance(value, expected_type):
                        warnings.append(
                            f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                            f"got {type(value).__name__} ({value!r})"
                        )

        if warnings:
            for w in warnings:
                logger.warning("Config validation: %s", w)
        else:
            logger.debug("Config validation passed")
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'camera.width'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value):
        """Set nested config value using dot notation (used for CLI overrides)."""
        keys = key_path.split(".")
        section = self._data
        for key in keys[:-1]:
            section = section.setdefault(key, {})
        section[keys[-1]] = value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {}) or {}

    def resolve_path(self, path):
        """Resolve a config-relative path against the project root."""
        if path is None or os.path.isabs(path):
            return path
        return os.path.join(_BASE_DIR, path)

    @property
    def camera(self) -> dict:
        return self.get_section("camera")

    @property
    def mediapipe(self) -> dict:
        return self.get_section("mediapipe")

    @property
    def session(self) -> dict:
        return self.get_section("session")

    @property
    def predictor(self) -> dict:
        return self.get_section("predictor")

    @property
    def model(self) -> dict:
        return self.get_section("model")

    @property
    def data_collection(self) -> dict:
        return self.get_section("data_collection")

    @property
    def visualization(self) -> dict:
        return self.get_section("visualization")

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
