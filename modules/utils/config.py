"""
Centralized configuration manager.
Loads the YAML config and provides typed access with defaults.

Every key has a built-in default, so a missing file or section still yields
the stock 25 Hz / 20-sample / 5-sample-stride / 0.9 / 1.5 s setup.
"""

import os
import copy
import yaml
import logging

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

DEFAULTS = {
    "sampling": {
        "sample_rate": 25.0,
        "num_features": 6,
        "queue_size": 64,
        "max_consecutive_errors": 10,
        "realtime": True,
    },
    "windowing": {
        "window_size": 20,
        "window_offset": 5,
    },
    "recognition": {
        "prediction_threshold": 0.9,
        "gesture_timeout": 1.5,
        "rest_label": "rest_it",
    },
    "model": {
        "checkpoint": None,
        "device": None,
        "require_model": False,
        "rules": {},
    },
    "game": {
        "max_score": 999,
        "prompt_delay": 0.2,
        "ready_delay": 1.0,
        "round_grace": 1.0,
        "seed": None,
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
}

# Schema: sections and their expected types
_CONFIG_SCHEMA = {
    "sampling": {
        "sample_rate": float,
        "num_features": int,
        "queue_size": int,
        "max_consecutive_errors": int,
    },
    "windowing": {
        "window_size": int,
        "window_offset": int,
    },
    "recognition": {
        "prediction_threshold": float,
        "gesture_timeout": float,
        "rest_label": str,
    },
    "game": {
        "max_score": int,
        "prompt_delay": float,
        "ready_delay": float,
        "round_grace": float,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = copy.deepcopy(base)
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
            cls._instance._data = _deep_merge({}, DEFAULTS)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file on top of the defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            loaded = {}

        if not isinstance(loaded, dict):
            logger.warning("Config root should be a mapping, got %s; using defaults",
                           type(loaded).__name__)
            loaded = {}

        self._data = _deep_merge(DEFAULTS, loaded)
        self._validate()

        return self

    def _validate(self):
        """Validate config fields against schema."""
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name not in section:
                    continue
                value = section[field_name]
                # Allow int where float is expected
                if expected_type is float and isinstance(value, (int, float)) \
                        and not isinstance(value, bool):
                    continue
                if not isinstance(value, expected_type) or isinstance(value, bool):
                    warnings.append(
                        f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                        f"got {type(value).__name__} ({value!r})"
                    )

        threshold = self.get("recognition.prediction_threshold")
        if isinstance(threshold, (int, float)) and not 0.0 <= threshold <= 1.0:
            warnings.append(f"recognition.prediction_threshold out of [0, 1]: {threshold}")

        if warnings:
            for w in warnings:
                logger.warning("Config validation: %s", w)
        else:
            logger.debug("Config validation passed")
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'windowing.window_size'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value):
        """Override a nested value (CLI flags)."""
        keys = key_path.split(".")
        target = self._data
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {})

    @property
    def sampling(self) -> dict:
        return self._data.get("sampling", {})

    @property
    def windowing(self) -> dict:
        return self._data.get("windowing", {})

    @property
    def recognition(self) -> dict:
        return self._data.get("recognition", {})

    @property
    def model(self) -> dict:
        return self._data.get("model", {})

    @property
    def game(self) -> dict:
        return self._data.get("game", {})

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
