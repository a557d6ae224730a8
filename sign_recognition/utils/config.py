"""
Centralized configuration manager.
Loads YAML configs and provides typed access with defaults.

The bundled ``config/config.yaml`` supplies every default; a user file is
deep-merged on top of it.
"""

import copy
import os
import logging

import yaml

logger = logging.getLogger(__name__)

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG_PATH = os.path.join(_PACKAGE_DIR, "config", "config.yaml")

# Schema: required sections and their expected types
_CONFIG_SCHEMA = {
    "recognition": {
        "detection_threshold": float,
        "recognition_threshold": float,
    },
    "features": {
        "encoding": str,
    },
    "neural": {
        "labels": list,
    },
    "logging": {
        "level": str,
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


def _read_yaml(path: str) -> dict:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping: %s" % path)
    return data


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = _read_yaml(DEFAULT_CONFIG_PATH)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration, merging a user YAML file over the defaults."""
        data = _read_yaml(DEFAULT_CONFIG_PATH)

        if config_path:
            try:
                data = _deep_merge(data, _read_yaml(config_path))
                logger.info("Loaded config from %s", config_path)
            except FileNotFoundError:
                logger.warning("Config file not found: %s, using defaults", config_path)

        self._data = data
        self._validate()
        return self

    def update(self, overrides: dict):
        """Deep-merge a dict of overrides (e.g. from CLI flags)."""
        self._data = _deep_merge(self._data, overrides)
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
                    if expected_type is float and isinstance(value, (int, float)):
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
        """Get nested config value using dot notation: 'recognition.detection_threshold'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section) or {}

    @property
    def recognition(self) -> dict:
        return self.get_section("recognition")

    @property
    def features(self) -> dict:
        return self.get_section("features")

    @property
    def neural(self) -> dict:
        return self.get_section("neural")

    def as_dict(self) -> dict:
        return copy.deepcopy(self._data)

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
