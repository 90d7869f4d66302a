"""
Settings loader for the criteria engine.

Usage:
    from criteria_engine.settings import settings

    language = settings.engine.language
    depth = settings.get_nested("engine.max_expression_depth", 32)

The settings file defaults to ``settings.yaml`` next to this module and can be
overridden with the CRITERIA_ENGINE_SETTINGS environment variable.
"""

import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import yaml


SETTINGS_FILE = Path(__file__).parent / "settings.yaml"
SETTINGS_ENV_VAR = "CRITERIA_ENGINE_SETTINGS"

# Used when a key is missing from the YAML file
DEFAULTS = {
    "engine": {
        "language": "en",
        "default_language": "en",
        "max_expression_depth": 32,
        "max_expression_length": 10000,
    },
    "logging": {
        "level": "INFO",
        "log_equations": False,
    },
}

_log = logging.getLogger(__name__)


class DotDict(dict):
    """Dictionary with attribute access: d.key instead of d['key']"""

    def __getattr__(self, key: str) -> Any:
        try:
            value = self[key]
            if isinstance(value, dict):
                return DotDict(value)
            return value
        except KeyError:
            raise AttributeError(f"Setting '{key}' not found")

    def __setattr__(self, key: str, value: Any) -> None:
        self[key] = value

    def get_nested(self, path: str, default: Any = None) -> Any:
        """Get a value by dotted path: 'engine.language'"""
        keys = path.split('.')
        value = self
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge of dictionaries (override wins)"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _default_path() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override)
    return SETTINGS_FILE


def load_settings(filepath: Optional[Path] = None) -> DotDict:
    """
    Load settings from a YAML file.

    Priority:
    1. Values from the YAML file
    2. DEFAULTS

    Args:
        filepath: Settings file (defaults to settings.yaml or $CRITERIA_ENGINE_SETTINGS)

    Returns:
        DotDict with the settings
    """
    filepath = filepath or _default_path()

    config = _deep_merge({}, DEFAULTS)

    if filepath.exists():
        with open(filepath, "r", encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
        config = _deep_merge(config, yaml_config)
    else:
        _log.debug("Settings file not found, using defaults: %s", filepath)

    return DotDict(config)


def validate_settings(settings: DotDict) -> List[str]:
    """
    Validate settings.

    Returns:
        List of problems (empty if everything is OK)
    """
    errors = []

    engine = settings.engine
    if not engine.get("language"):
        errors.append("engine.language is not set")
    if not engine.get("default_language"):
        errors.append("engine.default_language is not set")

    depth = engine.get("max_expression_depth")
    if not isinstance(depth, int) or depth < 1:
        errors.append("engine.max_expression_depth must be a positive integer")

    length = engine.get("max_expression_length")
    if not isinstance(length, int) or length < 1:
        errors.append("engine.max_expression_length must be a positive integer")

    level = str(settings.get_nested("logging.level", "INFO")).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"logging.level has unknown value {level!r}")

    return errors


# Global settings instance (lazy)
_settings = None


def get_settings() -> DotDict:
    """Get global settings (singleton)"""
    global _settings
    if _settings is None:
        _settings = load_settings()
        for err in validate_settings(_settings):
            _log.warning("Invalid setting: %s", err)
    return _settings


def reload_settings() -> DotDict:
    """Reload settings from file, updating the shared instance in place"""
    global _settings
    fresh = load_settings()
    for err in validate_settings(fresh):
        _log.warning("Invalid setting: %s", err)
    settings.clear()
    settings.update(fresh)
    _settings = settings
    return settings


# Convenient import: from criteria_engine.settings import settings
settings = get_settings()
