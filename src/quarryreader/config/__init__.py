"""Configuration models and the lazily loaded global settings."""

from .config import (
    DEFAULT_TAG_WEIGHTS,
    HeuristicsConfig,
    MonitoringConfig,
    ParseOptions,
    Settings,
    find_config_file,
    settings,
)

__all__ = [
    "DEFAULT_TAG_WEIGHTS",
    "HeuristicsConfig",
    "MonitoringConfig",
    "ParseOptions",
    "Settings",
    "find_config_file",
    "settings",
]
