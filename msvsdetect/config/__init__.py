"""Configuration module for msvs-detect.

This module provides loading and validation of the optional YAML
configuration file.
"""

from msvsdetect.config.settings import (
    Settings,
    load_settings,
    load_yaml_config,
    settings_from_config,
)

__all__ = [
    "Settings",
    "load_settings",
    "load_yaml_config",
    "settings_from_config",
]
