"""
YAML configuration for msvs-detect.

A configuration file is optional. When present it supplies defaults which
the ``MSVS_PREFERENCE`` environment variable and command-line options
override::

    preference: "@;VS17.*;VS14.0"
    arch: x64
    output: make
    probe_timeout: 300
    vswhere: D:\\Tools\\vswhere.exe
    with_assembler: true
    with_mt: false
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from msvsdetect.core.exceptions import ConfigurationError
from msvsdetect.toolchain.formatter import FORMATS
from msvsdetect.toolchain.models import ARCHITECTURES
from msvsdetect.toolchain.prober import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

CONFIG_VARIABLE = "MSVS_DETECT_CONFIG"
PREFERENCE_VARIABLE = "MSVS_PREFERENCE"

KNOWN_KEYS = (
    "preference",
    "arch",
    "output",
    "probe_timeout",
    "vswhere",
    "with_assembler",
    "with_mt",
)


@dataclass
class Settings:
    """
    Effective settings before command-line overrides.

    Attributes:
        preference: Preference list text, or None for the built-in default
        arch: Pinned architecture, or None
        output: Output format
        probe_timeout: Wall-clock limit for one setup script, in seconds
        vswhere: Location of vswhere.exe, or None for the standard location
        with_assembler: Require and emit the assembler
        with_mt: Require the manifest tool
        source: Configuration file the settings were read from
    """

    preference: Optional[str] = None
    arch: Optional[str] = None
    output: str = "shell"
    probe_timeout: float = DEFAULT_TIMEOUT
    vswhere: Optional[Path] = None
    with_assembler: bool = False
    with_mt: bool = False
    source: Optional[Path] = None


def load_yaml_config(config_file: Path) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file

    Returns:
        Configuration dictionary (empty for an empty file)

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a mapping
    """
    if not config_file.is_file():
        raise ConfigurationError(f"Configuration file not found: {config_file}")

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {config_file}: {e}") from e

    config = config or {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"{config_file} must contain a mapping")
    return config


def _preference_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return ";".join(value)
    raise ConfigurationError("'preference' must be a string or a list of strings")


def _flag(config: Dict[str, Any], name: str) -> bool:
    value = config.get(name, False)
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{name}' must be true or false")
    return value


def settings_from_config(config: Dict[str, Any], source: Optional[Path] = None) -> Settings:
    """
    Validate a configuration mapping and build Settings from it.

    Args:
        config: Parsed configuration file
        source: File the mapping came from

    Returns:
        Settings

    Raises:
        ConfigurationError: On unknown keys or invalid values
    """
    unknown = sorted(str(key) for key in config if key not in KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown configuration key(s): {', '.join(unknown)}")

    settings = Settings(source=source)

    if config.get("preference") is not None:
        settings.preference = _preference_text(config["preference"])

    arch = config.get("arch")
    if arch is not None:
        if arch not in ARCHITECTURES:
            raise ConfigurationError(
                f"'arch' must be one of {', '.join(ARCHITECTURES)}, not {arch!r}"
            )
        settings.arch = arch

    output = config.get("output")
    if output is not None:
        if output not in FORMATS:
            raise ConfigurationError(
                f"'output' must be one of {', '.join(FORMATS)}, not {output!r}"
            )
        settings.output = output

    timeout = config.get("probe_timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigurationError("'probe_timeout' must be a positive number of seconds")
        settings.probe_timeout = float(timeout)

    vswhere = config.get("vswhere")
    if vswhere is not None:
        if not isinstance(vswhere, str) or not vswhere:
            raise ConfigurationError("'vswhere' must be a path")
        settings.vswhere = Path(vswhere)

    settings.with_assembler = _flag(config, "with_assembler")
    settings.with_mt = _flag(config, "with_mt")

    return settings


def load_settings(
    config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """
    Load settings from the configuration file and environment.

    The file is ``config_path`` if given, else the file named by
    ``MSVS_DETECT_CONFIG``, else there is none. ``MSVS_PREFERENCE``
    replaces the file's preference list.

    Args:
        config_path: Explicit configuration file (from ``--config``)
        environ: Environment (defaults to ``os.environ``)

    Returns:
        Settings

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    if environ is None:
        environ = os.environ

    if config_path is None and environ.get(CONFIG_VARIABLE):
        config_path = Path(environ[CONFIG_VARIABLE])

    if config_path is not None:
        settings = settings_from_config(load_yaml_config(Path(config_path)), Path(config_path))
    else:
        settings = Settings()

    preference = environ.get(PREFERENCE_VARIABLE)
    if preference:
        logger.debug(f"Preference list taken from {PREFERENCE_VARIABLE}")
        settings.preference = preference

    return settings
