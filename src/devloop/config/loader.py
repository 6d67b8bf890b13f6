"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the devloop.toml
configuration file.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import handle_config_error, ErrorSeverity

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "devloop.toml"


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path, required: bool = True) -> Dict[str, Any]:
    """
    Load the main configuration file (devloop.toml).

    Args:
        config_path: Path to the configuration file
        required: When False, a missing file yields an empty configuration

    Returns:
        Parsed configuration data
    """
    if not required and not config_path.exists():
        logger.debug(f"No configuration file at {config_path}, using defaults")
        return {}
    return load_toml_file(config_path, "main configuration file")


def merge_overrides(file_data: Dict[str, Any], overrides: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Overlay command-line values onto the parsed file, one table at a time.

    Override values of None mean "not given" and leave the file value intact.
    """
    merged = {section: dict(values) for section, values in file_data.items()
              if isinstance(values, dict)}
    for section, values in overrides.items():
        target = merged.setdefault(section, {})
        for key, value in values.items():
            if value is not None:
                target[key] = value
    return merged
