"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import AppConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import DEFAULT_CONFIG_FILENAME, load_main_config, merge_overrides
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

# This global variable will hold the single instance of the loaded AppConfig.
_CONFIG: Optional[AppConfig] = None

# Explicit configuration file, or None to look for devloop.toml in the working
# directory (where a missing file simply means "use defaults").
_CONFIG_FILE_PATH: Optional[Path] = None

# Values from the command line, keyed by TOML table name.
_CONFIG_OVERRIDES: Dict[str, Dict[str, Any]] = {}


def configure(config_path: Optional[Path] = None,
              overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
    """
    Set the configuration source used by get_config().

    Args:
        config_path: Path to a devloop.toml file; it must exist when given
        overrides: Command-line values keyed by table, e.g. {"process": {"run": "..."}}
    """
    global _CONFIG_FILE_PATH, _CONFIG_OVERRIDES, _CONFIG
    _CONFIG_FILE_PATH = config_path
    _CONFIG_OVERRIDES = overrides or {}
    # Clear cached config to force reload with new sources
    _CONFIG = None
    logger.debug(f"Configuration source set to: {config_path or DEFAULT_CONFIG_FILENAME}")


def clear_config_cache() -> None:
    """
    Clear the cached configuration and sources, forcing a reload on next access.
    """
    global _CONFIG, _CONFIG_FILE_PATH, _CONFIG_OVERRIDES
    _CONFIG = None
    _CONFIG_FILE_PATH = None
    _CONFIG_OVERRIDES = {}
    logger.debug("Configuration cache cleared")


def load_config(config_path: Optional[Path] = None,
                overrides: Optional[Dict[str, Dict[str, Any]]] = None,
                environ: Optional[Dict[str, str]] = None) -> AppConfig:
    """
    Load, merge and validate the complete application configuration.

    Args:
        config_path: Explicit configuration file, or None for ./devloop.toml
        overrides: Command-line values layered on top of the file
        environ: Environment used for search path discovery (defaults to os.environ)

    Returns:
        Fully validated AppConfig instance

    Raises:
        FileNotFoundError: If an explicit configuration file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
    """
    try:
        if config_path is None:
            file_data = load_main_config(Path.cwd() / DEFAULT_CONFIG_FILENAME, required=False)
        else:
            file_data = load_main_config(config_path)

        merged = merge_overrides(file_data, overrides or {})
        app_config = validate_app_config(merged, environ=environ)

        logger.info(
            f"Loaded configuration: {len(app_config.watch.roots)} root(s), "
            f"{len(app_config.discovery.search_path)} search path entries"
        )
        return app_config

    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    The first call loads and validates the configuration from the sources set
    by configure(); later calls return the cached instance.
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config(_CONFIG_FILE_PATH, _CONFIG_OVERRIDES)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
    return _CONFIG is not None
