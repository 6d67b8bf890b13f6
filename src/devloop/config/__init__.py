"""
Configuration management for the devloop package.

This module provides a clean interface for loading, validating, and accessing
configuration data from devloop.toml and command-line overrides.
"""

# Main configuration interface
from .manager import (
    clear_config_cache,
    configure,
    get_config,
    is_config_loaded,
    load_config,
)

# For advanced usage - direct access to loaders and validators
from .loader import (
    DEFAULT_CONFIG_FILENAME,
    load_main_config,
    load_toml_file,
    merge_overrides,
)
from .validators import (
    expand_shell,
    split_search_path,
    validate_app_config,
    validate_discovery_config,
    validate_process_config,
    validate_watch_config,
)

__all__ = [
    # Main interface
    "clear_config_cache",
    "configure",
    "get_config",
    "is_config_loaded",
    "load_config",
    # Advanced interface
    "DEFAULT_CONFIG_FILENAME",
    "load_main_config",
    "load_toml_file",
    "merge_overrides",
    "expand_shell",
    "split_search_path",
    "validate_app_config",
    "validate_discovery_config",
    "validate_process_config",
    "validate_watch_config",
]
