"""
Validation and error handling for the devloop package.

This module provides input validation and error handling
with consistent error reporting across the application.
"""

from .exceptions import (
    BuildError,
    DevloopError,
    ErrorSeverity,
    ProcessStartError,
    ValidationError,
    WatchRegistrationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_file_error,
    handle_subprocess_error,
)

from .validators import (
    validate_directory,
    validate_module_suffix,
    validate_non_empty_string,
    validate_path_exists,
    validate_regex_pattern,
    validate_string_list,
)

__all__ = [
    # Exceptions
    "BuildError",
    "DevloopError",
    "ErrorSeverity",
    "ProcessStartError",
    "ValidationError",
    "WatchRegistrationError",
    # Handlers
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "handle_file_error",
    "handle_subprocess_error",
    # Validators
    "validate_directory",
    "validate_module_suffix",
    "validate_non_empty_string",
    "validate_path_exists",
    "validate_regex_pattern",
    "validate_string_list",
]
