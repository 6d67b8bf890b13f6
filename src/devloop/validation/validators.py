"""
Simplified validation functions.

This module provides the validation functions needed to turn raw
configuration values into trusted ones.
"""

import os
import re
from pathlib import Path
from typing import Any, List, Union

from .exceptions import ValidationError


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """
    Validate that a value is a non-empty string.

    Args:
        value: Value to validate
        field_name: Name of the field being validated

    Returns:
        The stripped string

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value.strip()


def validate_string_list(value: Any, field_name: str = "value") -> List[str]:
    """
    Validate a list of strings. A single string is accepted as a one-item list.

    Raises:
        ValidationError: If value is not a string or a list of strings
    """
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        raise ValidationError(
            f"{field_name} must be a list of strings, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise ValidationError(
                f"{field_name}[{i}] must be a string, got {type(item).__name__}",
                field_name=f"{field_name}[{i}]",
                value=item
            )
    return list(value)


def validate_path_exists(path: Union[str, Path], field_name: str = "path") -> str:
    """
    Validate that a path exists.

    Args:
        path: Path to validate
        field_name: Name of the field being validated

    Returns:
        Validated path string

    Raises:
        ValidationError: If path doesn't exist
    """
    path_str = str(path)
    if not os.path.exists(path_str):
        raise ValidationError(
            f"{field_name} does not exist: {path_str}",
            field_name=field_name,
            value=path
        )
    return path_str


def validate_directory(path: Union[str, Path], field_name: str = "directory") -> str:
    """
    Validate that a path is an existing, readable directory.

    Returns:
        The absolute, normalized directory path

    Raises:
        ValidationError: If the path is missing, not a directory, or unreadable
    """
    path_str = validate_path_exists(path, field_name=field_name)
    if not os.path.isdir(path_str):
        raise ValidationError(
            f"{field_name} is not a directory: {path_str}",
            field_name=field_name,
            value=path
        )
    if not os.access(path_str, os.R_OK | os.X_OK):
        raise ValidationError(
            f"{field_name} is not readable: {path_str}",
            field_name=field_name,
            value=path
        )
    return os.path.abspath(path_str)


def validate_regex_pattern(pattern: str, field_name: str = "regex_pattern") -> str:
    """
    Validate regex pattern format.

    Args:
        pattern: Regex pattern to validate
        field_name: Name of the field being validated

    Returns:
        Validated pattern

    Raises:
        ValidationError: If pattern is invalid
    """
    if not pattern or not isinstance(pattern, str):
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=pattern
        )

    try:
        re.compile(pattern)
    except re.error as e:
        raise ValidationError(
            f"{field_name} is not a valid regex pattern: {e}",
            field_name=field_name,
            value=pattern
        )

    return pattern


def validate_module_suffix(suffix: Any, field_name: str = "module_suffix") -> str:
    """Validate a file suffix such as '.py'."""
    suffix = validate_non_empty_string(suffix, field_name=field_name)
    if not suffix.startswith(".") or len(suffix) < 2 or os.sep in suffix:
        raise ValidationError(
            f"{field_name} must look like '.ext', got '{suffix}'",
            field_name=field_name,
            value=suffix
        )
    return suffix
