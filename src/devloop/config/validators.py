"""
Configuration validation utilities.

This module turns the raw `[process]`, `[watch]` and `[discovery]` tables into
the frozen configuration models. Every regular expression is compiled here,
once; an invalid one is a fatal configuration error.
"""

import logging
import os
import shlex
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models.config import (
    AppConfig,
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_EXCLUDE_FILES,
    DEFAULT_INCLUDE_DIRS,
    DEFAULT_INCLUDE_FILES,
    DEFAULT_MODULE_SUFFIX,
    DEFAULT_SEARCH_PATH_ENV,
    DEFAULT_SHELL,
    FALLBACK_SHELL,
    DiscoveryConfig,
    FilterRuleSet,
    ProcessConfig,
    WatchConfig,
)
from ..validation import (
    ValidationError,
    validate_directory,
    validate_module_suffix,
    validate_non_empty_string,
    validate_regex_pattern,
    validate_string_list,
)

logger = logging.getLogger(__name__)


def expand_shell(shell: Optional[str]) -> str:
    """
    Expand environment variables in the configured shell.

    '$SHELL' with SHELL unset expands to nothing (or stays literal), in which
    case the POSIX 'sh' is used.
    """
    raw = shell if shell else DEFAULT_SHELL
    expanded = os.path.expandvars(raw).strip()
    if not expanded or "$" in expanded:
        logger.debug(f"Shell '{raw}' did not expand, falling back to '{FALLBACK_SHELL}'")
        return FALLBACK_SHELL
    return expanded


def _command_string(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    parts = validate_string_list(value, field_name=field_name)
    return shlex.join(parts)


def validate_process_config(process_data: Dict[str, Any]) -> ProcessConfig:
    """
    Validate and create a ProcessConfig from raw configuration data.

    Args:
        process_data: Raw `[process]` table

    Returns:
        Validated ProcessConfig instance

    Raises:
        ValidationError: If validation fails
    """
    shell_value = process_data.get("shell")
    if shell_value is not None and not isinstance(shell_value, str):
        raise ValidationError("process.shell must be a string",
                              field_name="process.shell", value=shell_value)

    run_command = _command_string(process_data.get("run"), "process.run")
    build_command = _command_string(process_data.get("build"), "process.build")

    if not run_command:
        logger.warning("No command to run; changes will only be reported")

    return ProcessConfig(
        shell=expand_shell(shell_value),
        build_command=build_command,
        run_command=run_command,
    )


def compile_rule_set(include: Sequence[str], exclude: Sequence[str],
                     default_include: Sequence[str], default_exclude: Sequence[str],
                     include_field: str, exclude_field: str) -> FilterRuleSet:
    """
    Validate both pattern lists and compile them into a FilterRuleSet.

    Empty lists fall back to the supplied defaults.
    """
    include = list(include) or list(default_include)
    exclude = list(exclude) or list(default_exclude)
    for i, pattern in enumerate(include):
        validate_regex_pattern(pattern, field_name=f"{include_field}[{i}]")
    for i, pattern in enumerate(exclude):
        validate_regex_pattern(pattern, field_name=f"{exclude_field}[{i}]")
    return FilterRuleSet.from_patterns(include, exclude)


def validate_watch_config(watch_data: Dict[str, Any]) -> WatchConfig:
    """
    Validate and create a WatchConfig from raw configuration data.

    Args:
        watch_data: Raw `[watch]` table

    Returns:
        Validated WatchConfig instance

    Raises:
        ValidationError: If a root is unreadable or a pattern does not compile
    """
    dirs = validate_string_list(watch_data.get("dirs", ["."]), field_name="watch.dirs")
    if not dirs:
        raise ValidationError("watch.dirs must name at least one directory",
                              field_name="watch.dirs", value=dirs)

    roots: List[str] = []
    for i, directory in enumerate(dirs):
        root = validate_directory(directory, field_name=f"watch.dirs[{i}]")
        if root not in roots:
            roots.append(root)

    dir_rules = compile_rule_set(
        validate_string_list(watch_data.get("include_dirs", []), "watch.include_dirs"),
        validate_string_list(watch_data.get("exclude_dirs", []), "watch.exclude_dirs"),
        DEFAULT_INCLUDE_DIRS,
        DEFAULT_EXCLUDE_DIRS,
        include_field="watch.include_dirs",
        exclude_field="watch.exclude_dirs",
    )
    file_rules = compile_rule_set(
        validate_string_list(watch_data.get("include_files", []), "watch.include_files"),
        validate_string_list(watch_data.get("exclude_files", []), "watch.exclude_files"),
        DEFAULT_INCLUDE_FILES,
        DEFAULT_EXCLUDE_FILES,
        include_field="watch.include_files",
        exclude_field="watch.exclude_files",
    )

    return WatchConfig(roots=tuple(roots), dir_rules=dir_rules, file_rules=file_rules)


def split_search_path(value: str) -> Tuple[str, ...]:
    """Split a PATH-style string into its non-empty entries."""
    return tuple(entry for entry in value.split(os.pathsep) if entry.strip())


def validate_discovery_config(discovery_data: Dict[str, Any],
                              environ: Optional[Dict[str, str]] = None) -> DiscoveryConfig:
    """
    Validate and create a DiscoveryConfig from raw configuration data.

    An explicit `search_path` list wins; otherwise the environment variable
    named by `search_path_env` is split on the path separator.
    """
    environ = os.environ if environ is None else environ

    search_path = validate_string_list(discovery_data.get("search_path", []),
                                       field_name="discovery.search_path")
    if not search_path:
        env_name = validate_non_empty_string(
            discovery_data.get("search_path_env", DEFAULT_SEARCH_PATH_ENV),
            field_name="discovery.search_path_env",
        )
        search_path = list(split_search_path(environ.get(env_name, "")))
        logger.debug(f"Search path from ${env_name}: {search_path}")

    search_subdir = discovery_data.get("search_subdir", "")
    if not isinstance(search_subdir, str):
        raise ValidationError("discovery.search_subdir must be a string",
                              field_name="discovery.search_subdir", value=search_subdir)

    module_suffix = validate_module_suffix(
        discovery_data.get("module_suffix", DEFAULT_MODULE_SUFFIX),
        field_name="discovery.module_suffix",
    )

    return DiscoveryConfig(
        search_path=tuple(os.path.abspath(os.path.expanduser(p)) for p in search_path),
        search_subdir=search_subdir.strip("/"),
        module_suffix=module_suffix,
    )


def validate_app_config(config_data: Dict[str, Any],
                        environ: Optional[Dict[str, str]] = None) -> AppConfig:
    """Validate every table and assemble the AppConfig."""
    return AppConfig(
        process=validate_process_config(config_data.get("process", {})),
        watch=validate_watch_config(config_data.get("watch", {})),
        discovery=validate_discovery_config(config_data.get("discovery", {}), environ=environ),
    )
