"""
Configuration data models.

This module contains the configuration data structures for the managed
process, the watch filters and import discovery. All of them are frozen:
configuration is validated once at startup and never changes afterwards.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

# Built-in defaults, used whenever the corresponding list is empty.
DEFAULT_INCLUDE_DIRS = (r".*",)
DEFAULT_EXCLUDE_DIRS = (r"^\.*$",)
DEFAULT_INCLUDE_FILES = (
    r"^(.*\.py|.*\.pyi|.*\.toml|.*\.yaml|.*\.yml|.*\.cfg|.*\.conf|.*\.ini)$",
)
DEFAULT_EXCLUDE_FILES = (r"^\.*$",)

DEFAULT_SHELL = "$SHELL"
FALLBACK_SHELL = "sh"
DEFAULT_SEARCH_PATH_ENV = "PYTHONPATH"
DEFAULT_MODULE_SUFFIX = ".py"


@dataclass(frozen=True)
class FilterRule:
    """A compiled regular expression together with its source string."""

    source: str
    pattern: re.Pattern = field(compare=False, repr=False)

    @classmethod
    def compile(cls, source: str) -> "FilterRule":
        return cls(source=source, pattern=re.compile(source))

    def matches(self, text: str) -> bool:
        # Unanchored search; anchors belong in the pattern itself.
        return self.pattern.search(text) is not None


@dataclass(frozen=True)
class FilterRuleSet:
    """
    Ordered include and exclude rules for one kind of path.

    When a path matches both sets, the exclude rules win.
    """

    include: Tuple[FilterRule, ...] = ()
    exclude: Tuple[FilterRule, ...] = ()

    @classmethod
    def from_patterns(cls, include: Iterable[str], exclude: Iterable[str]) -> "FilterRuleSet":
        return cls(
            include=tuple(FilterRule.compile(p) for p in include),
            exclude=tuple(FilterRule.compile(p) for p in exclude),
        )

    def first_include(self, text: str) -> Optional[FilterRule]:
        for rule in self.include:
            if rule.matches(text):
                return rule
        return None

    def first_exclude(self, text: str) -> Optional[FilterRule]:
        for rule in self.exclude:
            if rule.matches(text):
                return rule
        return None


@dataclass(frozen=True)
class ProcessConfig:
    """
    How the managed program is built and run, loaded from `[process]`.
    """

    # Shell executable, already expanded (e.g. '$SHELL' -> '/bin/bash').
    shell: str
    # Shell command run to completion before every start. Can be empty.
    build_command: str = ""
    # Shell command for the long-running program. Empty means "only report changes".
    run_command: str = ""


@dataclass(frozen=True)
class WatchConfig:
    """
    Directories to scan plus the directory and file filters, loaded from `[watch]`.
    """

    # Absolute root directories walked at startup.
    roots: Tuple[str, ...]
    dir_rules: FilterRuleSet
    file_rules: FilterRuleSet


@dataclass(frozen=True)
class DiscoveryConfig:
    """
    Settings for resolving imports to directories, loaded from `[discovery]`.
    """

    # Ordered search roots; the first root containing an import wins.
    search_path: Tuple[str, ...] = ()
    # Subdirectory under each search root that holds importable packages.
    search_subdir: str = ""
    # Files with this suffix are parsed for imports.
    module_suffix: str = DEFAULT_MODULE_SUFFIX


@dataclass(frozen=True)
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    process: ProcessConfig
    watch: WatchConfig
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
