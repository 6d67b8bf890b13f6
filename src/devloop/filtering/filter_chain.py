"""
Include/exclude filtering for watched directories and changed files.

Exclude rules are always evaluated first: a path matching both an exclude
and an include rule is rejected.
"""

import logging
import os

from ..models.config import FilterRuleSet, WatchConfig

logger = logging.getLogger(__name__)


class FilterChain:
    """
    Decides which directories get watched and which file changes trigger a rerun.
    """

    def __init__(self, dir_rules: FilterRuleSet, file_rules: FilterRuleSet):
        self.dir_rules = dir_rules
        self.file_rules = file_rules

    @classmethod
    def from_config(cls, watch_config: WatchConfig) -> "FilterChain":
        return cls(watch_config.dir_rules, watch_config.file_rules)

    def should_watch_dir(self, path: str) -> bool:
        """
        Return True if the directory at `path` should be registered for watching.

        Directories are matched in their absolute, normalized form.
        """
        path = os.path.normpath(os.path.abspath(path))

        excluded_by = self.dir_rules.first_exclude(path)
        if excluded_by is not None:
            logger.debug(f"exclude: {path} (matched '{excluded_by.source}')")
            return False

        return self.dir_rules.first_include(path) is not None

    def should_rerun_file(self, path: str) -> bool:
        """
        Return True if a change to the file at `path` should trigger a rerun.

        Hidden files (basename starting with '.') never qualify; editors keep
        their swap and lock files there.
        """
        if os.path.basename(path).startswith("."):
            return False

        if self.file_rules.first_exclude(path) is not None:
            return False

        return self.file_rules.first_include(path) is not None
