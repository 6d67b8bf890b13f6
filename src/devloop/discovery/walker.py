"""
Dependency-driven discovery of directories to watch.

The walker visits every entry under the configured roots. Directories are
watched directly; module files are parsed for their imports, and each import
that resolves to a local directory on the search path is watched as well,
even when it lies outside every root.
"""

import logging
import os
import stat
from typing import Dict, Iterable, Optional, Sequence

from ..filtering import FilterChain
from ..models.config import DiscoveryConfig
from ..models.runtime import WatchSet
from ..validation import ErrorSeverity, handle_error, handle_file_error
from .imports import read_import_paths

logger = logging.getLogger(__name__)


class DependencyWalker:
    """
    Builds a WatchSet from root directories and the imports found beneath them.

    A failure on a single entry is logged and skipped; it never aborts the walk.
    """

    def __init__(self, filter_chain: FilterChain, discovery: DiscoveryConfig):
        self.filter_chain = filter_chain
        self.search_path: Sequence[str] = discovery.search_path
        self.search_subdir = discovery.search_subdir
        self.module_suffix = discovery.module_suffix
        # import subpath -> resolved directory (or None when unresolvable)
        self._resolved: Dict[str, Optional[str]] = {}

    def build_watch_set(self, roots: Iterable[str]) -> WatchSet:
        """
        Walk each root and return every directory worth watching.

        Args:
            roots: Root directories to scan

        Returns:
            The populated WatchSet
        """
        watch_set = WatchSet()
        files_parsed = 0

        for root in roots:
            logger.info(f"Scanning {root} for directories and imports")
            for dirpath, _dirnames, filenames in os.walk(root, onerror=self._on_walk_error):
                if self.filter_chain.should_watch_dir(dirpath):
                    watch_set.add(dirpath)

                for filename in filenames:
                    if not filename.endswith(self.module_suffix):
                        continue
                    self._add_imports(os.path.join(dirpath, filename), watch_set)
                    files_parsed += 1

        logger.info(f"Discovered {len(watch_set)} directories to watch ({files_parsed} module files parsed)")
        return watch_set

    def _on_walk_error(self, error: OSError) -> None:
        handle_file_error(error, "walking directory tree",
                          severity=ErrorSeverity.WARNING, reraise=False, logger=logger)

    def _add_imports(self, file_path: str, watch_set: WatchSet) -> None:
        try:
            import_paths = read_import_paths(file_path)
        except (OSError, SyntaxError, ValueError, RecursionError, MemoryError) as e:
            handle_error(e, f"parsing imports of {file_path}",
                         severity=ErrorSeverity.WARNING, reraise=False, logger=logger)
            return

        for import_path in import_paths:
            directory = self.resolve(import_path)
            if directory is None:
                continue
            if self.filter_chain.should_watch_dir(directory) and watch_set.add(directory):
                logger.debug(f"Watching {directory} (imported by {file_path})")

    def resolve(self, import_path: str) -> Optional[str]:
        """
        Find the directory on the search path that holds `import_path`.

        Each search root is tried in order; the first existing match wins.
        Returns None when the import is not local (stdlib, site-packages, typo).
        """
        if import_path in self._resolved:
            return self._resolved[import_path]

        found = None
        for search_root in self.search_path:
            found = self._resolve_under(search_root, import_path)
            if found is not None:
                break

        self._resolved[import_path] = found
        return found

    def _resolve_under(self, search_root: str, import_path: str) -> Optional[str]:
        base = os.path.join(search_root, self.search_subdir) if self.search_subdir else search_root
        candidate = os.path.join(base, *import_path.split("/"))

        if self._is_dir(candidate):
            return os.path.normpath(candidate)

        # A plain module inside a package: watch the package holding it.
        if "/" in import_path and os.path.isfile(candidate + self.module_suffix):
            return os.path.normpath(os.path.dirname(candidate))

        return None

    @staticmethod
    def _is_dir(path: str) -> bool:
        try:
            st = os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            logger.warning(f"Cannot inspect {path}: {e}")
            return False
        return stat.S_ISDIR(st.st_mode)
