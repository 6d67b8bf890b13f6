"""
Watch directory discovery for the devloop package.

The walker follows import declarations so that local dependencies outside the
working tree are watched too.
"""

from .imports import module_to_subpath, parse_import_paths, read_import_paths
from .walker import DependencyWalker

__all__ = [
    "DependencyWalker",
    "module_to_subpath",
    "parse_import_paths",
    "read_import_paths",
]
