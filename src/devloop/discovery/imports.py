"""
Import declaration parsing.

Only the import statements of a module are of interest: each one names a
package that might live in a local, watchable directory.
"""

import ast
from typing import List, Union


def module_to_subpath(module: str) -> str:
    """Convert a dotted module name ('pkg.util') to an import subpath ('pkg/util')."""
    return "/".join(part for part in module.split(".") if part)


def parse_import_paths(source: Union[str, bytes], filename: str = "<unknown>") -> List[str]:
    """
    Return the distinct import subpaths declared in a Python source.

    `import a.b` yields 'a/b'. `from a.b import c` yields 'a/b' and 'a/b/c',
    since 'c' may be a subpackage rather than a name defined in 'a.b'.
    Relative imports are skipped.

    Raises:
        SyntaxError: If the source does not parse
        ValueError: If the source contains null bytes
        RecursionError, MemoryError: If expressions nest too deeply to parse
    """
    tree = ast.parse(source, filename=filename)

    seen = set()
    paths: List[str] = []

    def _add(module: str) -> None:
        subpath = module_to_subpath(module)
        if subpath and subpath not in seen:
            seen.add(subpath)
            paths.append(subpath)

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                _add(alias.name)
        elif isinstance(node, ast.ImportFrom):
            if node.level or not node.module:
                continue
            _add(node.module)
            for alias in node.names:
                if alias.name != "*":
                    _add(f"{node.module}.{alias.name}")

    return paths


def read_import_paths(file_path: str) -> List[str]:
    """
    Read a module file from disk and return its import subpaths.

    Raises:
        OSError: If the file cannot be read
        SyntaxError, ValueError, UnicodeDecodeError: If it cannot be parsed
        RecursionError, MemoryError: If it nests deeper than the parser allows
    """
    with open(file_path, "rb") as f:
        source = f.read()
    return parse_import_paths(source, filename=file_path)
