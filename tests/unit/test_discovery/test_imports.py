"""
Unit tests for import declaration parsing.
"""

import pytest

from devloop.discovery import module_to_subpath, parse_import_paths, read_import_paths


@pytest.mark.unit
class TestParseImportPaths:
    """Test cases for extracting import subpaths from Python source."""

    def test_plain_and_dotted_imports(self):
        source = "import os\nimport pkg.util\nimport a.b.c as abc\n"
        assert parse_import_paths(source) == ["os", "pkg/util", "a/b/c"]

    def test_from_import_yields_module_and_submodule_candidates(self):
        source = "from pkg import util, helpers\n"
        assert parse_import_paths(source) == ["pkg", "pkg/util", "pkg/helpers"]

    def test_relative_and_star_imports(self):
        source = (
            "from . import sibling\n"
            "from ..parent import thing\n"
            "from pkg.sub import *\n"
        )
        assert parse_import_paths(source) == ["pkg/sub"]

    def test_duplicates_are_collapsed(self):
        source = "import pkg.util\nimport pkg.util\nfrom pkg import util\n"
        assert parse_import_paths(source) == ["pkg/util", "pkg"]

    def test_nested_imports_are_found(self):
        source = (
            "def load():\n"
            "    import plugins.extra\n"
            "    return plugins.extra\n"
            "try:\n"
            "    import fast_json\n"
            "except ImportError:\n"
            "    fast_json = None\n"
        )
        assert sorted(parse_import_paths(source)) == ["fast_json", "plugins/extra"]

    def test_syntax_error_propagates(self):
        with pytest.raises(SyntaxError):
            parse_import_paths("import (\n", filename="broken.py")

    def test_module_to_subpath(self):
        assert module_to_subpath("pkg.util") == "pkg/util"
        assert module_to_subpath("single") == "single"


@pytest.mark.unit
def test_read_import_paths_honours_encoding_cookie(temp_dir):
    path = temp_dir / "latin.py"
    path.write_bytes(b"# -*- coding: latin-1 -*-\nimport pkg.util\nname = '\xe9'\n")
    assert read_import_paths(str(path)) == ["pkg/util"]


@pytest.mark.unit
def test_read_import_paths_missing_file(temp_dir):
    with pytest.raises(OSError):
        read_import_paths(str(temp_dir / "missing.py"))
