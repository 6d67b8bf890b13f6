"""
Pytest configuration and shared fixtures for the devloop test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Iterable, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path).resolve()
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_data(temp_dir):
    """Sample raw configuration tables for testing."""
    return {
        "process": {
            "shell": "/bin/sh",
            "build": "",
            "run": "python -m app",
        },
        "watch": {
            "dirs": [str(temp_dir)],
            "include_dirs": [".*"],
            "exclude_dirs": [r"^\.*$", r"/\.git$"],
            "include_files": [r"^(.*\.py|.*\.conf)$"],
            "exclude_files": [r"^\.*$"],
        },
        "discovery": {
            "search_path": [],
            "search_path_env": "DEVLOOP_TEST_PATH",
            "search_subdir": "",
        },
    }


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Write the sample configuration to a devloop.toml file."""
    import toml

    path = temp_dir / "devloop.toml"
    with open(path, "w") as f:
        toml.dump(sample_config_data, f)
    return path


# ============================================================================
# Test Utilities
# ============================================================================


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def write_module(path: Path, imports: Iterable[str] = (), body: str = "") -> Path:
        """Write a Python module containing the given import lines."""
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = list(imports)
        if body:
            lines.append(body)
        path.write_text("\n".join(lines) + "\n")
        return path

    @staticmethod
    def make_package(root: Path, dotted: str) -> Path:
        """Create a package directory tree (with __init__.py files) under root."""
        directory = root
        for part in dotted.split("."):
            directory = directory / part
            directory.mkdir(parents=True, exist_ok=True)
            (directory / "__init__.py").touch()
        return directory

    @staticmethod
    def make_app_config(roots: Iterable[Path], run: str = "", build: str = "",
                        search_path: Iterable[Path] = (), shell: str = "/bin/sh",
                        include_files: Optional[list] = None):
        """Build a validated AppConfig without touching the config singleton."""
        from devloop.config import validate_app_config

        data = {
            "process": {"shell": shell, "run": run, "build": build},
            "watch": {"dirs": [str(r) for r in roots]},
            "discovery": {"search_path": [str(p) for p in search_path],
                          "search_path_env": "DEVLOOP_TEST_PATH"},
        }
        if include_files is not None:
            data["watch"]["include_files"] = include_files
        return validate_app_config(data, environ={})


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    yield

    from devloop.config import clear_config_cache

    clear_config_cache()
