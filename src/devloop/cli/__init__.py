"""
Command-line interface for the devloop package.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
