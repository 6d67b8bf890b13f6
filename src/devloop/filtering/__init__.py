"""
Path filtering for the devloop package.
"""

from .filter_chain import FilterChain

__all__ = [
    "FilterChain",
]
