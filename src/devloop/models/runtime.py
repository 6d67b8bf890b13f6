"""
Runtime data models.

This module contains the data structures passed between components while
the controller is running: the set of watched directories, raw filesystem
events, rerun decisions and child process exit results.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Set, Tuple


class WatchSet:
    """
    Absolute directory paths to register with the filesystem watcher.

    Paths are normalized on insertion, so adding the same directory twice
    (or via a different spelling) keeps a single entry. Iteration is sorted.
    """

    def __init__(self, paths: Iterable[str] = ()):
        self._paths: Set[str] = set()
        for path in paths:
            self.add(path)

    @staticmethod
    def normalize(path: str) -> str:
        return os.path.normpath(os.path.abspath(path))

    def add(self, path: str) -> bool:
        """Add a directory. Returns True if it was not already present."""
        normalized = self.normalize(path)
        if normalized in self._paths:
            return False
        self._paths.add(normalized)
        return True

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        return self.normalize(path) in self._paths

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._paths))

    def __len__(self) -> int:
        return len(self._paths)

    def __repr__(self) -> str:
        return f"WatchSet({sorted(self._paths)!r})"


class ChangeKind(Enum):
    """Kind of filesystem change reported by the watcher."""
    MODIFIED = "modified"
    CREATED = "created"
    OTHER = "other"


@dataclass(frozen=True)
class RawEvent:
    """A single filesystem change notification."""

    path: str
    kind: ChangeKind

    @property
    def is_write(self) -> bool:
        return self.kind in (ChangeKind.MODIFIED, ChangeKind.CREATED)


@dataclass(frozen=True)
class RerunDecision:
    """Outcome of one debounced burst that contained qualifying changes."""

    # Qualifying paths, in the order they were first seen.
    paths: Tuple[str, ...]
    # Number of raw events coalesced into this decision.
    event_count: int


class ProcessState(Enum):
    """Lifecycle state of a managed process."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    EXITED = "exited"


@dataclass(frozen=True)
class ExitResult:
    """Exit record posted exactly once per managed process."""

    returncode: Optional[int] = None
    # Set when waiting on the process itself failed.
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.returncode == 0

    def describe(self) -> str:
        if self.error is not None:
            return f"wait failed: {self.error}"
        if self.returncode is not None and self.returncode < 0:
            return f"killed by signal {-self.returncode}"
        return f"exit code {self.returncode}"
