"""
Filesystem watching and event debouncing for the devloop package.
"""

from .debouncer import EventDebouncer, TimeoutConstants
from .watcher import FileWatcher, QueueingEventHandler, WatchItem, translate_event

__all__ = [
    "EventDebouncer",
    "FileWatcher",
    "QueueingEventHandler",
    "TimeoutConstants",
    "WatchItem",
    "translate_event",
]
