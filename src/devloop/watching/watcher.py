"""
Filesystem watching backed by watchdog.

Each directory in the WatchSet is scheduled non-recursively on a single
watchdog Observer. The observer threads only translate events into RawEvent
objects and push them onto a queue; all decisions are made by the consumer
of that queue.
"""

import logging
import os
import queue
from typing import Dict, Iterable, Optional, Union

from watchdog.events import (
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch

from ..models.runtime import ChangeKind, RawEvent
from ..validation import WatchRegistrationError

logger = logging.getLogger(__name__)

# Items on the event queue: a change, or an error raised inside the watcher.
WatchItem = Union[RawEvent, Exception]


def translate_event(event: FileSystemEvent) -> RawEvent:
    """
    Map a watchdog event to a RawEvent.

    A move counts as a creation of its destination, which is how editors
    performing atomic saves (write temp file, rename over target) show up.
    """
    if isinstance(event, FileModifiedEvent):
        return RawEvent(path=os.fsdecode(event.src_path), kind=ChangeKind.MODIFIED)
    if isinstance(event, FileCreatedEvent):
        return RawEvent(path=os.fsdecode(event.src_path), kind=ChangeKind.CREATED)
    if isinstance(event, FileMovedEvent):
        return RawEvent(path=os.fsdecode(event.dest_path), kind=ChangeKind.CREATED)
    return RawEvent(path=os.fsdecode(event.src_path), kind=ChangeKind.OTHER)


class QueueingEventHandler(FileSystemEventHandler):
    """Pushes every watchdog event onto a queue as a RawEvent."""

    def __init__(self, events: "queue.Queue[WatchItem]"):
        super().__init__()
        self.events = events

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            self.events.put(translate_event(event))
        except Exception as e:
            # Surface to the consumer instead of killing the observer thread.
            self.events.put(e)


class FileWatcher:
    """
    Registers directories with watchdog and exposes their changes as a queue.

    Usage:
        watcher = FileWatcher()
        watcher.start()
        watcher.register_all(watch_set)
        item = watcher.events.get()
        watcher.stop()
    """

    def __init__(self, observer: Optional[Observer] = None):
        self.events: "queue.Queue[WatchItem]" = queue.Queue()
        self._observer = observer if observer is not None else Observer()
        self._handler = QueueingEventHandler(self.events)
        self._watches: Dict[str, ObservedWatch] = {}
        self._started = False

    @property
    def watched_paths(self):
        return sorted(self._watches)

    def start(self) -> None:
        """Start the observer thread. Registrations made afterwards take effect immediately."""
        if self._started:
            raise RuntimeError("FileWatcher already started")
        self._observer.start()
        self._started = True
        logger.debug("Filesystem observer started")

    def register(self, directory: str) -> ObservedWatch:
        """
        Subscribe to changes directly inside `directory`.

        Raises:
            WatchRegistrationError: If the watch subsystem refuses the directory
        """
        if directory in self._watches:
            return self._watches[directory]
        try:
            watch = self._observer.schedule(self._handler, directory, recursive=False)
        except OSError as e:
            raise WatchRegistrationError(directory, e) from e
        self._watches[directory] = watch
        logger.debug(f"Watching {directory}")
        return watch

    def register_all(self, directories: Iterable[str]) -> int:
        """Register every directory; the first failure is raised."""
        count = 0
        for directory in directories:
            self.register(directory)
            count += 1
        logger.info(f"Watching {count} directories")
        return count

    def stop(self) -> None:
        if not self._started:
            return
        self._observer.stop()
        self._observer.join(timeout=2.0)
        self._started = False
        logger.debug("Filesystem observer stopped")
