"""
The top-level development loop.

The controller wires the components together: it walks the roots into a
WatchSet, registers it with the filesystem watcher, starts the program and
then restarts it once for every debounced qualifying change.
"""

import logging
import threading
from typing import Optional

from ..discovery import DependencyWalker
from ..filtering import FilterChain
from ..models.config import AppConfig
from ..models.runtime import RerunDecision, WatchSet
from ..watching import EventDebouncer, FileWatcher
from .process_manager import ManagedProcess, ProcessSupervisor

logger = logging.getLogger(__name__)


class Controller:
    """
    Runs the watch/debounce/restart loop until shutdown is requested.

    Collaborators can be injected for testing; by default they are built
    from the configuration.
    """

    def __init__(
        self,
        config: AppConfig,
        watcher: Optional[FileWatcher] = None,
        supervisor: Optional[ProcessSupervisor] = None,
        walker: Optional[DependencyWalker] = None,
        debouncer: Optional[EventDebouncer] = None,
        shutdown_requested: Optional[threading.Event] = None,
    ):
        self.config = config
        self.filter_chain = FilterChain.from_config(config.watch)
        self.walker = walker or DependencyWalker(self.filter_chain, config.discovery)
        self.watcher = watcher or FileWatcher()
        self.supervisor = supervisor or ProcessSupervisor(config.process)
        self.debouncer = debouncer or EventDebouncer(self.watcher.events, self.filter_chain)
        self.shutdown_requested = shutdown_requested or threading.Event()

        self.watch_set: Optional[WatchSet] = None
        self.current: Optional[ManagedProcess] = None
        self.restart_count = 0

    def setup(self) -> WatchSet:
        """
        Discover directories and register them with the watcher.

        Raises:
            WatchRegistrationError: If any directory cannot be watched
        """
        watch_set = self.walker.build_watch_set(self.config.watch.roots)
        if not len(watch_set):
            logger.warning("No directories matched the include/exclude rules; nothing will be watched")

        self.watcher.start()
        self.watcher.register_all(watch_set)
        self.watch_set = watch_set
        return watch_set

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Start the program, then restart it on every qualifying change.

        Runs until `stop_event` (default: the controller's shutdown event) is set.
        """
        stop_event = stop_event or self.shutdown_requested
        logger.info("Running watcher")
        try:
            self.current = self.supervisor.start_safely()
            for decision in self.debouncer.decisions(stop_event):
                self._log_decision(decision)
                self.current = self.supervisor.restart(self.current)
                # Failed builds/spawns and report-only runs start nothing.
                if self.current is not None:
                    self.restart_count += 1
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Stop the current program and the watcher. Safe to call twice."""
        self.supervisor.stop_if_running(self.current)
        self.current = None
        self.watcher.stop()

    @staticmethod
    def _log_decision(decision: RerunDecision) -> None:
        first = decision.paths[0]
        others = len(decision.paths) - 1
        suffix = f" (+{others} more)" if others else ""
        logger.info(f"Change detected: {first}{suffix} [{decision.event_count} event(s)]")
