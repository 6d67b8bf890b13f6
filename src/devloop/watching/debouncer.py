"""
Debouncing of raw filesystem events into rerun decisions.

Editors save in bursts: temp files, several writes, renames. The debouncer
waits for a quiet period after the first event, then looks at the whole burst
and emits at most one decision for it.
"""

import logging
import queue
import threading
from typing import Iterator, List, Optional

from ..filtering import FilterChain
from ..models.runtime import RawEvent, RerunDecision
from .watcher import WatchItem

logger = logging.getLogger(__name__)


class TimeoutConstants:
    """Debounce timing, in seconds."""
    # A burst ends once this long passes without a new event.
    QUIESCENCE_WINDOW = 0.3
    # How often an idle wait wakes up to check the stop flag.
    IDLE_POLL_INTERVAL = 0.5


class EventDebouncer:
    """
    Turns a live stream of RawEvents into debounced RerunDecisions.

    Runs as a single consumption loop with no threads of its own. Exceptions
    found on the queue are watch-subsystem errors: they are logged and never
    end the loop.
    """

    def __init__(
        self,
        events: "queue.Queue[WatchItem]",
        filter_chain: FilterChain,
        quiescence_window: float = TimeoutConstants.QUIESCENCE_WINDOW,
        idle_poll_interval: float = TimeoutConstants.IDLE_POLL_INTERVAL,
    ):
        self.events = events
        self.filter_chain = filter_chain
        self.quiescence_window = quiescence_window
        self.idle_poll_interval = idle_poll_interval

    def _next_event(self, timeout: Optional[float]) -> Optional[RawEvent]:
        """
        Return the next RawEvent, or None if `timeout` elapses first.

        Error items are logged and do not count as events.
        """
        while True:
            try:
                item = self.events.get(timeout=timeout)
            except queue.Empty:
                return None
            if isinstance(item, BaseException):
                logger.error(f"Filesystem watcher error: {item}")
                continue
            return item

    def collect_burst(self, timeout: Optional[float] = None,
                      stop_event: Optional[threading.Event] = None) -> List[RawEvent]:
        """
        Wait for the first event, then gather events until the window stays quiet.

        Args:
            timeout: Longest time to wait for the first event (None = forever)
            stop_event: When set, an idle wait returns early with no events

        Returns:
            The events of one burst, or an empty list if none arrived
        """
        first = self._wait_first(timeout, stop_event)
        if first is None:
            return []

        burst = [first]
        while True:
            event = self._next_event(self.quiescence_window)
            if event is None:
                break
            burst.append(event)

        logger.debug(f"Collected burst of {len(burst)} event(s)")
        return burst

    def _wait_first(self, timeout: Optional[float],
                    stop_event: Optional[threading.Event]) -> Optional[RawEvent]:
        if stop_event is None:
            return self._next_event(timeout)

        # Wake up periodically so a stop request is noticed while idle.
        remaining = timeout
        while not stop_event.is_set():
            wait = self.idle_poll_interval if remaining is None else min(self.idle_poll_interval, remaining)
            event = self._next_event(wait)
            if event is not None:
                return event
            if remaining is not None:
                remaining -= wait
                if remaining <= 0:
                    return None
        return None

    def evaluate(self, burst: List[RawEvent]) -> Optional[RerunDecision]:
        """
        Return a decision if any write in the burst touches a qualifying file.
        """
        qualifying: List[str] = []
        for event in burst:
            if not event.is_write:
                continue
            if event.path in qualifying:
                continue
            if self.filter_chain.should_rerun_file(event.path):
                qualifying.append(event.path)

        if not qualifying:
            if burst:
                logger.debug(f"Ignoring burst of {len(burst)} event(s): nothing qualifies")
            return None
        return RerunDecision(paths=tuple(qualifying), event_count=len(burst))

    def next_decision(self, timeout: Optional[float] = None,
                      stop_event: Optional[threading.Event] = None) -> Optional[RerunDecision]:
        """
        Evaluate one burst.

        Returns None if no event arrives within `timeout`, if the stop flag is
        set, or if the burst contains nothing that qualifies.
        """
        burst = self.collect_burst(timeout=timeout, stop_event=stop_event)
        return self.evaluate(burst)

    def decisions(self, stop_event: Optional[threading.Event] = None) -> Iterator[RerunDecision]:
        """Yield a decision for every qualifying burst until `stop_event` is set."""
        while stop_event is None or not stop_event.is_set():
            decision = self.next_decision(stop_event=stop_event)
            if decision is not None:
                yield decision
