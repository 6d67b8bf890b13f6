"""
Unit tests for the event debouncer.

Events are fed through a plain queue, with a short quiescence window so the
tests stay fast.
"""

import queue
import threading
import time

import pytest

from devloop.filtering import FilterChain
from devloop.models.config import (
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_EXCLUDE_FILES,
    DEFAULT_INCLUDE_DIRS,
    DEFAULT_INCLUDE_FILES,
    FilterRuleSet,
)
from devloop.models.runtime import ChangeKind, RawEvent, RerunDecision
from devloop.watching import EventDebouncer, TimeoutConstants

WINDOW = 0.05


def modified(path):
    return RawEvent(path, ChangeKind.MODIFIED)


@pytest.fixture
def events():
    return queue.Queue()


@pytest.fixture
def debouncer(events):
    chain = FilterChain(
        FilterRuleSet.from_patterns(DEFAULT_INCLUDE_DIRS, DEFAULT_EXCLUDE_DIRS),
        FilterRuleSet.from_patterns(DEFAULT_INCLUDE_FILES, DEFAULT_EXCLUDE_FILES),
    )
    return EventDebouncer(events, chain, quiescence_window=WINDOW, idle_poll_interval=0.05)


def put_later(events, item, delay):
    timer = threading.Timer(delay, events.put, args=(item,))
    timer.start()
    return timer


@pytest.mark.unit
class TestCollectBurst:
    """Test cases for gathering a burst of events."""

    def test_rapid_events_form_one_burst(self, events, debouncer):
        for _ in range(3):
            events.put(modified("/src/app/main.py"))

        burst = debouncer.collect_burst(timeout=1.0)

        assert len(burst) == 3
        assert events.empty()

    def test_timeout_with_no_events(self, debouncer):
        start = time.monotonic()
        assert debouncer.collect_burst(timeout=0.1) == []
        assert time.monotonic() - start < 1.0

    def test_error_items_are_logged_and_skipped(self, events, debouncer, caplog):
        events.put(RuntimeError("inotify queue overflow"))
        events.put(modified("/src/app/main.py"))

        with caplog.at_level("ERROR"):
            burst = debouncer.collect_burst(timeout=1.0)

        assert burst == [modified("/src/app/main.py")]
        assert "Filesystem watcher error: inotify queue overflow" in caplog.text

    def test_late_event_within_window_joins_burst(self, events, debouncer):
        events.put(modified("/src/app/a.py"))
        put_later(events, modified("/src/app/b.py"), WINDOW / 5)

        burst = debouncer.collect_burst(timeout=1.0)

        assert [e.path for e in burst] == ["/src/app/a.py", "/src/app/b.py"]

    def test_stop_event_ends_idle_wait(self, debouncer):
        stop = threading.Event()
        threading.Timer(0.1, stop.set).start()

        start = time.monotonic()
        assert debouncer.collect_burst(stop_event=stop) == []
        assert time.monotonic() - start < 2.0

    def test_stop_event_already_set(self, events, debouncer):
        stop = threading.Event()
        stop.set()
        events.put(modified("/src/app/main.py"))

        assert debouncer.collect_burst(stop_event=stop) == []


@pytest.mark.unit
class TestEvaluate:
    """Test cases for turning a burst into a decision."""

    def test_qualifying_burst(self, debouncer):
        burst = [modified("/src/app/main.py"), modified("/src/app/main.py")]
        decision = debouncer.evaluate(burst)
        assert decision == RerunDecision(paths=("/src/app/main.py",), event_count=2)

    def test_empty_burst(self, debouncer):
        assert debouncer.evaluate([]) is None

    def test_hidden_files_do_not_qualify(self, debouncer):
        burst = [modified("/src/app/.main.py.swp"), modified("/src/app/.#main.py")]
        assert debouncer.evaluate(burst) is None

    def test_non_write_events_do_not_qualify(self, debouncer):
        burst = [RawEvent("/src/app/main.py", ChangeKind.OTHER)]
        assert debouncer.evaluate(burst) is None

    def test_any_qualifying_event_is_enough(self, debouncer):
        burst = [
            RawEvent("/src/app/.main.py.tmp", ChangeKind.CREATED),
            RawEvent("/src/app/main.py", ChangeKind.CREATED),
            modified("/src/app/README.md"),
        ]
        decision = debouncer.evaluate(burst)
        assert decision.paths == ("/src/app/main.py",)
        assert decision.event_count == 3

    def test_paths_keep_first_seen_order(self, debouncer):
        burst = [modified("/src/b.py"), modified("/src/a.py"), modified("/src/b.py")]
        assert debouncer.evaluate(burst).paths == ("/src/b.py", "/src/a.py")


@pytest.mark.unit
class TestDecisions:
    """Test cases for the decision stream."""

    def test_burst_yields_single_decision(self, events, debouncer):
        for name in ("a.py", "b.py", "a.py", "c.toml"):
            events.put(modified(f"/src/app/{name}"))

        decision = debouncer.next_decision(timeout=1.0)

        assert decision.event_count == 4
        assert debouncer.next_decision(timeout=0.1) is None

    def test_separated_bursts_yield_two_decisions(self, events, debouncer):
        events.put(modified("/src/app/a.py"))
        first = debouncer.next_decision(timeout=1.0)

        put_later(events, modified("/src/app/b.py"), WINDOW * 4)
        second = debouncer.next_decision(timeout=2.0)

        assert first.paths == ("/src/app/a.py",)
        assert second.paths == ("/src/app/b.py",)

    def test_non_qualifying_burst_yields_none(self, events, debouncer):
        events.put(modified("/src/app/.hidden.py"))
        events.put(modified("/src/app/notes.txt"))
        assert debouncer.next_decision(timeout=1.0) is None

    def test_decisions_until_stopped(self, events, debouncer):
        stop = threading.Event()
        events.put(modified("/src/app/main.py"))
        received = []

        for decision in debouncer.decisions(stop):
            received.append(decision)
            stop.set()

        assert len(received) == 1

    def test_non_qualifying_bursts_are_skipped(self, events, debouncer):
        stop = threading.Event()
        events.put(modified("/src/app/.swap"))
        put_later(events, modified("/src/app/real.py"), WINDOW * 4)
        received = []

        for decision in debouncer.decisions(stop):
            received.append(decision)
            stop.set()

        assert [d.paths for d in received] == [("/src/app/real.py",)]


@pytest.mark.unit
def test_default_window():
    assert TimeoutConstants.QUIESCENCE_WINDOW == pytest.approx(0.3)
