"""
Unit tests for process management.

Most tests spawn real short-lived shell commands through /bin/sh.
"""

import signal
import time
from unittest.mock import MagicMock, patch

import psutil
import pytest

from devloop.models.config import ProcessConfig
from devloop.models.runtime import ExitResult, ProcessState
from devloop.orchestration import ManagedProcess, ProcessSupervisor
from devloop.validation import BuildError, ProcessStartError


def make_supervisor(run="", build="", shell="/bin/sh"):
    return ProcessSupervisor(ProcessConfig(shell=shell, build_command=build, run_command=run))


def wait_for_exit_posted(proc, timeout=5.0):
    """Block until the exit-watch thread has posted the result."""
    deadline = time.monotonic() + timeout
    while not proc._exit_slot.full():
        if time.monotonic() > deadline:
            raise AssertionError(f"PID {proc.pid} did not exit within {timeout}s")
        time.sleep(0.01)


@pytest.mark.unit
class TestManagedProcess:
    """Test cases for the single-slot exit signal."""

    def test_not_started(self):
        proc = ManagedProcess(MagicMock(pid=1234), "true")
        assert proc.state is ProcessState.NOT_STARTED
        assert proc.try_receive_exit() is None
        with pytest.raises(RuntimeError):
            proc.wait_exit()

    def test_exit_result_consumed_once(self):
        popen = MagicMock(pid=1234)
        popen.wait.return_value = 0
        proc = ManagedProcess(popen, "true")
        proc.begin_exit_watch()

        result = proc.wait_exit()

        assert result == ExitResult(returncode=0)
        assert proc.state is ProcessState.EXITED
        assert proc.exit_result is result
        assert proc.try_receive_exit() is None
        with pytest.raises(RuntimeError):
            proc.wait_exit()

    def test_wait_failure_is_reported(self):
        popen = MagicMock(pid=1234)
        popen.wait.side_effect = OSError("wait failed")
        proc = ManagedProcess(popen, "true")
        proc.begin_exit_watch()

        result = proc.wait_exit()

        assert isinstance(result.error, OSError)
        assert not result.succeeded

    def test_exit_watch_starts_once(self):
        popen = MagicMock(pid=1234)
        popen.wait.return_value = 0
        proc = ManagedProcess(popen, "true")
        proc.begin_exit_watch()
        with pytest.raises(RuntimeError):
            proc.begin_exit_watch()
        proc.wait_exit()


@pytest.mark.unit
class TestStart:
    """Test cases for building and starting the program."""

    def test_start_spawns_running_process(self):
        supervisor = make_supervisor(run="sleep 30")
        proc = supervisor.start()
        try:
            assert proc.state is ProcessState.RUNNING
            assert proc.try_receive_exit() is None
        finally:
            supervisor.stop_if_running(proc)

    def test_no_run_command_logs_change(self, caplog):
        supervisor = make_supervisor()
        with caplog.at_level("INFO"):
            assert supervisor.start() is None
        assert "Detected code change" in caplog.text

    def test_build_runs_before_program(self, temp_dir):
        marker = temp_dir / "built"
        supervisor = make_supervisor(run=f"test -f '{marker}'", build=f"touch '{marker}'")

        proc = supervisor.start()
        result = proc.wait_exit()

        assert result.returncode == 0

    def test_build_failure_raises(self):
        supervisor = make_supervisor(run="true", build="exit 3")
        with pytest.raises(BuildError) as exc_info:
            supervisor.start()
        assert exc_info.value.returncode == 3

    def test_build_failure_is_logged_by_start_safely(self, caplog):
        supervisor = make_supervisor(run="true", build="exit 3")
        with caplog.at_level("ERROR"):
            assert supervisor.start_safely() is None
        assert "Build failed with exit code 3" in caplog.text

    def test_missing_shell_raises_process_start_error(self, temp_dir):
        supervisor = make_supervisor(run="true", shell=str(temp_dir / "no-such-shell"))
        with pytest.raises(ProcessStartError):
            supervisor.start()

    def test_missing_shell_is_logged_by_start_safely(self, temp_dir, caplog):
        supervisor = make_supervisor(run="true", shell=str(temp_dir / "no-such-shell"))
        with caplog.at_level("ERROR"):
            assert supervisor.start_safely() is None
        assert "subprocess command 'true'" in caplog.text


@pytest.mark.unit
class TestStopIfRunning:
    """Test cases for stopping the managed process."""

    def test_none_is_noop(self):
        assert make_supervisor().stop_if_running(None) is None

    def test_already_exited_process_is_not_signalled(self, caplog):
        supervisor = make_supervisor(run="exit 4")
        proc = supervisor.start()
        wait_for_exit_posted(proc)

        with patch.object(supervisor, "interrupt_process_tree") as interrupt, caplog.at_level("INFO"):
            result = supervisor.stop_if_running(proc)

        interrupt.assert_not_called()
        assert result.returncode == 4
        assert proc.state is ProcessState.EXITED
        assert "had already exited" in caplog.text

    def test_running_process_is_interrupted(self):
        supervisor = make_supervisor(run="sleep 30")
        proc = supervisor.start()

        start = time.monotonic()
        result = supervisor.stop_if_running(proc)

        assert time.monotonic() - start < 10
        assert proc.state is ProcessState.EXITED
        assert result is proc.exit_result
        assert proc.popen.poll() is not None

    def test_second_stop_is_noop(self):
        supervisor = make_supervisor(run="exit 0")
        proc = supervisor.start()
        supervisor.stop_if_running(proc)

        with patch.object(supervisor, "interrupt_process_tree") as interrupt:
            assert supervisor.stop_if_running(proc) is None
        interrupt.assert_not_called()


@pytest.mark.unit
class TestRestart:
    """Test cases for replacing the managed process."""

    def test_previous_exit_observed_before_start(self):
        supervisor = make_supervisor(run="sleep 30")
        previous = supervisor.start()
        states_at_start = []
        real_start = supervisor.start_safely

        def recording_start():
            states_at_start.append(previous.state)
            return real_start()

        with patch.object(supervisor, "start_safely", side_effect=recording_start):
            current = supervisor.restart(previous)
        try:
            assert states_at_start == [ProcessState.EXITED]
            assert current is not previous
            assert current.state is ProcessState.RUNNING
        finally:
            supervisor.stop_if_running(current)

    def test_restart_from_nothing(self):
        supervisor = make_supervisor(run="exit 0")
        proc = supervisor.restart(None)
        assert proc.wait_exit().returncode == 0


@pytest.mark.unit
class TestInterruptProcessTree:
    """Test cases for signalling the shell and its descendants."""

    def test_descendants_then_shell(self):
        supervisor = make_supervisor()
        popen = MagicMock(pid=100)
        proc = ManagedProcess(popen, "python -m app")
        order = []
        gone = MagicMock(pid=102)
        gone.send_signal.side_effect = psutil.NoSuchProcess(102)
        child = MagicMock(pid=101)
        child.send_signal.side_effect = lambda sig: order.append(("child", sig))
        popen.send_signal.side_effect = lambda sig: order.append(("shell", sig))

        with patch.object(supervisor, "_get_process_children", return_value=[gone, child]):
            supervisor.interrupt_process_tree(proc)

        assert order == [("child", signal.SIGINT), ("shell", signal.SIGINT)]

    def test_shell_already_gone(self):
        supervisor = make_supervisor()
        popen = MagicMock(pid=100)
        popen.send_signal.side_effect = ProcessLookupError()
        proc = ManagedProcess(popen, "true")

        with patch.object(supervisor, "_get_process_children", return_value=[]):
            supervisor.interrupt_process_tree(proc)

        popen.send_signal.assert_called_once_with(signal.SIGINT)

    def test_children_of_missing_pid(self):
        supervisor = make_supervisor()
        with patch("devloop.orchestration.process_manager.psutil.Process",
                   side_effect=psutil.NoSuchProcess(99999)):
            assert supervisor._get_process_children(99999) == []

    def test_children_deepest_first(self):
        supervisor = make_supervisor()
        shallow, deep = MagicMock(pid=1), MagicMock(pid=2)
        with patch("devloop.orchestration.process_manager.psutil.Process") as process_cls:
            process_cls.return_value.children.return_value = [shallow, deep]
            assert supervisor._get_process_children(100) == [deep, shallow]
        process_cls.return_value.children.assert_called_once_with(recursive=True)
