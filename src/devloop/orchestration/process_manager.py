"""
Process management for the orchestration module.

This module owns the lifecycle of the single managed child process: building,
starting, detecting whether it already exited, interrupting it and waiting for
it to be fully gone before a replacement is started.
"""

import logging
import queue
import signal
import subprocess
import threading
from typing import List, Optional

import psutil

from ..models.config import ProcessConfig
from ..models.runtime import ExitResult, ProcessState
from ..validation import (
    BuildError,
    ErrorSeverity,
    ProcessStartError,
    handle_error,
    handle_subprocess_error,
)

logger = logging.getLogger(__name__)


class ManagedProcess:
    """
    A spawned child together with its single-slot exit signal.

    A background thread waits on the child and posts exactly one ExitResult
    into a queue of size one. The supervisor reads it either with a
    non-blocking try_receive_exit() or a blocking wait_exit(); whichever reads
    it first consumes it, and it can never be read twice.
    """

    def __init__(self, popen: subprocess.Popen, command: str):
        self.popen = popen
        self.command = command
        self._exit_slot: "queue.Queue[ExitResult]" = queue.Queue(maxsize=1)
        self._exit_result: Optional[ExitResult] = None
        self._state = ProcessState.NOT_STARTED
        self._exit_thread: Optional[threading.Thread] = None

    @property
    def pid(self) -> int:
        return self.popen.pid

    @property
    def state(self) -> ProcessState:
        return self._state

    @property
    def exit_result(self) -> Optional[ExitResult]:
        """The consumed exit result, once the process is EXITED."""
        return self._exit_result

    def begin_exit_watch(self) -> None:
        """Start the background thread that posts this process's exit result."""
        if self._state is not ProcessState.NOT_STARTED:
            raise RuntimeError(f"exit watch already started for PID {self.pid}")
        self._state = ProcessState.RUNNING
        self._exit_thread = threading.Thread(
            target=self._watch_exit,
            name=f"exit-watch-{self.pid}",
            daemon=True,
        )
        self._exit_thread.start()

    def _watch_exit(self) -> None:
        try:
            result = ExitResult(returncode=self.popen.wait())
        except Exception as e:
            result = ExitResult(error=e)
        # The slot holds one item and this is its only producer.
        self._exit_slot.put_nowait(result)

    def try_receive_exit(self) -> Optional[ExitResult]:
        """
        Non-blocking probe for the exit result.

        Returns the result if the process has exited and the result was not
        consumed yet; otherwise None.
        """
        if self._state is not ProcessState.RUNNING:
            return None
        try:
            result = self._exit_slot.get_nowait()
        except queue.Empty:
            return None
        self._consume(result)
        return result

    def wait_exit(self) -> ExitResult:
        """
        Block until the exit result is posted, then consume it.

        Raises:
            RuntimeError: If the result was already consumed
        """
        if self._state is ProcessState.EXITED:
            raise RuntimeError(f"exit result of PID {self.pid} already consumed")
        if self._state is ProcessState.NOT_STARTED:
            raise RuntimeError(f"exit watch not started for PID {self.pid}")
        result = self._exit_slot.get()
        self._consume(result)
        return result

    def _consume(self, result: ExitResult) -> None:
        self._exit_result = result
        self._state = ProcessState.EXITED
        if self._exit_thread is not None:
            self._exit_thread.join()

    def __repr__(self) -> str:
        return f"ManagedProcess(pid={self.pid}, state={self._state.value}, command={self.command!r})"


class ProcessSupervisor:
    """
    Starts, stops and restarts the managed child process.

    The replacement is never started before the previous process's exit has
    been observed, so two children never run at once.
    """

    def __init__(self, process_config: ProcessConfig):
        self.shell = process_config.shell
        self.build_command = process_config.build_command
        self.run_command = process_config.run_command

    def _shell_args(self, command: str) -> List[str]:
        return [self.shell, "-c", command]

    def build(self) -> None:
        """
        Run the build command to completion, with output passed through.

        Raises:
            ProcessStartError: If the shell cannot be executed
            BuildError: If the build exits with a non-zero status
        """
        logger.info(f"Rebuilding: {self.build_command}")
        try:
            completed = subprocess.run(self._shell_args(self.build_command), check=False)
        except OSError as e:
            raise ProcessStartError(f"cannot run build command with shell '{self.shell}': {e}") from e
        if completed.returncode != 0:
            raise BuildError(self.build_command, completed.returncode)

    def start(self) -> Optional[ManagedProcess]:
        """
        Build (if configured) and start the program.

        Returns:
            The new ManagedProcess, or None when no run command is configured

        Raises:
            ProcessStartError: If the build or the spawn fails
        """
        if self.build_command:
            self.build()

        if not self.run_command:
            logger.info("Detected code change")
            return None

        logger.info(f"Running program: {self.run_command}")
        try:
            popen = subprocess.Popen(self._shell_args(self.run_command))
        except OSError as e:
            raise ProcessStartError(f"cannot start '{self.run_command}' with shell '{self.shell}': {e}") from e

        proc = ManagedProcess(popen, self.run_command)
        proc.begin_exit_watch()
        logger.info(f"Program started with PID: {proc.pid}")
        return proc

    def start_safely(self) -> Optional[ManagedProcess]:
        """start(), with build and spawn failures logged instead of raised."""
        try:
            return self.start()
        except BuildError as e:
            logger.error(f"Build failed with exit code {e.returncode}; waiting for the next change")
        except ProcessStartError as e:
            handle_subprocess_error(e, self.run_command or self.build_command,
                                    severity=ErrorSeverity.ERROR, reraise=False, logger=logger)
        return None

    def stop_if_running(self, proc: Optional[ManagedProcess]) -> Optional[ExitResult]:
        """
        Make sure `proc` has terminated and its exit result is consumed.

        If the process already exited on its own, its result is consumed and
        no signal is sent. Otherwise SIGINT goes to the process and its
        descendants, followed by an unbounded wait for the exit.

        Returns:
            The consumed exit result, or None if there was nothing to stop
        """
        if proc is None or proc.state is ProcessState.EXITED:
            return None

        result = proc.try_receive_exit()
        if result is not None:
            self._log_exit(proc, result, on_its_own=True)
            return result

        logger.info(f"Stopping program (PID: {proc.pid})...")
        self.interrupt_process_tree(proc)
        result = proc.wait_exit()
        self._log_exit(proc, result, on_its_own=False)
        return result

    def restart(self, previous: Optional[ManagedProcess]) -> Optional[ManagedProcess]:
        """Stop `previous` if it is still running, then start a fresh process."""
        self.stop_if_running(previous)
        return self.start_safely()

    def interrupt_process_tree(self, proc: ManagedProcess) -> None:
        """
        Send SIGINT to the shell's descendants and then to the shell itself.

        Signalling errors are logged; the caller still waits for the exit.
        """
        children = self._get_process_children(proc.pid)
        for child in children:
            try:
                child.send_signal(signal.SIGINT)
                logger.debug(f"Sent SIGINT to PID {child.pid}")
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied:
                logger.warning(f"Access denied sending SIGINT to PID {child.pid}")

        try:
            proc.popen.send_signal(signal.SIGINT)
            logger.debug(f"Sent SIGINT to PID {proc.pid}")
        except ProcessLookupError:
            logger.debug(f"PID {proc.pid} already gone before SIGINT")
        except OSError as e:
            handle_error(e, f"signalling PID {proc.pid}",
                         severity=ErrorSeverity.WARNING, reraise=False, logger=logger)

    def _get_process_children(self, pid: int) -> List[psutil.Process]:
        """Live descendants of `pid`, deepest first; empty if it is gone."""
        try:
            children = psutil.Process(pid).children(recursive=True)
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            return []
        except psutil.AccessDenied:
            logger.warning(f"Access denied listing children of PID {pid}")
            return []
        return list(reversed(children))

    def _log_exit(self, proc: ManagedProcess, result: ExitResult, on_its_own: bool) -> None:
        if result.error is not None:
            logger.error(f"Waiting for PID {proc.pid} failed: {result.error}")
        elif on_its_own:
            logger.info(f"Program (PID: {proc.pid}) had already exited: {result.describe()}")
        else:
            logger.info(f"Program (PID: {proc.pid}) stopped: {result.describe()}")
