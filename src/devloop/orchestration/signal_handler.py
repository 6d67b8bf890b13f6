"""
Signal handling for the orchestration module.

SIGINT and SIGTERM sent to devloop itself request a clean shutdown: the
controller loop notices the shutdown event, stops the managed program and
the filesystem observer, and returns.
"""

import logging
import signal
import threading
from typing import Any, Optional

logger = logging.getLogger(__name__)


class SignalHandler:
    """
    Installs SIGINT/SIGTERM handlers that set a shutdown event.

    Original handlers are stored so they can be restored afterwards.
    """

    def __init__(self, shutdown_requested: Optional[threading.Event] = None):
        self.shutdown_requested = shutdown_requested or threading.Event()
        self._original_sigint_handler = None
        self._original_sigterm_handler = None
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Install the handlers. Only possible from the main thread."""
        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._handle_signal)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._handle_signal)
            self._signal_handlers_set = True
            logger.debug("Signal handlers installed")
        except ValueError as e:
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except ValueError as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def _handle_signal(self, signum: int, frame: Any) -> None:
        if self.shutdown_requested.is_set():
            logger.warning("Shutdown already in progress. Please be patient.")
            return
        logger.info(f"Signal {signal.strsignal(signum)} received. Shutting down...")
        self.shutdown_requested.set()

    def __enter__(self) -> "SignalHandler":
        self.setup_signal_handlers()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup_signal_handlers()
