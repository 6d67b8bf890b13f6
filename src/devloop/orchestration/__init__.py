"""
Process orchestration for the devloop package.

- process_manager: the managed child process and its supervisor
- signal_handler: clean shutdown on SIGINT/SIGTERM
- controller: the top-level watch/debounce/restart loop
"""

from .controller import Controller
from .process_manager import ManagedProcess, ProcessSupervisor
from .signal_handler import SignalHandler

__all__ = [
    "Controller",
    "ManagedProcess",
    "ProcessSupervisor",
    "SignalHandler",
]
