"""
devloop: rebuild and rerun a program when its source changes.

The package is organized into specialized modules:
- config: Configuration loading and validation (devloop.toml + CLI overrides)
- models: Data structures and type definitions
- validation: Input validation and error handling
- filtering: Include/exclude rules for directories and files
- discovery: Import-driven discovery of directories to watch
- watching: Filesystem watching and event debouncing
- orchestration: Managed process supervision and the top-level loop
- cli: Command-line interface

Usage:
    From command line:
        devloop watch --run 'python -m app'

    Programmatically:
        from devloop import Controller, load_config
        controller = Controller(load_config())
        controller.setup()
        controller.run()
"""

__version__ = "0.3.0"

from .config import clear_config_cache, configure, get_config, load_config
from .discovery import DependencyWalker
from .filtering import FilterChain
from .models import (
    AppConfig,
    ChangeKind,
    ExitResult,
    FilterRuleSet,
    ProcessState,
    RawEvent,
    RerunDecision,
    WatchSet,
)
from .orchestration import Controller, ManagedProcess, ProcessSupervisor
from .validation import (
    BuildError,
    DevloopError,
    ProcessStartError,
    ValidationError,
    WatchRegistrationError,
)
from .watching import EventDebouncer, FileWatcher

__all__ = [
    "__version__",
    # Configuration
    "clear_config_cache",
    "configure",
    "get_config",
    "load_config",
    # Components
    "Controller",
    "DependencyWalker",
    "EventDebouncer",
    "FileWatcher",
    "FilterChain",
    "ManagedProcess",
    "ProcessSupervisor",
    # Models
    "AppConfig",
    "ChangeKind",
    "ExitResult",
    "FilterRuleSet",
    "ProcessState",
    "RawEvent",
    "RerunDecision",
    "WatchSet",
    # Errors
    "BuildError",
    "DevloopError",
    "ProcessStartError",
    "ValidationError",
    "WatchRegistrationError",
]
