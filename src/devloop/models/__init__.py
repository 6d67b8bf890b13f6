"""
Data models for the development loop.

Configuration Models:
- Process, watch and discovery settings
- Compiled include/exclude filter rules

Runtime Models:
- The set of watched directories
- Raw filesystem events and debounced rerun decisions
- Managed process state and exit results

All models use type hints and dataclasses.
"""

from .config import (
    AppConfig,
    DiscoveryConfig,
    FilterRule,
    FilterRuleSet,
    ProcessConfig,
    WatchConfig,
)
from .runtime import (
    ChangeKind,
    ExitResult,
    ProcessState,
    RawEvent,
    RerunDecision,
    WatchSet,
)

__all__ = [
    # Configuration models
    "AppConfig",
    "DiscoveryConfig",
    "FilterRule",
    "FilterRuleSet",
    "ProcessConfig",
    "WatchConfig",
    # Runtime models
    "ChangeKind",
    "ExitResult",
    "ProcessState",
    "RawEvent",
    "RerunDecision",
    "WatchSet",
]
