"""
The status module tracks the outcome of every task during a convergence run.

- Uses TaskId as the key for all entries.
- Notifies listeners as tasks change state so dependents can wait on them.
- Provides a summary of applied, unchanged, skipped and failed tasks.
"""

from .status import Status, StatusInfo
from .store import StatusStore, StatusEvent
from .in_memory import InMemoryStatusStore

__all__ = [
    "StatusStore",
    "StatusEvent",
    "InMemoryStatusStore",
    "Status",
    "StatusInfo",
]
