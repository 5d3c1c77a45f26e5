"""Status information for a task."""

from enum import StrEnum
from dataclasses import dataclass


class Status(StrEnum):
    """Processing status for a task."""

    PENDING = "Pending"
    CHANGED = "Changed"
    UNCHANGED = "Unchanged"
    SKIPPED = "Skipped"
    FAILED = "Failed"

    @property
    def done(self) -> bool:
        """True when the task reached a terminal state."""
        return self != Status.PENDING

    @property
    def succeeded(self) -> bool:
        """True when dependents of the task may run."""
        return self in (Status.CHANGED, Status.UNCHANGED)


@dataclass
class StatusInfo:
    """Processing status and optional error message for a task."""

    status: Status
    error: str | None = None

    def __str__(self) -> str:
        """Return a string representation of the status."""
        if self.error:
            return f"{self.status}: {self.error}"
        return str(self.status)
