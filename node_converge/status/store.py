"""Store module for holding task status while applying a graph."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

from node_converge.tasks import TaskId

from .status import Status, StatusInfo


class StatusEvent(str, Enum):
    """Enum for status store events."""

    STATUS_UPDATED = "status_updated"


class StatusStore(ABC):
    """Abstract base class for task status tracking with listener support."""

    @abstractmethod
    def update_status(
        self, task_id: TaskId, status: Status, error: str | None = None
    ) -> None:
        """Update the processing status and optional error message for a task."""

    @abstractmethod
    def get_status(self, task_id: TaskId) -> StatusInfo | None:
        """Retrieve the processing status for a task."""

    @abstractmethod
    def has_failed_tasks(self) -> bool:
        """Check if any task failed or was skipped because of a failure."""

    @abstractmethod
    def statuses(self) -> dict[TaskId, StatusInfo]:
        """Return a copy of the status of every task seen so far."""

    @abstractmethod
    def add_listener(
        self,
        event: StatusEvent,
        callback: Callable[[TaskId, StatusInfo], None],
    ) -> Callable[[], None]:
        """Register a callback for a specific event.

        Returns a callable that can be called to remove the listener.
        """

    @abstractmethod
    async def watch_done(
        self, task_id: TaskId, dependent: TaskId | None = None
    ) -> StatusInfo:
        """
        Wait for the specified task to be applied successfully.

        If the task already succeeded, returns its StatusInfo immediately.
        If the task failed or was skipped, raises DependencyFailedError.

        Args:
            task_id: The TaskId to watch.
            dependent: The task waiting, used when reporting a failure.

        Returns:
            StatusInfo of the task when it completes.

        Raises:
            DependencyFailedError: If the task did not apply.
            asyncio.CancelledError: If the watch is cancelled.
        """
