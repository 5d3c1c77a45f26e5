"""Module for in memory status store."""

import asyncio
from collections import defaultdict
from collections.abc import Callable
from typing import Any, DefaultDict

import logging

from node_converge.exceptions import DependencyFailedError
from node_converge.tasks import TaskId

from .status import Status, StatusInfo
from .store import StatusStore, StatusEvent


_LOGGER = logging.getLogger(__name__)


class InMemoryStatusStore(StatusStore):
    """In-memory implementation of the StatusStore interface.

    Supports event listeners for status changes.
    """

    def __init__(self) -> None:
        """Initialize the InMemoryStatusStore."""
        self._status: dict[TaskId, StatusInfo] = {}
        self._listeners: DefaultDict[StatusEvent, list[Callable[..., None]]] = (
            defaultdict(list)
        )

    def update_status(
        self, task_id: TaskId, status: Status, error: str | None = None
    ) -> None:
        """Update the processing status and optional error message for a task."""
        if status == Status.FAILED:
            _LOGGER.error("Task %s status %s with error: %s", task_id, status, error)
        else:
            _LOGGER.debug("Updating status for task %s to %s (%s)", task_id, status, error)
        self._status[task_id] = StatusInfo(status=status, error=error)
        self._fire_event(StatusEvent.STATUS_UPDATED, task_id, self._status[task_id])

    def get_status(self, task_id: TaskId) -> StatusInfo | None:
        """Retrieve the processing status for a task."""
        return self._status.get(task_id)

    def has_failed_tasks(self) -> bool:
        """Check if any task failed or was skipped."""
        for status_info in self._status.values():
            if status_info.status in (Status.FAILED, Status.SKIPPED):
                return True
        return False

    def statuses(self) -> dict[TaskId, StatusInfo]:
        return dict(self._status)

    def add_listener(
        self,
        event: StatusEvent,
        callback: Callable[[TaskId, StatusInfo], None],
    ) -> Callable[[], None]:
        """Register a callback for a specific event."""

        def remove() -> None:
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

        self._listeners[event].append(callback)
        return remove

    def _fire_event(self, event: StatusEvent, *args: Any) -> None:
        for cb in list(self._listeners[event]):  # Iterate over a copy for safe removal
            try:
                cb(*args)
            except Exception:
                _LOGGER.exception("Status listener callback failed for event %s", event)

    async def watch_done(
        self, task_id: TaskId, dependent: TaskId | None = None
    ) -> StatusInfo:
        """Wait for the specified task to be applied successfully."""
        if (current := self.get_status(task_id)) and current.status.done:
            return self._check(task_id, current, dependent)

        event_fired = asyncio.Event()
        result_holder: list[StatusInfo] = []

        def callback(fired_task_id: TaskId, status_info: StatusInfo) -> None:
            if fired_task_id == task_id and status_info.status.done:
                result_holder.append(status_info)
                event_fired.set()

        remove_listener = self.add_listener(StatusEvent.STATUS_UPDATED, callback)
        try:
            await event_fired.wait()
            return self._check(task_id, result_holder[0], dependent)
        except asyncio.CancelledError:
            _LOGGER.debug("watch_done for %s cancelled.", task_id)
            raise
        finally:
            remove_listener()

    def _check(
        self, task_id: TaskId, status_info: StatusInfo, dependent: TaskId | None
    ) -> StatusInfo:
        if not status_info.status.succeeded:
            raise DependencyFailedError(dependent or task_id, task_id)
        return status_info
