"""Accumulation of the tasks emitted by builders during a convergence run."""

from collections.abc import Mapping
import logging
from types import MappingProxyType

from node_converge.cluster import NodeContext
from node_converge.exceptions import DuplicateTaskError
from node_converge.tasks import Task, TaskId

__all__ = [
    "BuildContext",
    "BuilderScope",
]

_LOGGER = logging.getLogger(__name__)


class BuildContext:
    """Holds the tasks emitted by all builders for one convergence run.

    Identities are unique. Registering a task whose identity already exists
    is a no-op when both tasks are equal, and a build error otherwise.
    """

    def __init__(self, node: NodeContext) -> None:
        """Initialize BuildContext."""
        self.node = node
        self._tasks: dict[TaskId, Task] = {}
        self._owners: dict[TaskId, str | None] = {}
        self.warnings: list[str] = []

    def register(self, task: Task, builder: str | None = None) -> Task:
        """Add the task, returning the task held by the context."""
        identity = task.identity
        if (existing := self._tasks.get(identity)) is not None:
            if existing == task:
                _LOGGER.debug(
                    "Task %s from %s already registered by %s, skipping",
                    identity,
                    builder,
                    self._owners[identity],
                )
                return existing
            raise DuplicateTaskError(
                identity,
                existing.desired_state(),
                task.desired_state(),
                self._owners[identity],
                builder,
            )
        _LOGGER.debug("Registering task %s from %s", identity, builder)
        self._tasks[identity] = task
        self._owners[identity] = builder
        return task

    def warn(self, message: str, builder: str | None = None) -> None:
        """Record a non-fatal problem found while building."""
        _LOGGER.warning("%s", message)
        self.warnings.append(f"{builder}: {message}" if builder else message)

    def scope(self, builder: str) -> "BuilderScope":
        """Return the write-only view of this context handed to a builder."""
        return BuilderScope(self, builder)

    def owner(self, identity: TaskId) -> str | None:
        """Return the name of the builder that first registered the task."""
        return self._owners.get(identity)

    @property
    def tasks(self) -> Mapping[TaskId, Task]:
        """Read-only view of the registered tasks."""
        return MappingProxyType(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)


class BuilderScope:
    """What a single builder sees of the build context.

    Builders may add tasks and record warnings but can not read the tasks
    emitted by other builders.
    """

    def __init__(self, context: BuildContext, builder: str) -> None:
        """Initialize BuilderScope."""
        self._context = context
        self.builder = builder

    @property
    def node(self) -> NodeContext:
        return self._context.node

    def add_task(self, task: Task) -> None:
        self._context.register(task, builder=self.builder)

    def warn(self, message: str) -> None:
        self._context.warn(message, builder=self.builder)
