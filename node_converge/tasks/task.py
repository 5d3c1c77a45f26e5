"""Base contract for a unit of desired state.

A task describes a single idempotent piece of desired state such as a file,
a package or a service. Its identity is derived from what it manages, not
from the order it was emitted in. Tasks declare two kinds of ordering
relations:

- `requires`: identities that must exist in the task set and be applied first.
- `after`: identities to apply first only if they are present in the task set.

A mutating target calls `find` to observe the current state, compares it
with the task and calls `apply` when they differ. A rendering target calls
`render` to produce a declarative resource statement.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, fields
import logging
from typing import Any, ClassVar, Self, TYPE_CHECKING

if TYPE_CHECKING:
    from node_converge.host import Host

__all__ = [
    "TaskId",
    "Task",
    "RenderedResource",
]

_LOGGER = logging.getLogger(__name__)

# Fields describing relations between tasks rather than desired state.
RELATION_FIELDS = frozenset({"requires", "after", "on_change_execute"})


@dataclass(frozen=True, order=True)
class TaskId:
    """Identifier for a task."""

    kind: str
    name: str

    def __str__(self) -> str:
        """Return the kind and name concatenated as an id."""
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True)
class RenderedResource:
    """A declarative statement produced for a rendering target."""

    kind: str
    """The kind of resource in the target description language."""

    properties: dict[str, Any]
    """The property bag, values may contain TaskId references."""


@dataclass(kw_only=True)
class Task(ABC):
    """Base class for all tasks."""

    KIND: ClassVar[str]

    requires: tuple[TaskId, ...] = ()
    """Tasks that must be applied first and must exist."""

    after: tuple[TaskId, ...] = ()
    """Tasks to apply first when they are present."""

    on_change_execute: tuple[tuple[str, ...], ...] = ()
    """Commands run in order only when applying the task changed state."""

    @property
    def kind(self) -> str:
        return self.KIND

    @property
    @abstractmethod
    def identity(self) -> TaskId:
        """Identity derived from the semantic target of the task, e.g. a file path."""

    def desired_state(self) -> dict[str, Any]:
        """Return the state managed by this task without its relations."""
        return {
            f.name: value
            for f in fields(self)
            if f.name not in RELATION_FIELDS
            and (value := getattr(self, f.name)) is not None
        }

    def dependencies(self) -> tuple[TaskId, ...]:
        """Identities that must be applied before this task."""
        return self.requires

    def ordering_hints(self, tasks: Mapping[TaskId, "Task"]) -> list[TaskId]:
        """Identities to apply before this task, if they are present.

        The complete task set is provided for tasks that infer their ordering
        from the kinds of other tasks.
        """
        return list(self.after)

    def has_changes(self, actual: Self | None) -> bool:
        """Return True when the observed state differs from this task."""
        if actual is None:
            return True
        return actual.desired_state() != self.desired_state()

    def changes(self, actual: Self | None) -> dict[str, Any]:
        """Return the desired values of fields that differ from the observed state."""
        desired = self.desired_state()
        if actual is None:
            return desired
        observed = actual.desired_state()
        return {
            key: value for key, value in desired.items() if observed.get(key) != value
        }

    @abstractmethod
    async def find(self, host: "Host") -> Self | None:
        """Observe the current state on the host, None if it does not exist."""

    @abstractmethod
    async def apply(self, host: "Host", actual: Self | None) -> None:
        """Perform the corrective action to converge the host."""

    def render(self) -> RenderedResource:
        """Return the declarative resource statement for this task."""
        return RenderedResource(kind=self.kind, properties=self.desired_state())

    def __str__(self) -> str:
        return str(self.identity)
