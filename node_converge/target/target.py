"""Contract for consumers of an ordered task graph."""

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field

from node_converge.graph import DependencyGraph
from node_converge.status import Status, StatusInfo
from node_converge.tasks import TaskId

__all__ = [
    "Target",
    "RunResult",
]


@dataclass
class RunResult:
    """Outcome of executing or rendering a task graph."""

    statuses: dict[TaskId, StatusInfo] = field(default_factory=dict)
    """Final status of every task."""

    output: str | None = None
    """The rendered document, for rendering targets."""

    @property
    def counts(self) -> Counter[Status]:
        return Counter(info.status for info in self.statuses.values())

    @property
    def failures(self) -> list[tuple[TaskId, StatusInfo]]:
        """Tasks that failed or were skipped, in identity order."""
        return [
            (identity, info)
            for identity, info in sorted(self.statuses.items())
            if not info.status.succeeded
        ]

    @property
    def success(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        """Return a one line summary of task counts."""
        counts = self.counts
        return ", ".join(
            f"{counts[status]} {status.lower()}"
            for status in (
                Status.CHANGED,
                Status.UNCHANGED,
                Status.SKIPPED,
                Status.FAILED,
            )
        )


class Target(ABC):
    """Consumer of an ordered task graph."""

    @abstractmethod
    async def apply(self, graph: DependencyGraph) -> RunResult:
        """Execute or render the tasks of the graph in order."""
