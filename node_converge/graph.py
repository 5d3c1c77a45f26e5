"""Dependency graph of the tasks emitted for a convergence run.

Edges come from two relations declared by each task:

- Required dependencies, which must reference a task in the set. A missing
  task is a `DanglingDependencyError`.
- Ordering hints, which only apply when the referenced task is present and
  are otherwise dropped.

The graph must be acyclic. The order produced is topological with ties broken
by task identity, so the same task set always yields the same order.
"""

from collections.abc import Iterator, Mapping
import heapq
import logging

from .exceptions import CycleError, DanglingDependencyError
from .tasks import Task, TaskId

__all__ = [
    "DependencyGraph",
]

_LOGGER = logging.getLogger(__name__)


class DependencyGraph:
    """A validated, ordered graph of tasks."""

    def __init__(self, tasks: Mapping[TaskId, Task]) -> None:
        """Build and validate the graph.

        Raises:
            DanglingDependencyError: If a task requires a task not in the set.
            CycleError: If the dependencies contain a cycle.
        """
        self._tasks = dict(tasks)
        self._predecessors: dict[TaskId, set[TaskId]] = {
            identity: set() for identity in self._tasks
        }
        self._successors: dict[TaskId, set[TaskId]] = {
            identity: set() for identity in self._tasks
        }
        self._add_edges()
        self._order = self._sort()

    def _add_edge(self, before: TaskId, after: TaskId) -> None:
        self._predecessors[after].add(before)
        self._successors[before].add(after)

    def _add_edges(self) -> None:
        for identity in sorted(self._tasks):
            task = self._tasks[identity]
            for dep in task.dependencies():
                if dep not in self._tasks:
                    raise DanglingDependencyError(identity, dep)
                if dep == identity:
                    raise CycleError([identity, identity])
                self._add_edge(dep, identity)
            for hint in task.ordering_hints(self._tasks):
                if hint == identity:
                    continue
                if hint not in self._tasks:
                    _LOGGER.debug("Dropping ordering hint %s of %s", hint, identity)
                    continue
                self._add_edge(hint, identity)

    def _sort(self) -> list[TaskId]:
        in_degree = {
            identity: len(preds) for identity, preds in self._predecessors.items()
        }
        ready = [identity for identity, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)
        order: list[TaskId] = []
        while ready:
            identity = heapq.heappop(ready)
            order.append(identity)
            for successor in self._successors[identity]:
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    heapq.heappush(ready, successor)
        if len(order) != len(self._tasks):
            remaining = {identity for identity, degree in in_degree.items() if degree}
            raise CycleError(self._find_cycle(remaining))
        return order

    def _find_cycle(self, remaining: set[TaskId]) -> list[TaskId]:
        """Return the members of one cycle among the unordered tasks."""
        start = min(remaining)
        path: list[TaskId] = []
        position: dict[TaskId, int] = {}
        identity = start
        # Every unordered task has an unordered predecessor, so walking
        # predecessors must eventually revisit a task.
        while identity not in position:
            position[identity] = len(path)
            path.append(identity)
            identity = min(p for p in self._predecessors[identity] if p in remaining)
        cycle = path[position[identity] :]
        cycle.reverse()
        return [*cycle, cycle[0]]

    @property
    def order(self) -> list[TaskId]:
        """Task identities in a valid execution order."""
        return list(self._order)

    @property
    def tasks(self) -> list[Task]:
        """Tasks in a valid execution order."""
        return [self._tasks[identity] for identity in self._order]

    def task(self, identity: TaskId) -> Task:
        return self._tasks[identity]

    def predecessors(self, identity: TaskId) -> list[TaskId]:
        """Tasks that must complete before the task starts."""
        return sorted(self._predecessors[identity])

    def successors(self, identity: TaskId) -> list[TaskId]:
        return sorted(self._successors[identity])

    def dependents(self, identity: TaskId) -> set[TaskId]:
        """All tasks that directly or transitively depend on the task."""
        seen: set[TaskId] = set()
        stack = [identity]
        while stack:
            for successor in self._successors[stack.pop()]:
                if successor not in seen:
                    seen.add(successor)
                    stack.append(successor)
        return seen

    def levels(self) -> list[list[TaskId]]:
        """Group tasks into batches where each batch only depends on earlier ones."""
        depth: dict[TaskId, int] = {}
        for identity in self._order:
            depth[identity] = max(
                (depth[p] + 1 for p in self._predecessors[identity]), default=0
            )
        levels: list[list[TaskId]] = [[] for _ in range(max(depth.values(), default=-1) + 1)]
        for identity in self._order:
            levels[depth[identity]].append(identity)
        return levels

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks)
