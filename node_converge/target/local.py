"""Mutating target converging the live environment.

Each task is observed with `find`, compared with its desired state and
applied when they differ. Tasks start as soon as everything they depend on
completed, so independent branches of the graph run concurrently up to the
configured parallelism. A failed task causes its dependents to be skipped
while unrelated tasks continue. Nothing is rolled back.
"""

import logging

from node_converge.context import trace_context
from node_converge.exceptions import DependencyFailedError, TaskApplyError
from node_converge.graph import DependencyGraph
from node_converge.host import Host
from node_converge.scheduler import Scheduler, scheduler_context
from node_converge.scheduler.service import DEFAULT_PARALLELISM
from node_converge.status import InMemoryStatusStore, Status, StatusStore
from node_converge.tasks import Task, TaskId

from .target import RunResult, Target

__all__ = [
    "LocalTarget",
]

_LOGGER = logging.getLogger(__name__)


class LocalTarget(Target):
    """Applies tasks to a host."""

    def __init__(
        self,
        host: Host,
        parallelism: int = DEFAULT_PARALLELISM,
        dry_run: bool = False,
    ) -> None:
        """Initialize LocalTarget.

        Args:
            host: The environment tasks are applied to.
            parallelism: Maximum number of tasks applied at once.
            dry_run: Only report which tasks have changes, without applying them.
        """
        self._host = host
        self._parallelism = parallelism
        self._dry_run = dry_run

    async def apply(self, graph: DependencyGraph) -> RunResult:
        """Converge every task of the graph."""
        store = InMemoryStatusStore()
        for identity in graph.order:
            store.update_status(identity, Status.PENDING)
        with scheduler_context(self._parallelism) as scheduler:
            for identity in graph.order:
                scheduler.create_task(
                    self._converge(scheduler, store, graph, identity),
                    name=str(identity),
                )
            await scheduler.block_till_done()
        result = RunResult(statuses=store.statuses())
        _LOGGER.info("Applied %d tasks: %s", len(graph), result.summary())
        return result

    async def _converge(
        self,
        scheduler: Scheduler,
        store: StatusStore,
        graph: DependencyGraph,
        identity: TaskId,
    ) -> None:
        for dep in graph.predecessors(identity):
            try:
                await store.watch_done(dep, dependent=identity)
            except DependencyFailedError as err:
                _LOGGER.warning("Skipping %s: %s", identity, err)
                store.update_status(identity, Status.SKIPPED, str(err))
                return

        async with scheduler.slot():
            try:
                status = await self._apply_task(graph.task(identity))
            except Exception as err:
                _LOGGER.debug("Task %s failed", identity, exc_info=True)
                error = TaskApplyError(identity, str(err))
                store.update_status(identity, Status.FAILED, str(error))
                return
        store.update_status(identity, status)

    async def _apply_task(self, task: Task) -> Status:
        with trace_context(str(task.identity)):
            actual = await task.find(self._host)
            if not task.has_changes(actual):
                _LOGGER.debug("Task %s is unchanged", task.identity)
                return Status.UNCHANGED
            _LOGGER.info(
                "Task %s has changes to %s",
                task.identity,
                ", ".join(sorted(task.changes(actual))),
            )
            if self._dry_run:
                return Status.CHANGED
            await task.apply(self._host, actual)
            for args in task.on_change_execute:
                await self._host.run_on_change(args)
        return Status.CHANGED
