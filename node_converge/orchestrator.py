"""Orchestrator for a single convergence run.

A run moves through a fixed sequence of states and never goes backward:

    Collecting -> Validated -> Ordered -> Applying/Rendering -> Done | Failed

Builders emit tasks into a fresh build context, the task set is validated
and ordered as a dependency graph, and the chosen target either applies or
renders it. A failed run is discarded; retrying means starting a new run.
"""

from collections.abc import Sequence
from enum import StrEnum
import logging

from node_converge.builder import BuildContext, ModelBuilder, default_builders
from node_converge.cluster import NodeContext
from node_converge.config import ConvergeConfig
from node_converge.context import trace_context
from node_converge.exceptions import ConvergeException
from node_converge.graph import DependencyGraph
from node_converge.target import RenderTarget, RunResult, Target

__all__ = [
    "RunState",
    "ConvergenceRun",
]

_LOGGER = logging.getLogger(__name__)


class RunState(StrEnum):
    """State of a convergence run."""

    COLLECTING = "Collecting"
    VALIDATED = "Validated"
    ORDERED = "Ordered"
    APPLYING = "Applying"
    RENDERING = "Rendering"
    DONE = "Done"
    FAILED = "Failed"


class ConvergenceRun:
    """Collects, orders and executes the tasks for one node."""

    def __init__(
        self,
        node: NodeContext,
        builders: Sequence[ModelBuilder] | None = None,
        config: ConvergeConfig | None = None,
    ) -> None:
        """Initialize ConvergenceRun.

        Args:
            node: The cluster and node specification builders inspect.
            builders: Builders to run, every registered builder when None.
            config: Configuration for the run.
        """
        self.config = config or ConvergeConfig()
        self.node = node
        self._builders = (
            list(builders) if builders is not None else default_builders(self.config)
        )
        self.context = BuildContext(node)
        self.graph: DependencyGraph | None = None
        self.state = RunState.COLLECTING
        self._collected = False

    def _transition(self, state: RunState) -> None:
        _LOGGER.info("Convergence run %s -> %s", self.state, state)
        self.state = state

    def _expect(self, state: RunState) -> None:
        if self.state != state:
            raise ConvergeException(
                f"Convergence run is {self.state}, expected {state}"
            )

    def collect(self) -> None:
        """Run every builder against the build context."""
        self._expect(RunState.COLLECTING)
        if self._collected:
            raise ConvergeException("Convergence run already collected its tasks")
        self._collected = True
        with trace_context("Collecting"):
            try:
                for builder in self._builders:
                    with trace_context(builder.name):
                        builder.build(self.context.scope(builder.name))
            except Exception:
                self._transition(RunState.FAILED)
                raise
        _LOGGER.info(
            "Collected %d tasks from %d builders", len(self.context), len(self._builders)
        )

    def order(self) -> DependencyGraph:
        """Validate the collected task set and order it."""
        self._expect(RunState.COLLECTING)
        with trace_context("Ordering"):
            try:
                self.graph = DependencyGraph(self.context.tasks)
            except Exception:
                self._transition(RunState.FAILED)
                raise
        self._transition(RunState.VALIDATED)
        self._transition(RunState.ORDERED)
        return self.graph

    async def execute(self, target: Target) -> RunResult:
        """Hand the ordered graph to the target."""
        self._expect(RunState.ORDERED)
        if self.graph is None:
            raise ConvergeException("Convergence run has no ordered graph")
        rendering = isinstance(target, RenderTarget)
        self._transition(RunState.RENDERING if rendering else RunState.APPLYING)
        with trace_context(self.state):
            try:
                result = await target.apply(self.graph)
            except Exception:
                self._transition(RunState.FAILED)
                raise
        self._transition(RunState.DONE if result.success else RunState.FAILED)
        return result

    async def run(self, target: Target) -> RunResult:
        """Collect, order and execute in one step."""
        self.collect()
        self.order()
        return await self.execute(target)
