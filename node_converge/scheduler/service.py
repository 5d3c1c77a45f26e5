"""Scheduler for tracking and bounding asynchronous work.

Work is created as asyncio tasks. Tracked tasks are awaited by
`block_till_done`, background tasks (e.g. detached commands) are not.
"""

import asyncio
import contextvars
from contextlib import asynccontextmanager, contextmanager
from functools import partial
import logging
from typing import Any, AsyncGenerator, Coroutine, Generator, Set
from abc import ABC, abstractmethod

from node_converge.exceptions import ConvergeException

_LOGGER = logging.getLogger(__name__)

__all__: list[str] = []

DEFAULT_PARALLELISM = 4


class Scheduler(ABC):
    """Service for tracking and waiting for asynchronous work."""

    @abstractmethod
    def create_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a new task.

        Args:
            coro: The coroutine to run as a task
            name: Optional name of the task, used for debugging

        Returns:
            The created task
        """

    @abstractmethod
    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create a task that is not waited on by `block_till_done`."""

    @abstractmethod
    def slot(self) -> Any:
        """Async context manager that holds one unit of parallelism."""

    @abstractmethod
    async def block_till_done(self) -> None:
        """Wait for all tracked tasks to complete.

        It's safe to call even if new tasks are created while waiting.
        """

    @abstractmethod
    def get_num_active_tasks(self) -> int:
        """Get the number of active tracked tasks."""


class SchedulerImpl(Scheduler):
    """Scheduler backed by asyncio tasks and a semaphore."""

    def __init__(self, parallelism: int = DEFAULT_PARALLELISM) -> None:
        """Initialize the scheduler."""
        if parallelism < 1:
            raise ValueError(f"Parallelism must be positive, got {parallelism}")
        self._parallelism = parallelism
        self._semaphore = asyncio.Semaphore(parallelism)
        self._active_tasks: Set[asyncio.Task[Any]] = set()
        self._background_tasks: Set[asyncio.Task[Any]] = set()

    @property
    def parallelism(self) -> int:
        return self._parallelism

    def create_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a new task."""
        task = asyncio.create_task(coro, name=name)
        self._active_tasks.add(task)
        task.add_done_callback(partial(self._task_done, self._active_tasks))
        return task

    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create a new background task."""
        task = asyncio.create_task(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(partial(self._task_done, self._background_tasks))
        return task

    @asynccontextmanager
    async def slot(self) -> AsyncGenerator[None, None]:
        """Hold one unit of parallelism while the context is active."""
        async with self._semaphore:
            yield

    def _task_done(
        self, task_set: Set[asyncio.Task[Any]], task: asyncio.Task[Any]
    ) -> None:
        """Callback when a task is done."""
        try:
            # This will raise any exception that occurred in the task
            task.result()
        except asyncio.CancelledError:
            pass
        except Exception as e:
            _LOGGER.error("Task %s failed: %s", task.get_name(), e)
        finally:
            task_set.discard(task)

    async def block_till_done(self) -> None:
        """Wait for all tracked tasks to complete."""
        while active_tasks := list(self._active_tasks):
            _LOGGER.debug("Waiting for %d tasks to complete", len(active_tasks))
            await asyncio.gather(*active_tasks, return_exceptions=True)
        await asyncio.sleep(0)

    def get_num_active_tasks(self) -> int:
        """Get the number of active tasks."""
        return len(self._active_tasks)


_scheduler_ctx: contextvars.ContextVar[Scheduler | None] = contextvars.ContextVar(
    "_scheduler_ctx", default=None
)


def get_scheduler() -> Scheduler:
    """Get the scheduler of the convergence run in progress."""
    if (instance := _scheduler_ctx.get()) is None:
        raise ConvergeException("No scheduler is active outside of a convergence run")
    return instance


@contextmanager
def scheduler_context(
    parallelism: int = DEFAULT_PARALLELISM,
) -> Generator[Scheduler, None, None]:
    """Make a new scheduler the current one while converging a graph."""
    scheduler = SchedulerImpl(parallelism)
    token = _scheduler_ctx.set(scheduler)
    try:
        yield scheduler
    finally:
        _scheduler_ctx.reset(token)
