"""Tests for the SchedulerImpl."""

import asyncio
import logging
from typing import Any

import pytest

from node_converge.exceptions import ConvergeException
from node_converge.scheduler import get_scheduler, scheduler_context
from node_converge.scheduler.service import SchedulerImpl

_LOGGER = logging.getLogger(__name__)


@pytest.fixture
def scheduler() -> SchedulerImpl:
    """Fixture for creating a SchedulerImpl instance."""
    return SchedulerImpl()


async def test_create_and_complete_task(scheduler: SchedulerImpl) -> None:
    """Test creating and completing a task."""

    async def test_task() -> Any:
        await asyncio.sleep(0.1)
        return "done"

    task = scheduler.create_task(test_task())
    assert scheduler.get_num_active_tasks() == 1

    result = await task
    assert result == "done"
    assert scheduler.get_num_active_tasks() == 0


async def test_block_till_done(scheduler: SchedulerImpl) -> None:
    """Test blocking until all tasks are done."""

    async def test_task() -> Any:
        await asyncio.sleep(0.1)
        return "done"

    tasks = [scheduler.create_task(test_task()) for _ in range(3)]
    assert scheduler.get_num_active_tasks() == 3

    await scheduler.block_till_done()

    assert scheduler.get_num_active_tasks() == 0
    for task in tasks:
        assert task.done()


async def test_block_till_done_with_new_tasks(scheduler: SchedulerImpl) -> None:
    """Test tasks created while waiting are also waited on."""
    results: list[str] = []

    async def child() -> None:
        await asyncio.sleep(0.05)
        results.append("child")

    async def parent() -> None:
        await asyncio.sleep(0.01)
        scheduler.create_task(child())
        results.append("parent")

    scheduler.create_task(parent())
    await scheduler.block_till_done()
    assert results == ["parent", "child"]


async def test_task_failure(scheduler: SchedulerImpl) -> None:
    """Test handling of task failures."""

    async def failing_task() -> Any:
        await asyncio.sleep(0.1)
        raise ValueError("Test error")

    task = scheduler.create_task(failing_task())

    with pytest.raises(ValueError, match="Test error"):
        await task

    assert scheduler.get_num_active_tasks() == 0


async def test_task_cancellation(scheduler: SchedulerImpl) -> None:
    """Test task cancellation."""

    async def cancellable_task() -> Any:
        await asyncio.sleep(10)
        return "should not get here"

    task = scheduler.create_task(cancellable_task())
    task.cancel()

    # Give the event loop a chance to process the cancellation
    await asyncio.sleep(0.01)

    assert scheduler.get_num_active_tasks() == 0
    assert task.cancelled()


async def test_background_task_not_waited(scheduler: SchedulerImpl) -> None:
    """Test background tasks are not waited on by block_till_done."""
    event = asyncio.Event()

    async def background() -> None:
        await event.wait()

    task = scheduler.create_background_task(background())
    await scheduler.block_till_done()
    assert not task.done()

    event.set()
    await task
    assert task.done()


async def test_slot_bounds_parallelism() -> None:
    """Test no more than the configured number of slots are held at once."""
    scheduler = SchedulerImpl(parallelism=2)
    running = 0
    peak = 0

    async def work() -> None:
        nonlocal running, peak
        async with scheduler.slot():
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

    for _ in range(6):
        scheduler.create_task(work())
    await scheduler.block_till_done()
    assert peak == 2


def test_invalid_parallelism() -> None:
    """Test parallelism must be positive."""
    with pytest.raises(ValueError, match="must be positive"):
        SchedulerImpl(parallelism=0)


def test_scheduler_context() -> None:
    """Test the scheduler is scoped to the context."""
    with scheduler_context(parallelism=2) as scheduler:
        first = get_scheduler()
        assert isinstance(first, SchedulerImpl)
        assert first is scheduler
        assert first.parallelism == 2

    with scheduler_context() as scheduler:
        second = get_scheduler()
        assert first is not second
        assert scheduler is second


def test_no_scheduler_outside_context() -> None:
    """Test there is no implicit scheduler outside a convergence run."""
    with pytest.raises(ConvergeException, match="No scheduler is active"):
        get_scheduler()
