"""Scheduling of asynchronous work for a convergence run.

This module provides a simple scheduler that tracks the asyncio tasks
created while applying tasks to a host, bounds how many run at once, and
allows waiting for all of them to finish.
"""

from .service import Scheduler, get_scheduler, scheduler_context

__all__ = ["get_scheduler", "scheduler_context", "Scheduler"]
