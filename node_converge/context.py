"""Tracing of the nested phases of a convergence run.

Each phase (collecting from a builder, ordering, applying a task) is entered
with `trace_context`, which logs the nested phase label with its elapsed time
so that slow or failing tasks can be found in debug logs.
"""

import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


_PHASES: contextvars.ContextVar[tuple[str, ...]] = contextvars.ContextVar(
    "phases", default=()
)


@contextmanager
def trace_context(name: str) -> Generator[str, None, None]:
    """Enter a named phase, yielding the label of the nested phases."""
    phases = (*_PHASES.get(), name)
    token = _PHASES.set(phases)
    label = " > ".join(phases)
    start = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield label
    except Exception:
        _LOGGER.debug("[Trace] ! %s (%0.2fs)", label, perf_counter() - start)
        raise
    else:
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, perf_counter() - start)
    finally:
        _PHASES.reset(token)
