"""Targets consuming an ordered task graph.

A target either converges the live environment, applying tasks in
dependency order, or renders a declarative description of the graph.
"""

from .target import Target, RunResult
from .local import LocalTarget
from .render import RenderFormat, RenderTarget

__all__ = [
    "Target",
    "RunResult",
    "LocalTarget",
    "RenderFormat",
    "RenderTarget",
]
