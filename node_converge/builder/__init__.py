"""Builders that turn the cluster and node specification into tasks.

Every builder satisfies the `ModelBuilder` capability and registers itself
with `register_builder` so a convergence run can collect them all.
"""

from .builder import ModelBuilder, default_builders, register_builder
from .context import BuildContext, BuilderScope
from .containerd import ContainerdBuilder

__all__ = [
    "ModelBuilder",
    "BuildContext",
    "BuilderScope",
    "ContainerdBuilder",
    "default_builders",
    "register_builder",
]
