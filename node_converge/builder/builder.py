"""The capability shared by every producer of tasks."""

from collections.abc import Callable
import logging
from typing import Protocol, runtime_checkable

from node_converge.config import ConvergeConfig

from .context import BuilderScope

__all__ = [
    "ModelBuilder",
    "register_builder",
    "default_builders",
]

_LOGGER = logging.getLogger(__name__)

BuilderFactory = Callable[[ConvergeConfig], "ModelBuilder"]

_REGISTRY: dict[str, BuilderFactory] = {}


@runtime_checkable
class ModelBuilder(Protocol):
    """Inspects the node and emits the tasks it needs.

    Builders are independent of each other and may run in any order.
    """

    name: str

    def build(self, scope: BuilderScope) -> None:
        """Emit tasks for the node into the scope."""


def register_builder(
    name: str,
) -> Callable[[BuilderFactory], BuilderFactory]:
    """Decorator registering a builder factory under a unique name.

    The factory is called with the run configuration.
    """

    def decorator(factory: BuilderFactory) -> BuilderFactory:
        if name in _REGISTRY:
            raise ValueError(f"Builder {name} is already registered")
        _REGISTRY[name] = factory
        return factory

    return decorator


def default_builders(config: ConvergeConfig | None = None) -> list[ModelBuilder]:
    """Return an instance of every registered builder, ordered by name."""
    config = config or ConvergeConfig()
    return [_REGISTRY[name](config) for name in sorted(_REGISTRY)]
