"""Task managing a resource in the cloud account."""

from dataclasses import dataclass, field, replace
import logging
from typing import Any, ClassVar, Self, TYPE_CHECKING

from .task import RenderedResource, Task, TaskId

if TYPE_CHECKING:
    from node_converge.host import Host

__all__ = [
    "CloudResource",
    "references",
]

_LOGGER = logging.getLogger(__name__)


def references(value: Any) -> list[TaskId]:
    """Return the task references found in a property value, in order."""
    if isinstance(value, TaskId):
        return [value]
    if isinstance(value, dict):
        return [ref for key in sorted(value) for ref in references(value[key])]
    if isinstance(value, (list, tuple)):
        return [ref for item in value for ref in references(item)]
    return []


@dataclass(kw_only=True)
class CloudResource(Task):
    """A cloud resource described by its type and a property bag.

    Property values may be `TaskId` references to other cloud resources. A
    reference is an implicit dependency and is resolved to the provider
    identifier of the referenced resource when applied, or to a symbolic
    reference when rendered.
    """

    KIND: ClassVar[str] = "CloudResource"

    resource_type: str
    """Provider resource type, e.g. aws_instance."""

    name: str
    """Logical name, typically a dotted DNS style name."""

    properties: dict[str, Any] = field(default_factory=dict)
    """Desired properties of the resource."""

    @property
    def kind(self) -> str:
        return self.resource_type

    @property
    def identity(self) -> TaskId:
        return TaskId(self.resource_type, self.name)

    def desired_state(self) -> dict[str, Any]:
        return {"name": self.name, "properties": self.properties}

    def dependencies(self) -> tuple[TaskId, ...]:
        deps = list(super().dependencies())
        deps.extend(ref for ref in references(self.properties) if ref not in deps)
        return tuple(deps)

    async def _resolve(self, host: "Host", value: Any) -> Any:
        if isinstance(value, TaskId):
            if (resolved := await host.cloud.lookup(value)) is None:
                raise ValueError(f"Referenced resource {value} does not exist")
            return resolved
        if isinstance(value, dict):
            return {key: await self._resolve(host, item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [await self._resolve(host, item) for item in value]
        return value

    async def find(self, host: "Host") -> Self | None:
        observed = await host.cloud.find(self.resource_type, self.name)
        if observed is None:
            return None
        # Map resolved identifiers back to references so they compare equal
        for key, value in self.properties.items():
            if isinstance(value, TaskId) and observed.get(key) == await host.cloud.lookup(
                value
            ):
                observed[key] = value
        return replace(self, properties=observed)

    async def apply(self, host: "Host", actual: Self | None) -> None:
        properties = await self._resolve(host, self.properties)
        _LOGGER.info("Applying %s %s", self.resource_type, self.name)
        await host.cloud.apply(self.resource_type, self.name, properties)

    def render(self) -> RenderedResource:
        return RenderedResource(kind=self.resource_type, properties=self.properties)
