"""Rendering target producing a declarative description of the graph.

Every task becomes one resource keyed by an identifier derived from its kind
and name. Identities that sanitize to the same identifier are told apart by
a short digest of the identity. References between tasks are written as
`${identifier}` expressions and ordering edges that are not already implied by a reference
are listed in `depends_on`. The output is byte for byte deterministic for
the same graph.
"""

from collections import defaultdict
from enum import Enum, StrEnum
import hashlib
import json
import logging
from typing import Any

from slugify import slugify
import yaml

from node_converge.exceptions import RenderError
from node_converge.graph import DependencyGraph
from node_converge.status import Status, StatusInfo
from node_converge.tasks import TaskId

from .target import RunResult, Target

__all__ = [
    "RenderFormat",
    "RenderTarget",
    "resource_name",
]

_LOGGER = logging.getLogger(__name__)

SCALAR_TYPES = (str, int, float, bool, type(None))
DIGEST_LENGTH = 8


class RenderFormat(StrEnum):
    """Serialization of the rendered document."""

    JSON = "json"
    YAML = "yaml"


def resource_name(identity: TaskId) -> str:
    """Return the identifier for a task, safe for use in a description language."""
    kind = slugify(identity.kind, separator="_")
    name = slugify(identity.name, separator="-")
    if not kind or not name:
        raise RenderError(f"Unable to derive a resource name for {identity}")
    return f"{kind}-{name}"


def _digest(identity: TaskId) -> str:
    return hashlib.sha1(str(identity).encode("utf-8")).hexdigest()[:DIGEST_LENGTH]


def _resource_names(identities: list[TaskId]) -> dict[TaskId, str]:
    """Assign every identity an identifier unique within the render."""
    shared: dict[str, list[TaskId]] = defaultdict(list)
    for identity in identities:
        shared[resource_name(identity)].append(identity)
    names: dict[TaskId, str] = {}
    for name, members in shared.items():
        if len(members) == 1:
            names[members[0]] = name
            continue
        _LOGGER.debug("Resource name %s is shared by %d tasks", name, len(members))
        for identity in members:
            names[identity] = f"{name}-{_digest(identity)}"
    owners: dict[str, TaskId] = {}
    for identity in sorted(names):
        if (other := owners.setdefault(names[identity], identity)) != identity:
            raise RenderError(
                f"Resource name '{names[identity]}' is used by both "
                f"{other} and {identity}"
            )
    return names


class _Converter:
    """Converts task properties into plain serializable values."""

    def __init__(self, names: dict[TaskId, str], identity: TaskId) -> None:
        self._names = names
        self._identity = identity
        self.references: set[TaskId] = set()

    def convert(self, value: Any) -> Any:
        if isinstance(value, TaskId):
            if value not in self._names:
                raise RenderError(
                    f"Task {self._identity} references unknown task {value}"
                )
            self.references.add(value)
            return "${" + self._names[value] + "}"
        if isinstance(value, Enum):
            return self.convert(value.value)
        if isinstance(value, SCALAR_TYPES):
            return value
        if isinstance(value, dict):
            result = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise RenderError(
                        f"Task {self._identity} has non string property key {key!r}"
                    )
                result[key] = self.convert(item)
            return result
        if isinstance(value, (list, tuple)):
            return [self.convert(item) for item in value]
        raise RenderError(
            f"Task {self._identity} has unsupported property value of type "
            f"{type(value).__name__}"
        )


class RenderTarget(Target):
    """Renders the graph instead of mutating anything."""

    def __init__(self, format: RenderFormat = RenderFormat.JSON) -> None:
        """Initialize RenderTarget."""
        self._format = RenderFormat(format)

    async def apply(self, graph: DependencyGraph) -> RunResult:
        output = self.render(graph)
        return RunResult(
            statuses={
                identity: StatusInfo(status=Status.CHANGED) for identity in graph.order
            },
            output=output,
        )

    def build_document(self, graph: DependencyGraph) -> dict[str, Any]:
        """Return the rendered document as plain values."""
        names = _resource_names(graph.order)
        resources: dict[str, Any] = {}
        for task in graph.tasks:
            identity = task.identity
            try:
                rendered = task.render()
            except RenderError:
                raise
            except Exception as err:
                raise RenderError(f"Unable to render {identity}: {err}") from err
            converter = _Converter(names, identity)
            resource: dict[str, Any] = {
                "kind": rendered.kind,
                "properties": converter.convert(rendered.properties),
            }
            depends_on = [
                names[dep]
                for dep in graph.predecessors(identity)
                if dep not in converter.references
            ]
            if depends_on:
                resource["depends_on"] = sorted(depends_on)
            resources[names[identity]] = resource
        _LOGGER.debug("Rendered %d resources", len(resources))
        return {"resources": resources}

    def render(self, graph: DependencyGraph) -> str:
        """Render the graph as a string in the configured format."""
        doc = self.build_document(graph)
        if self._format == RenderFormat.YAML:
            return yaml.dump(doc, sort_keys=True, explicit_start=True)
        return json.dumps(doc, indent=2, sort_keys=True) + "\n"
