"""Task managing a systemd service."""

from collections.abc import Mapping
from dataclasses import dataclass, replace
import logging
from typing import ClassVar, Self, TYPE_CHECKING

from node_converge.exceptions import CommandException

from .task import Task, TaskId

if TYPE_CHECKING:
    from node_converge.host import Host

__all__ = [
    "Service",
]

_LOGGER = logging.getLogger(__name__)

SYSTEMD_SYSTEM_PATH = "/lib/systemd/system"

# Services are started once everything they might use is on disk.
_SERVICE_PREREQUISITE_KINDS = frozenset({"File", "Package", "Archive", "Chattr"})


@dataclass(kw_only=True)
class Service(Task):
    """A systemd unit with its enabled and running state."""

    KIND: ClassVar[str] = "Service"

    name: str
    """Name of the unit, e.g. containerd.service."""

    definition: str | None = None
    """Contents of the unit file, None to manage an existing unit."""

    running: bool = True
    """Whether the service should be running."""

    enabled: bool = True
    """Whether the service should start on boot."""

    manage_state: bool = True
    """Whether to start or stop the service to match `running`."""

    @property
    def identity(self) -> TaskId:
        return TaskId(self.KIND, self.name)

    @property
    def unit_path(self) -> str:
        return f"{SYSTEMD_SYSTEM_PATH}/{self.name}"

    def ordering_hints(self, tasks: Mapping[TaskId, Task]) -> list[TaskId]:
        hints = super().ordering_hints(tasks)
        hints.extend(
            task_id
            for task_id in sorted(tasks)
            if task_id.kind in _SERVICE_PREREQUISITE_KINDS
        )
        return hints

    async def _systemctl_state(self, host: "Host", verb: str) -> str:
        try:
            return (await host.execute(["systemctl", verb, self.name])).strip()
        except CommandException as err:
            # systemctl reports inactive or disabled units with a non-zero exit
            _LOGGER.debug("systemctl %s %s: %s", verb, self.name, err)
            return ""

    async def find(self, host: "Host") -> Self | None:
        definition: str | None = None
        if self.definition is not None:
            contents = await host.read_file(self.unit_path)
            if contents is None:
                return None
            definition = contents.decode("utf-8")
        active = await self._systemctl_state(host, "is-active")
        enabled = await self._systemctl_state(host, "is-enabled")
        return replace(
            self,
            definition=definition,
            running=active == "active" if self.manage_state else self.running,
            enabled=enabled == "enabled",
        )

    async def apply(self, host: "Host", actual: Self | None) -> None:
        definition_changed = self.definition is not None and (
            actual is None or actual.definition != self.definition
        )
        if definition_changed and self.definition is not None:
            _LOGGER.info("Writing unit %s", self.unit_path)
            await host.write_file(self.unit_path, self.definition.encode("utf-8"), 0o644)
            await host.execute(["systemctl", "daemon-reload"])

        if self.enabled and (actual is None or not actual.enabled):
            await host.execute(["systemctl", "enable", self.name])
        elif not self.enabled and actual is not None and actual.enabled:
            await host.execute(["systemctl", "disable", self.name])

        if not self.manage_state:
            return
        if self.running:
            if definition_changed and actual is not None and actual.running:
                _LOGGER.info("Restarting service %s", self.name)
                await host.execute(["systemctl", "restart", self.name])
            elif actual is None or not actual.running:
                _LOGGER.info("Starting service %s", self.name)
                await host.execute(["systemctl", "start", self.name])
        elif actual is not None and actual.running:
            _LOGGER.info("Stopping service %s", self.name)
            await host.execute(["systemctl", "stop", self.name])
