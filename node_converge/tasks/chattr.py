"""Task changing the attributes of a file, e.g. marking it immutable."""

from dataclasses import dataclass
import logging
from typing import ClassVar, Self, TYPE_CHECKING

from node_converge.exceptions import CommandException

from .task import Task, TaskId

if TYPE_CHECKING:
    from node_converge.host import Host

__all__ = [
    "Chattr",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(kw_only=True)
class Chattr(Task):
    """Set file attributes with chattr."""

    KIND: ClassVar[str] = "Chattr"

    file: str
    """Absolute path of the file."""

    mode: str
    """Attribute change, e.g. +i."""

    @property
    def identity(self) -> TaskId:
        return TaskId(self.KIND, self.file)

    async def find(self, host: "Host") -> Self | None:
        try:
            out = await host.execute(["lsattr", "-d", str(host.path(self.file))])
        except CommandException:
            _LOGGER.debug("Unable to read attributes of %s", self.file)
            return None
        attrs = out.split(" ", 1)[0]
        add = self.mode.startswith("+")
        wanted = self.mode.lstrip("+-=")
        if all((flag in attrs) == add for flag in wanted):
            return self
        return None

    async def apply(self, host: "Host", actual: Self | None) -> None:
        _LOGGER.info("Setting attributes %s on %s", self.mode, self.file)
        await host.execute(["chattr", self.mode, str(host.path(self.file))])
