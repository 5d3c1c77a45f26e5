"""Task managing a file or directory on the node."""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
import logging
from typing import ClassVar, Self, TYPE_CHECKING

from .task import Task, TaskId

if TYPE_CHECKING:
    from node_converge.host import Host

__all__ = [
    "FileType",
    "File",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_FILE_MODE = "0644"
DEFAULT_DIRECTORY_MODE = "0755"


class FileType(StrEnum):
    """Type of filesystem entry managed by a File task."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(kw_only=True)
class File(Task):
    """A file with the specified contents and permissions."""

    KIND: ClassVar[str] = "File"

    path: str
    """Absolute path of the file on the node."""

    contents: str = ""
    """Contents of the file, ignored for directories."""

    mode: str | None = None
    """Octal permission mode, e.g. 0644."""

    type: FileType = FileType.FILE
    """Whether the path is a file or directory."""

    after_files: tuple[str, ...] = ()
    """Paths of other files to write first, if they are managed."""

    def __post_init__(self) -> None:
        if self.mode is None:
            self.mode = (
                DEFAULT_DIRECTORY_MODE
                if self.type == FileType.DIRECTORY
                else DEFAULT_FILE_MODE
            )
        self.mode = f"{int(self.mode, 8):04o}"

    @property
    def identity(self) -> TaskId:
        return TaskId(self.KIND, self.path)

    def desired_state(self) -> dict[str, object]:
        state = super().desired_state()
        state.pop("after_files", None)
        if self.type == FileType.DIRECTORY:
            state.pop("contents", None)
        return state

    def ordering_hints(self, tasks: Mapping[TaskId, Task]) -> list[TaskId]:
        hints = super().ordering_hints(tasks)
        hints.extend(TaskId(self.KIND, path) for path in self.after_files)
        return hints

    async def find(self, host: "Host") -> Self | None:
        mode = await host.file_mode(self.path)
        if mode is None:
            return None
        if await host.is_dir(self.path):
            return replace(self, type=FileType.DIRECTORY, contents="", mode=f"{mode:04o}")
        contents = await host.read_file(self.path)
        return replace(
            self,
            type=FileType.FILE,
            contents=(contents or b"").decode("utf-8", errors="replace"),
            mode=f"{mode:04o}",
        )

    async def apply(self, host: "Host", actual: Self | None) -> None:
        mode = int(self.mode or DEFAULT_FILE_MODE, 8)
        if actual is not None and actual.type != self.type:
            raise ValueError(
                f"{self.path} exists as a {actual.type}, expected a {self.type}"
            )
        if self.type == FileType.DIRECTORY:
            _LOGGER.info("Creating directory %s", self.path)
            await host.make_dirs(self.path, mode)
            return
        _LOGGER.info("Writing file %s", self.path)
        await host.write_file(self.path, self.contents.encode("utf-8"), mode)
