"""Task extracting a plain archive onto the node."""

from dataclasses import dataclass, field
import logging
from typing import ClassVar, Self, TYPE_CHECKING

from .task import Task, TaskId

if TYPE_CHECKING:
    from node_converge.host import Host

__all__ = [
    "Archive",
]

_LOGGER = logging.getLogger(__name__)

STATE_DIR = "/var/cache/node-converge/archives"


@dataclass(kw_only=True)
class Archive(Task):
    """A tarball extracted into a target directory.

    The archive is extracted into a staging directory and then copied into
    `target_dir`. Entries of `map_files` copy an extracted subdirectory to a
    different location instead, e.g. `./usr/local/bin` to `/usr`.
    """

    KIND: ClassVar[str] = "Archive"

    name: str
    """Name of the archive, used to track the installed version."""

    source: str
    """URL the archive is downloaded from."""

    hash: str
    """Hex encoded digest of the archive."""

    target_dir: str = "/"
    """Directory the archive is extracted into."""

    map_files: dict[str, str] = field(default_factory=dict)
    """Extracted subdirectories copied to another directory."""

    strip_components: int = 0
    """Number of leading path components removed on extraction."""

    @property
    def identity(self) -> TaskId:
        return TaskId(self.KIND, self.name)

    @property
    def state_file(self) -> str:
        return f"{STATE_DIR}/{self.name}.hash"

    async def find(self, host: "Host") -> Self | None:
        contents = await host.read_file(self.state_file)
        if contents is None:
            return None
        if contents.decode().strip() != self.hash:
            _LOGGER.debug("Archive %s was installed from a different hash", self.name)
            return None
        return self

    async def apply(self, host: "Host", actual: Self | None) -> None:
        local_file = await host.download(self.source, self.hash)
        staging_dir = f"{STATE_DIR}/{self.name}"
        staging_path = str(host.path(staging_dir))

        _LOGGER.info("Extracting %s", self.source)
        await host.execute(["rm", "-rf", staging_path])
        await host.make_dirs(staging_dir)
        args = ["tar", "xf", str(local_file), "-C", staging_path]
        if self.strip_components:
            args.append(f"--strip-components={self.strip_components}")
        await host.execute(args)

        if self.map_files:
            for src, dest in sorted(self.map_files.items()):
                await host.make_dirs(dest)
                await host.execute(
                    [
                        "cp",
                        "-r",
                        f"{staging_path}/{src.removeprefix('./')}",
                        str(host.path(dest)),
                    ]
                )
        else:
            await host.make_dirs(self.target_dir)
            await host.execute(
                ["cp", "-r", f"{staging_path}/.", str(host.path(self.target_dir))]
            )

        await host.write_file(self.state_file, self.hash.encode(), 0o644)
