"""Adapter for the live environment a mutating target converges.

The host exposes the small set of operations tasks need: reading and writing
files relative to a root directory, running commands, downloading artifacts
and talking to the cloud provider. Tests substitute the command runner to
record invocations instead of executing them.
"""

from abc import ABC, abstractmethod
import asyncio
from collections.abc import Sequence
import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import aiofiles
import aiofiles.os

from . import command
from .catalog import verify_content_hash
from .distros import Distribution
from .exceptions import CommandException, ConfigurationError, HashMismatchError
from .scheduler import get_scheduler
from .tasks.task import TaskId

__all__ = [
    "CloudProvider",
    "InMemoryCloudProvider",
    "Host",
]

_LOGGER = logging.getLogger(__name__)

CACHE_DIR = "/var/cache/node-converge"
BACKGROUND = "&"


class CloudProvider(ABC):
    """Client for the cloud account cloud resources are converged in."""

    @abstractmethod
    async def find(self, resource_type: str, name: str) -> dict[str, Any] | None:
        """Return the observed properties of the resource, or None if absent."""

    @abstractmethod
    async def apply(
        self, resource_type: str, name: str, properties: dict[str, Any]
    ) -> str:
        """Create or update the resource and return its provider identifier."""

    @abstractmethod
    async def lookup(self, identity: TaskId) -> str | None:
        """Return the provider identifier of a previously applied resource."""


class InMemoryCloudProvider(CloudProvider):
    """Cloud provider that keeps resources in memory."""

    def __init__(self) -> None:
        """Initialize InMemoryCloudProvider."""
        self.resources: dict[TaskId, dict[str, Any]] = {}

    async def find(self, resource_type: str, name: str) -> dict[str, Any] | None:
        if (properties := self.resources.get(TaskId(resource_type, name))) is None:
            return None
        return dict(properties)

    async def apply(
        self, resource_type: str, name: str, properties: dict[str, Any]
    ) -> str:
        identity = TaskId(resource_type, name)
        _LOGGER.debug("Applying cloud resource %s: %s", identity, properties)
        self.resources[identity] = dict(properties)
        return str(identity)

    async def lookup(self, identity: TaskId) -> str | None:
        if identity not in self.resources:
            return None
        return str(identity)


class Host:
    """The machine being configured."""

    def __init__(
        self,
        distribution: Distribution,
        root: Path = Path("/"),
        cloud: CloudProvider | None = None,
    ) -> None:
        """Initialize Host."""
        self.distribution = distribution
        self.root = root
        self._cloud = cloud
        self.package_lock = asyncio.Lock()

    @property
    def cloud(self) -> CloudProvider:
        if self._cloud is None:
            raise ConfigurationError("No cloud provider configured for this host")
        return self._cloud

    def path(self, path: str) -> Path:
        """Return the location of an absolute node path under the root."""
        if not path.startswith("/"):
            raise ConfigurationError(f"Path '{path}' must be absolute")
        return self.root / path.lstrip("/")

    async def read_file(self, path: str) -> bytes | None:
        """Return the contents of the file, or None if it does not exist."""
        local_path = self.path(path)
        if not await aiofiles.os.path.isfile(local_path):
            return None
        async with aiofiles.open(local_path, "rb") as fd:
            return await fd.read()

    async def file_mode(self, path: str) -> int | None:
        """Return the permission bits of the path, or None if it does not exist."""
        try:
            stat = await aiofiles.os.stat(self.path(path))
        except FileNotFoundError:
            return None
        return stat.st_mode & 0o7777

    async def is_dir(self, path: str) -> bool:
        return await aiofiles.os.path.isdir(self.path(path))

    async def make_dirs(self, path: str, mode: int = 0o755) -> None:
        local_path = self.path(path)
        await aiofiles.os.makedirs(local_path, mode=mode, exist_ok=True)
        os.chmod(local_path, mode)

    async def write_file(self, path: str, contents: bytes, mode: int | None) -> None:
        """Write the file, creating parent directories as needed."""
        local_path = self.path(path)
        await aiofiles.os.makedirs(local_path.parent, exist_ok=True)
        async with aiofiles.open(local_path, "wb") as fd:
            await fd.write(contents)
        if mode is not None:
            os.chmod(local_path, mode)

    async def execute(
        self, args: Sequence[str], env: dict[str, str] | None = None
    ) -> str:
        """Run a command on the host and return stdout."""
        return await command.run(command.Command(list(args), env=env))

    async def run_on_change(self, args: Sequence[str]) -> None:
        """Run a command triggered by a change.

        A trailing `&` runs the command detached, without waiting on it.
        """
        if args and args[-1] == BACKGROUND:
            _LOGGER.info("Running in background: %s", " ".join(args[:-1]))
            get_scheduler().create_background_task(
                self.execute(args[:-1]), name=" ".join(args[:-1])
            )
            return
        _LOGGER.info("Running: %s", " ".join(args))
        await self.execute(args)

    async def download(self, url: str, hash: str) -> Path:
        """Download the url into the cache, verifying its contents."""
        filename = Path(urlparse(url).path).name
        if not filename:
            raise ConfigurationError(f"Unable to determine file name for {url}")
        cache_path = f"{CACHE_DIR}/{hash}/{filename}"
        local_path = self.path(cache_path)
        if await aiofiles.os.path.isfile(local_path):
            try:
                await verify_content_hash(local_path, hash)
            except HashMismatchError:
                _LOGGER.info("Cached %s is stale, downloading again", local_path)
            else:
                return local_path
        await aiofiles.os.makedirs(local_path.parent, exist_ok=True)
        _LOGGER.info("Downloading %s", url)
        try:
            await self.execute(
                ["curl", "-fsSL", "--retry", "3", "-o", str(local_path), url]
            )
        except CommandException as err:
            raise CommandException(f"Unable to download {url}: {err}") from err
        await verify_content_hash(local_path, hash)
        return local_path
