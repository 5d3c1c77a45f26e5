"""Task installing a distribution package."""

from dataclasses import dataclass, replace
import logging
from typing import ClassVar, Self, TYPE_CHECKING

from node_converge.exceptions import CommandException, ConfigurationError

from .task import Task, TaskId

if TYPE_CHECKING:
    from node_converge.host import Host

__all__ = [
    "Package",
]

_LOGGER = logging.getLogger(__name__)

POLICY_RC_D = "/usr/sbin/policy-rc.d"
# Tells invoke-rc.d that starting services is not allowed during install
POLICY_RC_D_DENY = "#!/bin/sh\nexit 101\n"


@dataclass(kw_only=True)
class Package(Task):
    """A package installed with the distribution package manager.

    A package with a source is downloaded, verified and installed from the
    downloaded file. A package without a source is installed by name from
    the distribution repositories.
    """

    KIND: ClassVar[str] = "Package"

    name: str
    """Name of the package."""

    version: str | None = None
    """Concrete version of the package, None for any version."""

    source: str | None = None
    """URL the package file is downloaded from."""

    hash: str | None = None
    """Hex encoded digest of the package file."""

    prevent_start: bool = False
    """Prevent services in the package from starting on install."""

    def __post_init__(self) -> None:
        if self.source and not self.hash:
            raise ConfigurationError(f"Package {self.name} source requires a hash")

    @property
    def identity(self) -> TaskId:
        return TaskId(self.KIND, self.name)

    async def _installed_version(self, host: "Host", name: str) -> str | None:
        if host.distribution.is_debian_family:
            args = ["dpkg-query", "-f", "${db:Status-Abbrev}${Version}", "-W", name]
        elif host.distribution.is_rhel_family:
            args = ["rpm", "-q", "--queryformat", "%{VERSION}-%{RELEASE}", name]
        else:
            raise ConfigurationError(
                f"Unsupported package manager for distribution {host.distribution}"
            )
        try:
            out = (await host.execute(args)).strip()
        except CommandException:
            _LOGGER.debug("Package %s is not installed", name)
            return None
        if host.distribution.is_debian_family:
            status, _, version = out.partition(" ")
            if not status.startswith("ii"):
                return None
            return version.strip()
        return out

    async def find(self, host: "Host") -> Self | None:
        version = await self._installed_version(host, self.name)
        if version is None:
            return None
        if self.version is None or version.startswith(self.version):
            # Installed version satisfies this package, the rest is not observable
            return self
        return replace(self, version=version)

    async def _install_args(self, host: "Host") -> list[str]:
        if not self.source:
            if host.distribution.is_debian_family:
                return ["apt-get", "install", "--yes", "--no-install-recommends", self.name]
            return ["yum", "install", "-y", self.name]
        local_file = await host.download(self.source, self.hash or "")
        if host.distribution.is_debian_family:
            return ["dpkg", "--install", str(local_file)]
        return ["yum", "install", "-y", str(local_file)]

    async def apply(self, host: "Host", actual: Self | None) -> None:
        args = await self._install_args(host)
        env = {"DEBIAN_FRONTEND": "noninteractive"}
        prevent_start = self.prevent_start and host.distribution.is_debian_family
        async with host.package_lock:
            _LOGGER.info("Installing package %s %s", self.name, self.version or "")
            if prevent_start:
                await host.write_file(POLICY_RC_D, POLICY_RC_D_DENY.encode(), 0o755)
            try:
                await host.execute(args, env=env)
            finally:
                if prevent_start:
                    await host.execute(["rm", "-f", str(host.path(POLICY_RC_D))])
