"""Catalog of installable artifacts for node software.

A catalog is a static table of `ArtifactRecord` entries, each describing one
concrete build of a piece of software for a set of distributions and
architectures. Selection is inclusive: every record whose constraints are
satisfied for the requested version is returned, since some distributions
need more than one artifact to realize a single logical install.

Example usage:
```
from node_converge.artifacts import CONTAINERD_CATALOG

for record in CONTAINERD_CATALOG.select(Distribution.DEBIAN9, Architecture.AMD64, "1.2.4"):
    print(record.source)
```
"""

from dataclasses import dataclass, field
from enum import StrEnum
import hashlib
import logging
from pathlib import Path

import aiofiles
from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_decode
from mashumaro.config import BaseConfig

from .distros import Architecture, Distribution
from .exceptions import ConfigurationError, HashMismatchError

__all__ = [
    "InstallMechanism",
    "ExtraPackage",
    "PostInstallAction",
    "ArtifactRecord",
    "ArtifactCatalog",
    "verify_content_hash",
]

_LOGGER = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024

# Digest algorithm inferred from the length of the hex encoded hash.
_HASH_ALGORITHMS = {
    40: "sha1",
    64: "sha256",
}


class InstallMechanism(StrEnum):
    """How an artifact is installed on the host."""

    PACKAGE = "package"
    """A package installed with the distribution package manager."""

    ARCHIVE = "archive"
    """A plain tarball extracted onto the filesystem."""


@dataclass(frozen=True)
class ExtraPackage(DataClassDictMixin):
    """An additional package installed alongside the primary package."""

    name: str
    """Name of the package."""

    version: str
    """Concrete version of the package."""

    source: str
    """URL the package is downloaded from."""

    hash: str
    """Hex encoded digest of the package contents."""

    class Config(BaseConfig):
        omit_none = True


@dataclass(frozen=True)
class PostInstallAction(DataClassDictMixin):
    """A remediation step run after the install completes."""

    file: str
    """Absolute path of the installed file to modify."""

    mode: str = "+i"
    """Attribute change passed to chattr, e.g. +i to mark the file immutable."""

    class Config(BaseConfig):
        omit_none = True


@dataclass(frozen=True)
class ArtifactRecord(DataClassDictMixin):
    """One installable build of a piece of node software."""

    name: str
    """Logical name of the software, also the primary package name."""

    package_version: str
    """The version requested by the cluster specification, e.g. 1.2.10."""

    source: str
    """URL the artifact is downloaded from."""

    hash: str
    """Hex encoded digest of the artifact contents."""

    version: str | None = None
    """The concrete version of the artifact, e.g. 1.2.10-3."""

    distros: tuple[Distribution, ...] = ()
    """Distributions this record applies to, empty applies to all."""

    architectures: tuple[Architecture, ...] = ()
    """Architectures this record applies to, empty applies to all."""

    install: InstallMechanism = InstallMechanism.PACKAGE
    """How the artifact is installed."""

    extra_packages: tuple[ExtraPackage, ...] = ()
    """Additional packages installed alongside the primary package."""

    post_install: tuple[PostInstallAction, ...] = ()
    """Remediation steps that depend on the install task."""

    dependencies: tuple[str, ...] = ()
    """Names of distribution packages that must also be installed."""

    class Config(BaseConfig):
        omit_none = True

    def __post_init__(self) -> None:
        if not self.hash:
            raise ConfigurationError(
                f"Artifact {self.name} {self.package_version} is missing a content hash"
            )
        if len(self.hash) not in _HASH_ALGORITHMS:
            raise ConfigurationError(
                f"Artifact {self.name} {self.package_version} has unsupported hash '{self.hash}'"
            )

    @property
    def plain_archive(self) -> bool:
        return self.install == InstallMechanism.ARCHIVE

    def matches(
        self, distribution: Distribution, architecture: Architecture, version: str
    ) -> bool:
        """Return True if this record applies to the specified node."""
        if self.package_version != version:
            return False
        if self.distros and distribution not in self.distros:
            return False
        if self.architectures and architecture not in self.architectures:
            return False
        return True


@dataclass(frozen=True)
class ArtifactCatalog(DataClassDictMixin):
    """An immutable table of artifact records."""

    records: tuple[ArtifactRecord, ...] = field(default_factory=tuple)

    def select(
        self, distribution: Distribution, architecture: Architecture, version: str
    ) -> list[ArtifactRecord]:
        """Return every record matching the node, in catalog order.

        An empty result means there is no artifact for this combination; the
        caller decides whether that is fatal.
        """
        selected = [
            record
            for record in self.records
            if record.matches(distribution, architecture, version)
        ]
        _LOGGER.debug(
            "Selected %d artifact(s) for %s %s %s",
            len(selected),
            distribution,
            architecture,
            version,
        )
        return selected

    def versions(self) -> list[str]:
        """Return the requested versions known to the catalog, in catalog order."""
        return list(dict.fromkeys(record.package_version for record in self.records))

    @classmethod
    def parse_yaml(cls, content: str) -> "ArtifactCatalog":
        """Parse a serialized catalog."""
        try:
            return yaml_decode(content, cls)
        except ConfigurationError:
            raise
        except Exception as err:
            raise ConfigurationError(f"Unable to parse artifact catalog: {err}") from err

    @classmethod
    def from_file(cls, path: Path) -> "ArtifactCatalog":
        """Load a serialized catalog from a file."""
        if not path.exists():
            raise ConfigurationError(f"Artifact catalog {path} does not exist")
        return cls.parse_yaml(path.read_text())


async def verify_content_hash(path: Path, expected: str) -> None:
    """Verify the contents of the file match the expected hex digest."""
    if not (algorithm := _HASH_ALGORITHMS.get(len(expected))):
        raise HashMismatchError(f"Unsupported hash '{expected}' for {path}")
    digest = hashlib.new(algorithm)
    async with aiofiles.open(path, "rb") as fd:
        while chunk := await fd.read(_CHUNK_SIZE):
            digest.update(chunk)
    actual = digest.hexdigest()
    if actual != expected.lower():
        raise HashMismatchError(
            f"Hash mismatch for {path}: expected {algorithm} {expected}, got {actual}"
        )
    _LOGGER.debug("Verified %s hash of %s", algorithm, path)
