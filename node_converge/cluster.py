"""Representation of the desired cluster and node specification.

The cluster specification is read-only input to the builders. It is parsed
from a Cluster document with the usual `metadata` and `spec` sections:

```
kind: Cluster
metadata:
  name: example.k8s.local
spec:
  containerRuntime: containerd
  containerd:
    version: 1.2.10
    logLevel: info
  networking:
    kubenet: {}
```
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

import yaml
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig

from .distros import Architecture, Distribution
from .exceptions import ConfigurationError

__all__ = [
    "ContainerdConfig",
    "NetworkingSpec",
    "ClusterSpec",
    "NodeContext",
    "read_cluster",
]

_LOGGER = logging.getLogger(__name__)

CLUSTER_KIND = "Cluster"


def _flag(name: str, alias: str | None = None) -> dict[str, Any]:
    """Field metadata for a value passed to the daemon as --name=value."""
    metadata: dict[str, Any] = {"flag": name}
    if alias:
        metadata.update(field_options(alias=alias))
    return metadata


@dataclass(frozen=True)
class ContainerdConfig(DataClassDictMixin):
    """Optional containerd configuration for the cluster."""

    version: str | None = None
    """The containerd version to install, e.g. 1.2.10."""

    address: str | None = field(default=None, metadata=_flag("address"))
    """Address for containerd's GRPC server."""

    config_override: str | None = field(
        default=None, metadata=field_options(alias="configOverride")
    )
    """Contents written to the containerd config file."""

    log_level: str | None = field(default=None, metadata=_flag("log-level", "logLevel"))
    """Logging level for the daemon."""

    root: str | None = field(default=None, metadata=_flag("root"))
    """Directory for persistent data."""

    state: str | None = field(default=None, metadata=_flag("state"))
    """Directory for execution state files."""

    skip_install: bool = field(default=False, metadata=field_options(alias="skipInstall"))
    """Leave the node's containerd alone entirely."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass(frozen=True)
class NetworkingSpec(DataClassDictMixin):
    """Networking provider of the cluster, at most one is set."""

    kubenet: dict[str, Any] | None = None
    cni: dict[str, Any] | None = None
    calico: dict[str, Any] | None = None
    cilium: dict[str, Any] | None = None

    class Config(BaseConfig):
        omit_none = True

    @property
    def uses_kubenet(self) -> bool:
        return self.kubenet is not None


@dataclass(frozen=True)
class ClusterSpec(DataClassDictMixin):
    """The desired state of the cluster relevant to node configuration."""

    name: str
    """The name of the cluster, typically a DNS name."""

    container_runtime: str = field(
        default="containerd", metadata=field_options(alias="containerRuntime")
    )
    """The container runtime used by the kubelet."""

    containerd: ContainerdConfig | None = None
    """Optional containerd configuration, absent means default."""

    networking: NetworkingSpec | None = None
    """Networking configuration, absent means default."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True

    @property
    def containerd_config(self) -> ContainerdConfig:
        """Return the containerd configuration, empty when not specified."""
        return self.containerd or ContainerdConfig()

    @property
    def networking_spec(self) -> NetworkingSpec:
        return self.networking or NetworkingSpec()

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ClusterSpec":
        """Parse a ClusterSpec from a Cluster document."""
        if doc.get("kind", CLUSTER_KIND) != CLUSTER_KIND:
            raise ConfigurationError(f"Invalid {cls.__name__} kind: {doc.get('kind')}")
        if not (metadata := doc.get("metadata")):
            raise ConfigurationError(f"Invalid {cls.__name__} missing metadata: {doc}")
        if not isinstance(metadata, dict):
            raise ConfigurationError(
                f"Invalid {cls.__name__} metadata is not a mapping: {doc}"
            )
        if not (name := metadata.get("name")):
            raise ConfigurationError(
                f"Invalid {cls.__name__} missing metadata.name: {doc}"
            )
        spec = doc.get("spec") or {}
        if not isinstance(spec, dict):
            raise ConfigurationError(
                f"Invalid {cls.__name__} {name} spec is not a mapping"
            )
        try:
            return cls.from_dict({**spec, "name": name})
        except Exception as err:
            raise ConfigurationError(f"Invalid {cls.__name__} {name}: {err}") from err


@dataclass(frozen=True)
class NodeContext:
    """The node being configured along with the cluster it belongs to."""

    cluster: ClusterSpec
    distribution: Distribution
    architecture: Architecture


def read_cluster(path: Path) -> ClusterSpec:
    """Read the cluster specification from a YAML file."""
    _LOGGER.debug("Reading cluster specification from %s", path)
    try:
        doc = yaml.load(path.read_text(), Loader=yaml.SafeLoader)
    except (OSError, yaml.YAMLError) as err:
        raise ConfigurationError(f"Unable to read cluster file {path}: {err}") from err
    if not isinstance(doc, dict):
        raise ConfigurationError(f"Cluster file {path} is not a mapping")
    return ClusterSpec.parse_doc(doc)
