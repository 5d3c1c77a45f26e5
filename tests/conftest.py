"""Shared fixtures for node-converge tests."""

from collections.abc import Callable, Sequence
import pathlib
from typing import Any

import pytest

from node_converge.cluster import ClusterSpec, ContainerdConfig, NetworkingSpec, NodeContext
from node_converge.distros import Architecture, Distribution
from node_converge.host import Host, InMemoryCloudProvider


class RecordingHost(Host):
    """Host that records commands instead of running them.

    Files are still read and written under the root directory.
    """

    def __init__(
        self,
        distribution: Distribution,
        root: pathlib.Path,
        responses: dict[tuple[str, ...], str | Exception] | None = None,
    ) -> None:
        super().__init__(distribution, root=root, cloud=InMemoryCloudProvider())
        self.commands: list[list[str]] = []
        self.downloads: list[str] = []
        self.responses = responses or {}

    async def execute(
        self, args: Sequence[str], env: dict[str, str] | None = None
    ) -> str:
        self.commands.append(list(args))
        response = self.responses.get(tuple(args), "")
        if isinstance(response, Exception):
            raise response
        return response

    async def download(self, url: str, hash: str) -> pathlib.Path:
        self.downloads.append(url)
        return self.path(f"/var/cache/node-converge/{hash}/{url.rsplit('/', 1)[-1]}")


@pytest.fixture(name="host_factory")
def host_factory_fixture(
    tmp_path: pathlib.Path,
) -> Callable[..., RecordingHost]:
    """Fixture returning a factory for recording hosts rooted in a temp dir."""

    def factory(
        distribution: Distribution = Distribution.FOCAL, **kwargs: Any
    ) -> RecordingHost:
        return RecordingHost(distribution, tmp_path, **kwargs)

    return factory


@pytest.fixture(name="host")
def host_fixture(host_factory: Callable[..., RecordingHost]) -> RecordingHost:
    """Fixture for a recording host of an Ubuntu node."""
    return host_factory()


def make_node(
    distribution: Distribution = Distribution.DEBIAN9,
    architecture: Architecture = Architecture.AMD64,
    containerd: ContainerdConfig | None = None,
    networking: NetworkingSpec | None = None,
    container_runtime: str = "containerd",
) -> NodeContext:
    """Return a node of an example cluster."""
    return NodeContext(
        cluster=ClusterSpec(
            name="example.k8s.local",
            container_runtime=container_runtime,
            containerd=containerd,
            networking=networking,
        ),
        distribution=distribution,
        architecture=architecture,
    )


@pytest.fixture(name="node_factory")
def node_factory_fixture() -> Callable[..., NodeContext]:
    """Fixture returning a factory for nodes of an example cluster."""
    return make_node
