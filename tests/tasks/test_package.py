"""Tests for the package task."""

import pathlib
from collections.abc import Callable
from typing import Any

import pytest

from node_converge.distros import Distribution
from node_converge.exceptions import CommandException, ConfigurationError
from node_converge.tasks import Package

DPKG_QUERY = ("dpkg-query", "-f", "${db:Status-Abbrev}${Version}", "-W", "containerd.io")
RPM_QUERY = ("rpm", "-q", "--queryformat", "%{VERSION}-%{RELEASE}", "containerd.io")
SOURCE = "https://download.docker.com/containerd.io_1.2.4-1_amd64.deb"
HASH = "48c6ab0c908316af9a183de5aad64703bc516bdf"


def test_source_requires_hash() -> None:
    """Test a downloaded package must be verified."""
    with pytest.raises(ConfigurationError, match="requires a hash"):
        Package(name="containerd.io", source=SOURCE)


async def test_installed(host_factory: Callable[..., Any]) -> None:
    """Test an installed package with the desired version has no changes."""
    host = host_factory(Distribution.DEBIAN9, responses={DPKG_QUERY: "ii 1.2.4-1"})
    task = Package(name="containerd.io", version="1.2.4-1", source=SOURCE, hash=HASH)
    actual = await task.find(host)
    assert not task.has_changes(actual)


async def test_installed_other_version(host_factory: Callable[..., Any]) -> None:
    """Test an installed package with another version."""
    host = host_factory(Distribution.DEBIAN9, responses={DPKG_QUERY: "ii 1.2.10-3"})
    task = Package(name="containerd.io", version="1.2.4-1", source=SOURCE, hash=HASH)
    actual = await task.find(host)
    assert actual is not None
    assert task.changes(actual) == {"version": "1.2.4-1"}


async def test_install_debian(
    host_factory: Callable[..., Any], tmp_path: pathlib.Path
) -> None:
    """Test installing a downloaded package without starting its services."""
    host = host_factory(
        Distribution.DEBIAN9, responses={DPKG_QUERY: CommandException("not installed")}
    )
    task = Package(
        name="containerd.io",
        version="1.2.4-1",
        source=SOURCE,
        hash=HASH,
        prevent_start=True,
    )
    actual = await task.find(host)
    assert actual is None

    await task.apply(host, actual)
    assert host.downloads == [SOURCE]
    policy = tmp_path / "usr/sbin/policy-rc.d"
    assert policy.read_text() == "#!/bin/sh\nexit 101\n"
    cached = tmp_path / f"var/cache/node-converge/{HASH}/containerd.io_1.2.4-1_amd64.deb"
    assert host.commands[1:] == [
        ["dpkg", "--install", str(cached)],
        ["rm", "-f", str(policy)],
    ]


async def test_install_rhel(host_factory: Callable[..., Any]) -> None:
    """Test installing from the distribution repositories."""
    host = host_factory(
        Distribution.CENTOS7, responses={RPM_QUERY: CommandException("not installed")}
    )
    task = Package(name="containerd.io", prevent_start=True)
    await task.apply(host, await task.find(host))
    assert host.commands == [list(RPM_QUERY), ["yum", "install", "-y", "containerd.io"]]


async def test_installed_rhel_release(host_factory: Callable[..., Any]) -> None:
    """Test the release suffix of an rpm satisfies the version."""
    host = host_factory(Distribution.RHEL7, responses={RPM_QUERY: "1.2.10-3.2.el7\n"})
    task = Package(name="containerd.io", version="1.2.10")
    assert not task.has_changes(await task.find(host))


async def test_unsupported_distribution(host_factory: Callable[..., Any]) -> None:
    """Test distributions without a package manager."""
    host = host_factory(Distribution.FLATCAR)
    with pytest.raises(ConfigurationError, match="Unsupported package manager"):
        await Package(name="containerd.io").find(host)
