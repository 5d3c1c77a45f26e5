"""Tests for the file task."""

import pathlib
from typing import Any

import pytest

from node_converge.exceptions import ConfigurationError
from node_converge.tasks import File, FileType, TaskId


def test_identity_and_mode() -> None:
    """Test the identity and mode defaults."""
    task = File(path="/etc/sysconfig/containerd")
    assert task.identity == TaskId("File", "/etc/sysconfig/containerd")
    assert task.mode == "0644"
    assert File(path="/etc/containerd", type=FileType.DIRECTORY).mode == "0755"
    assert File(path="/usr/sbin/policy-rc.d", mode="755").mode == "0755"


def test_desired_state() -> None:
    """Test relations are not part of the desired state."""
    task = File(
        path="/etc/example",
        contents="a",
        after_files=("/etc/other",),
        on_change_execute=(("systemctl", "daemon-reload"),),
    )
    assert task.desired_state() == {
        "path": "/etc/example",
        "contents": "a",
        "mode": "0644",
        "type": FileType.FILE,
    }


async def test_create_file(host: Any, tmp_path: pathlib.Path) -> None:
    """Test writing a missing file and observing it afterwards."""
    task = File(path="/etc/containerd/config-kops.toml", contents="version = 2\n")
    actual = await task.find(host)
    assert actual is None
    assert task.has_changes(actual)

    await task.apply(host, actual)
    local_path = tmp_path / "etc/containerd/config-kops.toml"
    assert local_path.read_text() == "version = 2\n"
    assert local_path.stat().st_mode & 0o777 == 0o644

    actual = await task.find(host)
    assert actual is not None
    assert not task.has_changes(actual)


async def test_changed_contents(host: Any, tmp_path: pathlib.Path) -> None:
    """Test a file with different contents and mode."""
    local_path = tmp_path / "etc/example"
    local_path.parent.mkdir(parents=True)
    local_path.write_text("old")
    local_path.chmod(0o600)

    task = File(path="/etc/example", contents="new")
    actual = await task.find(host)
    assert actual is not None
    assert task.changes(actual) == {"contents": "new", "mode": "0644"}

    await task.apply(host, actual)
    assert local_path.read_text() == "new"


async def test_directory(host: Any, tmp_path: pathlib.Path) -> None:
    """Test creating a directory."""
    task = File(path="/etc/containerd", type=FileType.DIRECTORY)
    await task.apply(host, await task.find(host))
    assert (tmp_path / "etc/containerd").is_dir()
    assert not task.has_changes(await task.find(host))


async def test_type_mismatch(host: Any, tmp_path: pathlib.Path) -> None:
    """Test a file task can not replace a directory."""
    (tmp_path / "etc/example").mkdir(parents=True)
    task = File(path="/etc/example", contents="a")
    actual = await task.find(host)
    assert actual is not None
    assert actual.type == FileType.DIRECTORY
    with pytest.raises(ValueError, match="exists as a directory"):
        await task.apply(host, actual)


async def test_relative_path(host: Any) -> None:
    """Test paths must be absolute."""
    with pytest.raises(ConfigurationError, match="must be absolute"):
        await File(path="etc/example").find(host)
