"""Tests for the node-converge command line tool."""

import json
import pathlib

import pytest

from node_converge.tool.node_converge import main

CLUSTER_DOC = """\
kind: Cluster
metadata:
  name: example.k8s.local
spec:
  containerd:
    version: {version}
    logLevel: info
"""


@pytest.fixture(name="cluster_file")
def cluster_file_fixture(tmp_path: pathlib.Path) -> pathlib.Path:
    """Fixture for a cluster specification file."""
    cluster_file = tmp_path / "cluster.yaml"
    cluster_file.write_text(CLUSTER_DOC.format(version="1.3.4"))
    return cluster_file


def test_render(
    cluster_file: pathlib.Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test rendering the tasks for a node to stdout."""
    main(["render", "--cluster", str(cluster_file), "--distribution", "focal"])
    doc = json.loads(capsys.readouterr().out)
    resources = doc["resources"]
    assert resources["archive-containerd-io"]["kind"] == "Archive"
    assert resources["file-etc-sysconfig-containerd"]["properties"]["contents"] == (
        "CONTAINERD_OPTS=--log-level=info"
    )
    assert "archive-containerd-io" in resources["service-containerd-service"]["depends_on"]


def test_render_to_file(cluster_file: pathlib.Path, tmp_path: pathlib.Path) -> None:
    """Test rendering yaml to an output file."""
    output = tmp_path / "out.yaml"
    args = [
        "render",
        "--cluster",
        str(cluster_file),
        "--distribution",
        "flatcar",
        "--format",
        "yaml",
        "--output",
        str(output),
    ]
    main(args)
    first = output.read_text()
    assert first.startswith("---\n")
    main(args)
    assert output.read_text() == first


def test_dry_run_apply(
    cluster_file: pathlib.Path,
    tmp_path: pathlib.Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test a dry run reports tasks without writing files."""
    root = tmp_path / "root"
    root.mkdir()
    main(
        [
            "apply",
            "--cluster",
            str(cluster_file),
            "--distribution",
            "flatcar",
            "--root",
            str(root),
            "--dry-run",
        ]
    )
    out = capsys.readouterr().out
    assert "File//etc/sysconfig/containerd" in out
    assert "2 changed, 0 unchanged, 0 skipped, 0 failed" in out
    assert list(root.iterdir()) == []


def test_catalog(capsys: pytest.CaptureFixture[str]) -> None:
    """Test printing the artifacts for a node."""
    main(["catalog", "--distribution", "debian9", "--version", "1.2.4"])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split() == ["NAME", "REQUESTED", "VERSION", "INSTALL", "SOURCE"]
    assert lines[1].split()[:4] == ["containerd.io", "1.2.4", "1.2.4-1", "package"]

    main(["catalog", "--distribution", "debian9", "--arch", "arm64"])
    assert capsys.readouterr().out == "No artifacts found\n"


def test_missing_version(
    tmp_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test errors are reported with a failing exit code."""
    cluster_file = tmp_path / "cluster.yaml"
    cluster_file.write_text("kind: Cluster\nmetadata:\n  name: example.k8s.local\n")
    with pytest.raises(SystemExit) as exc_info:
        main(["render", "--cluster", str(cluster_file), "--distribution", "focal"])
    assert exc_info.value.code == 1
    assert "node-converge error: error finding containerd version" in capsys.readouterr().err
