"""Tests for the artifact catalog."""

import hashlib
import pathlib

import pytest

from node_converge.artifacts import CONTAINERD_CATALOG, CONTAINERD_PACKAGE
from node_converge.catalog import (
    ArtifactCatalog,
    ArtifactRecord,
    InstallMechanism,
    verify_content_hash,
)
from node_converge.distros import Architecture, Distribution
from node_converge.exceptions import ConfigurationError, HashMismatchError

SHA1 = "48c6ab0c908316af9a183de5aad64703bc516bdf"

COMPOSITE_CATALOG = """\
records:
  - name: containerd.io
    package_version: 1.4.0
    version: 1.4.0-3.1.el8
    distros: [centos8]
    source: https://example.com/containerd.io-1.4.0-3.1.el8.x86_64.rpm
    hash: 2dcdb0d5ad1b1bfd6ca3a4ec7ee1d5c2cd5c4e2e
  - name: container-selinux
    package_version: 1.4.0
    version: 2.124.0
    distros: [centos8, rhel8]
    source: https://example.com/container-selinux-2.124.0-1.el8.noarch.rpm
    hash: ecb5e5c2a8d4f5f36f9e2fd7e0bbcc2a4c1f4e6b
  - name: containerd.io
    package_version: 1.4.0
    install: archive
    architectures: [arm64]
    source: https://example.com/cri-containerd-1.4.0.linux-arm64.tar.gz
    hash: 0d8c4d2b1a1e4f7b9c3e5a6d7f8e9a0b1c2d3e4f
"""


def test_select_debian9() -> None:
    """Test the single package for Debian Stretch."""
    records = CONTAINERD_CATALOG.select(
        Distribution.DEBIAN9, Architecture.AMD64, "1.2.4"
    )
    assert len(records) == 1
    record = records[0]
    assert record.name == CONTAINERD_PACKAGE
    assert record.version == "1.2.4-1"
    assert record.hash == SHA1
    assert record.source.endswith("containerd.io_1.2.4-1_amd64.deb")
    assert not record.plain_archive
    assert not record.extra_packages


def test_select_is_deterministic() -> None:
    """Test repeated selection returns the same records in the same order."""
    first = CONTAINERD_CATALOG.select(Distribution.CENTOS7, Architecture.AMD64, "1.2.10")
    second = CONTAINERD_CATALOG.select(
        Distribution.CENTOS7, Architecture.AMD64, "1.2.10"
    )
    assert first == second
    assert [r.source for r in first] == [r.source for r in second]


def test_select_unknown_version() -> None:
    """Test a version missing from the catalog selects nothing."""
    assert CONTAINERD_CATALOG.select(Distribution.FOCAL, Architecture.AMD64, "9.9.9") == []


def test_select_unsupported_architecture() -> None:
    """Test generic archives are only available for amd64."""
    assert CONTAINERD_CATALOG.select(Distribution.FOCAL, Architecture.ARM64, "1.3.4") == []


def test_select_generic_archive() -> None:
    """Test records without a distribution constraint match any distribution."""
    for distribution in (Distribution.CENTOS7, Distribution.BIONIC):
        records = CONTAINERD_CATALOG.select(distribution, Architecture.AMD64, "1.3.4")
        assert len(records) == 1
        assert records[0].install == InstallMechanism.ARCHIVE
        assert records[0].plain_archive


def test_select_distribution_specific_archive() -> None:
    """Test distributions without packages get the archive for 1.2.10."""
    records = CONTAINERD_CATALOG.select(
        Distribution.AMAZON_LINUX2, Architecture.AMD64, "1.2.10"
    )
    assert [r.plain_archive for r in records] == [True]
    records = CONTAINERD_CATALOG.select(
        Distribution.DEBIAN10, Architecture.AMD64, "1.2.10"
    )
    assert [r.plain_archive for r in records] == [False]


def test_select_inclusive() -> None:
    """Test every matching record is returned in catalog order."""
    catalog = ArtifactCatalog.parse_yaml(COMPOSITE_CATALOG)
    records = catalog.select(Distribution.CENTOS8, Architecture.AMD64, "1.4.0")
    assert [r.name for r in records] == ["containerd.io", "container-selinux"]

    records = catalog.select(Distribution.RHEL8, Architecture.ARM64, "1.4.0")
    assert [(r.name, r.install) for r in records] == [
        ("container-selinux", InstallMechanism.PACKAGE),
        ("containerd.io", InstallMechanism.ARCHIVE),
    ]

    assert catalog.select(Distribution.FOCAL, Architecture.AMD64, "1.4.0") == []


def test_versions() -> None:
    """Test the requested versions are listed once in catalog order."""
    assert CONTAINERD_CATALOG.versions() == [
        "1.2.4",
        "1.2.10",
        "1.2.11",
        "1.2.12",
        "1.2.13",
        "1.3.2",
        "1.3.3",
        "1.3.4",
    ]


def test_record_requires_hash() -> None:
    """Test records must carry a content hash."""
    with pytest.raises(ConfigurationError, match="missing a content hash"):
        ArtifactRecord(
            name="containerd.io",
            package_version="1.2.4",
            source="https://example.com/containerd.deb",
            hash="",
        )
    with pytest.raises(ConfigurationError, match="unsupported hash"):
        ArtifactRecord(
            name="containerd.io",
            package_version="1.2.4",
            source="https://example.com/containerd.deb",
            hash="abc123",
        )


def test_parse_invalid_catalog() -> None:
    """Test a catalog with missing fields is a configuration error."""
    with pytest.raises(ConfigurationError):
        ArtifactCatalog.parse_yaml("records:\n  - name: containerd.io\n")


def test_from_file(tmp_path: pathlib.Path) -> None:
    """Test loading a catalog from a file."""
    catalog_file = tmp_path / "catalog.yaml"
    catalog_file.write_text(COMPOSITE_CATALOG)
    catalog = ArtifactCatalog.from_file(catalog_file)
    assert len(catalog.records) == 3
    assert catalog.records[1].distros == (Distribution.CENTOS8, Distribution.RHEL8)

    with pytest.raises(ConfigurationError, match="does not exist"):
        ArtifactCatalog.from_file(tmp_path / "missing.yaml")


@pytest.mark.parametrize("algorithm", ["sha1", "sha256"])
async def test_verify_content_hash(tmp_path: pathlib.Path, algorithm: str) -> None:
    """Test verifying the digest of a downloaded file."""
    content = b"containerd release"
    path = tmp_path / "containerd.tar.gz"
    path.write_bytes(content)
    expected = hashlib.new(algorithm, content).hexdigest()

    await verify_content_hash(path, expected)
    await verify_content_hash(path, expected.upper())

    path.write_bytes(b"tampered")
    with pytest.raises(HashMismatchError, match="Hash mismatch"):
        await verify_content_hash(path, expected)


async def test_verify_unsupported_hash(tmp_path: pathlib.Path) -> None:
    """Test a digest of unknown length is rejected."""
    path = tmp_path / "containerd.tar.gz"
    path.write_bytes(b"containerd release")
    with pytest.raises(HashMismatchError, match="Unsupported hash"):
        await verify_content_hash(path, "abc")
