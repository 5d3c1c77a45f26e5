"""Tests for building daemon flags."""

from dataclasses import dataclass, field

import pytest

from node_converge.cluster import ContainerdConfig
from node_converge.exceptions import ConfigurationError
from node_converge.flagbuilder import build_flags


@dataclass
class ExampleConfig:
    debug: bool | None = field(default=None, metadata={"flag": "debug"})
    labels: list[str] = field(default_factory=list, metadata={"flag": "label"})
    port: int | None = field(default=None, metadata={"flag": "port"})
    comment: str = "not a flag"


def test_containerd_flags() -> None:
    """Test flags are sorted by name and unset values are omitted."""
    config = ContainerdConfig(
        version="1.2.10",
        root="/var/lib/containerd",
        log_level="info",
        skip_install=False,
    )
    assert build_flags(config) == "--log-level=info --root=/var/lib/containerd"


def test_empty() -> None:
    """Test a config without flags."""
    assert build_flags(ContainerdConfig()) == ""
    assert build_flags(ContainerdConfig(address="")) == ""


def test_quoting() -> None:
    """Test values are quoted for the shell."""
    config = ContainerdConfig(address="/run/containerd dir/containerd.sock")
    assert build_flags(config) == "--address='/run/containerd dir/containerd.sock'"


def test_value_types() -> None:
    """Test booleans, numbers and repeated flags."""
    config = ExampleConfig(debug=False, labels=["a", "b"], port=10250)
    assert build_flags(config) == "--debug=false --label=a --label=b --port=10250"


def test_not_a_dataclass() -> None:
    """Test flags can only be built from a dataclass."""
    with pytest.raises(ConfigurationError):
        build_flags({"log-level": "info"})
