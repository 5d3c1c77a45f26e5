"""Flags shared by the actions that build tasks for a node."""

from argparse import ArgumentParser, BooleanOptionalAction
import pathlib
from typing import Any

from node_converge.cluster import NodeContext, read_cluster
from node_converge.config import ConvergeConfig
from node_converge.distros import Architecture, Distribution
from node_converge.exceptions import ConfigurationError


def add_node_flags(args: ArgumentParser) -> None:
    """Add flags describing the distribution and architecture of the node."""
    args.add_argument(
        "--distribution",
        "-d",
        required=True,
        choices=[str(d) for d in Distribution],
        help="Operating system distribution of the node",
    )
    args.add_argument(
        "--arch",
        choices=[str(a) for a in Architecture],
        default=str(Architecture.AMD64),
        help="CPU architecture of the node",
    )
    args.add_argument(
        "--catalog",
        type=pathlib.Path,
        default=None,
        help="Artifact catalog file to use instead of the built-in catalog",
    )


def add_build_flags(args: ArgumentParser) -> None:
    """Add flags for actions that run builders against a cluster."""
    args.add_argument(
        "--cluster",
        "-c",
        type=pathlib.Path,
        required=True,
        help="Cluster specification yaml file",
    )
    add_node_flags(args)
    args.add_argument(
        "--fail-on-missing-artifact",
        default=False,
        action=BooleanOptionalAction,
        help="Fail when no artifact matches the node instead of warning",
    )


def build_node(
    cluster: pathlib.Path, distribution: str, arch: str, **kwargs: Any
) -> NodeContext:
    """Read the cluster and describe the node from the parsed flags."""
    if not cluster.exists():
        raise ConfigurationError(f"Cluster file {cluster} does not exist")
    return NodeContext(
        cluster=read_cluster(cluster),
        distribution=Distribution(distribution),
        architecture=Architecture(arch),
    )


def build_config(
    catalog: pathlib.Path | None = None,
    fail_on_missing_artifact: bool = False,
    **kwargs: Any,
) -> ConvergeConfig:
    """Return the run configuration from the parsed flags."""
    config = ConvergeConfig(
        catalog=catalog, fail_on_missing_artifact=fail_on_missing_artifact
    )
    if (root := kwargs.get("root")) is not None:
        config.root = root
    if (parallelism := kwargs.get("parallelism")) is not None:
        config.parallelism = parallelism
    if kwargs.get("dry_run"):
        config.dry_run = True
    return config
