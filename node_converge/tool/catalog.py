"""Node-converge catalog action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import pathlib
from typing import cast

from node_converge.artifacts import CONTAINERD_CATALOG
from node_converge.catalog import ArtifactCatalog
from node_converge.distros import Architecture, Distribution

from .common import add_node_flags
from .format import PrintFormatter


_LOGGER = logging.getLogger(__name__)


class CatalogAction:
    """Print the artifacts selected for a node."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "catalog",
                help="Print the artifacts selected for a node",
                description=(
                    "Print every catalog artifact matching the distribution and "
                    "architecture, optionally limited to one requested version."
                ),
            ),
        )
        add_node_flags(args)
        args.add_argument(
            "--version",
            "-v",
            default=None,
            help="Requested version, every version in the catalog when omitted",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        distribution: str,
        arch: str,
        version: str | None,
        catalog: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        artifacts = ArtifactCatalog.from_file(catalog) if catalog else CONTAINERD_CATALOG
        versions = [version] if version else artifacts.versions()
        results = []
        for requested in versions:
            for record in artifacts.select(
                Distribution(distribution), Architecture(arch), requested
            ):
                results.append(
                    {
                        "name": record.name,
                        "requested": record.package_version,
                        "version": record.version or "",
                        "install": record.install,
                        "source": record.source,
                    }
                )
        if not results:
            print("No artifacts found")
            return
        PrintFormatter().print(results)
