"""Node-converge apply action."""

import logging
from argparse import (
    ArgumentParser,
    BooleanOptionalAction,
    _SubParsersAction as SubParsersAction,
)
import pathlib
from typing import cast

from node_converge.exceptions import ConvergeException
from node_converge.host import Host
from node_converge.orchestrator import ConvergenceRun
from node_converge.scheduler.service import DEFAULT_PARALLELISM
from node_converge.target import LocalTarget

from .common import add_build_flags, build_config, build_node
from .format import PrintFormatter


_LOGGER = logging.getLogger(__name__)


class ApplyAction:
    """Converge the local machine toward the tasks for a node."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "apply",
                help="Apply the tasks for a node to this machine",
                description=(
                    "Run the builders for a node and converge the local machine, "
                    "applying only the tasks that have changes."
                ),
            ),
        )
        add_build_flags(args)
        args.add_argument(
            "--root",
            type=pathlib.Path,
            default=pathlib.Path("/"),
            help="Filesystem root files are written under",
        )
        args.add_argument(
            "--parallelism",
            type=int,
            default=DEFAULT_PARALLELISM,
            help="Maximum number of tasks applied at once",
        )
        args.add_argument(
            "--dry-run",
            default=False,
            action=BooleanOptionalAction,
            help="Report the tasks with changes without applying them",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        node = build_node(**kwargs)
        config = build_config(**kwargs)
        host = Host(node.distribution, root=config.root)
        run = ConvergenceRun(node, config=config)
        result = await run.run(
            LocalTarget(host, parallelism=config.parallelism, dry_run=config.dry_run)
        )

        PrintFormatter(["task", "status", "error"]).print(
            [
                {
                    "task": str(identity),
                    "status": info.status,
                    "error": info.error or "",
                }
                for identity, info in sorted(result.statuses.items())
            ]
        )
        print(result.summary())
        if not result.success:
            raise ConvergeException(
                f"{len(result.failures)} tasks did not apply: {result.summary()}"
            )
