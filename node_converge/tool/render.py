"""Node-converge render action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import pathlib
import sys
from typing import cast

from node_converge.orchestrator import ConvergenceRun
from node_converge.target import RenderFormat, RenderTarget

from .common import add_build_flags, build_config, build_node


_LOGGER = logging.getLogger(__name__)


class RenderAction:
    """Render the tasks for a node as a declarative document."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "render",
                help="Render the tasks for a node without changing anything",
                description=(
                    "Run the builders for a node and print the ordered tasks as "
                    "resource statements for an external apply tool."
                ),
            ),
        )
        add_build_flags(args)
        args.add_argument(
            "--format",
            choices=[str(f) for f in RenderFormat],
            default=str(RenderFormat.JSON),
            help="Output format of the rendered document",
        )
        args.add_argument(
            "--output",
            "-o",
            type=pathlib.Path,
            default=None,
            help="File to write the rendered document to instead of stdout",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        format: str,
        output: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        node = build_node(**kwargs)
        run = ConvergenceRun(node, config=build_config(**kwargs))
        result = await run.run(RenderTarget(RenderFormat(format)))
        content = result.output or ""
        if output:
            output.write_text(content)
            _LOGGER.info("Wrote %d resources to %s", len(result.statuses), output)
        else:
            sys.stdout.write(content)
