"""Command line tool for converging a node toward its desired state."""

import argparse
import asyncio
import logging
import sys
import traceback

from node_converge.exceptions import ConvergeException
from . import apply, catalog, render

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for configuring a cluster node.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    apply.ApplyAction.register(subparsers)
    render.RenderAction.register(subparsers)
    catalog.CatalogAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Node-converge command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except ConvergeException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("node-converge error:", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
