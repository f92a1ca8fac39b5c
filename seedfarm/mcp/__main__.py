"""MCP stdio entry point: python -m seedfarm.mcp [catalog] [--checkpoint PATH] [-v]"""

from __future__ import annotations

import argparse
import logging
import sys

from seedfarm.cli import DEFAULT_CATALOG


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m seedfarm.mcp",
        description="Serve a seed economy over MCP (stdio)",
    )
    parser.add_argument(
        "catalog",
        nargs="?",
        default=DEFAULT_CATALOG,
        help=f"Python module with define_game() (default: {DEFAULT_CATALOG})",
    )
    parser.add_argument("--checkpoint", default=None, help="JSON checkpoint to resume from")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    # stdout carries the protocol; logs go to stderr
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    real_stdout = sys.stdout
    sys.stdout = sys.stderr
    try:
        from seedfarm.cli import load_game, load_runtime

        definition = load_game(args.catalog)
        runtime = load_runtime(definition, args.checkpoint)
    finally:
        sys.stdout = real_stdout

    from seedfarm.mcp.server import create_server

    server = create_server(definition, runtime)
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
