"""Warble CLI.

Entry point registered as ``warble`` in ``pyproject.toml``::

    [project.scripts]
    warble = "warble.cli:main"
"""

import argparse
import logging
import sys

from warble.config import AppConfig
from warble.errors import WarbleError

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def build_config(args: argparse.Namespace) -> AppConfig:
    """Environment first, command-line flags on top."""
    overrides: dict[str, object] = {}
    if args.root is not None:
        overrides["root"] = args.root
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.production:
        overrides["is_production"] = True
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return AppConfig.from_env(**overrides)


def run_server(args: argparse.Namespace) -> None:
    """Create the app for the project at ``args.root`` and serve it."""
    from warble.bootstrap import create_app
    from warble.server.runner import run

    config = build_config(args)
    logging.basicConfig(level=config.log_level.upper(), format=LOG_FORMAT)

    try:
        app = create_app(config)
    except WarbleError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    run(app)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``warble`` command."""
    parser = argparse.ArgumentParser(
        prog="warble",
        description="Warble: serve a pre-built front-end bundle with server-side rendering.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- warble run -------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the development or production server")
    run_parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Project root containing dist/, static/ and src/ (default: current directory)",
    )
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--production",
        action="store_true",
        help="Serve the existing build instead of watching for new ones",
    )
    run_parser.add_argument(
        "--log-level",
        default=None,
        choices=("debug", "info", "warning", "error"),
        help="Log level (default: info, or WARBLE_LOG_LEVEL)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        run_server(args)
