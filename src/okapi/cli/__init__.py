"""okapi CLI: serve an app and list its routes.

Entry point registered as ``okapi`` in ``pyproject.toml``::

    [project.scripts]
    okapi = "okapi.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``okapi`` command."""
    parser = argparse.ArgumentParser(
        prog="okapi",
        description="okapi: composable handler chains on ASGI.",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Serve an app with uvicorn")
    run_parser.add_argument("app", help="Import string (e.g. sampleapp.app:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart when source files change",
    )

    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("app", help="Import string (e.g. sampleapp.app:app)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from okapi.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from okapi.cli._routes import run_routes

        run_routes(args)
