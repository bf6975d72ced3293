"""``okapi run``: serve an app with uvicorn."""

import argparse
import sys

from okapi.cli._resolve import resolve_app
from okapi.server.logs import configure_logging


def run_server(args: argparse.Namespace) -> None:
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    configure_logging(app.config.log_level)
    app.run(args.host, args.port, reload=args.reload, app_path=args.app)
