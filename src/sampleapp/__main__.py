"""``python -m sampleapp``: serve the demonstration app."""

import argparse

from okapi.server.logs import configure_logging

from sampleapp.app import app


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="sampleapp", description=__doc__)
    parser.add_argument("--host", default=None, help="Bind host address")
    parser.add_argument("--port", type=int, default=None, help="Bind port number")
    args = parser.parse_args(argv)

    configure_logging(app.config.log_level)
    app.run(args.host, args.port)


if __name__ == "__main__":
    main()
