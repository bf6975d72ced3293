"""Console logging for okapi apps."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | int = "info") -> None:
    """Send okapi's log records to stderr at *level*.

    Only the ``okapi`` logger hierarchy is touched; calling this twice
    replaces the handler rather than adding a second one.
    """
    numeric = level if isinstance(level, int) else logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        msg = f"Unknown log level {level!r}"
        raise ValueError(msg)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.set_name("okapi.console")

    root = logging.getLogger("okapi")
    for existing in list(root.handlers):
        if existing.get_name() == "okapi.console":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric)
