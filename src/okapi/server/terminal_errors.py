"""Terminal formatting for request faults.

Replaces a raw ``logger.exception()`` with a report that shows the
application's own frames and hides the server and library internals.
Verbosity comes from the ``OKAPI_TRACEBACK`` environment variable:

* ``compact`` (default): error line plus the last five application frames
* ``full``: the complete Python traceback
* ``minimal``: one line with the innermost location

Example (compact)::

    500 GET /error
    RuntimeError: Something went wrong!
      Trace (app frames):
        src/sampleapp/app.py:61 in fail
          raise RuntimeError("Something went wrong!")
"""

from __future__ import annotations

import logging
import os
import traceback as _traceback
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from okapi.http.request import Request

logger = logging.getLogger("okapi.server")

_STDLIB_PREFIX = os.path.dirname(os.__file__)
_MAX_FRAMES = 5


def _is_app_frame(filename: str) -> bool:
    """True if the frame is from the application (not stdlib/site-packages)."""
    if "site-packages" in filename:
        return False
    if filename.startswith("<"):
        return False
    return not filename.startswith(_STDLIB_PREFIX)


def format_compact_traceback(exc: BaseException) -> str:
    """Error summary plus application frames only.

    Falls back to the last three frames when none belong to the
    application.
    """
    tb = exc.__traceback__
    frames = _traceback.extract_tb(tb) if tb else []
    app_frames = [f for f in frames if _is_app_frame(f.filename)]
    display_frames = app_frames if app_frames else frames[-3:]

    parts = [f"{type(exc).__name__}: {exc}"]
    if display_frames:
        parts.append("  Trace (app frames):")
        for frame in display_frames[-_MAX_FRAMES:]:
            parts.append(f"    {frame.filename}:{frame.lineno} in {frame.name}")
            if frame.line:
                parts.append(f"      {frame.line.strip()}")
    return "\n".join(parts)


def format_minimal_error(exc: BaseException) -> str:
    """One-line error summary."""
    tb = exc.__traceback__
    frames = _traceback.extract_tb(tb) if tb else []
    last = frames[-1] if frames else None
    location = f" at {last.filename}:{last.lineno}" if last else ""
    return f"{type(exc).__name__}{location}: {exc}"


def log_error(exc: BaseException, request: Request | None = None) -> None:
    """Log a request fault at ERROR with the configured verbosity."""
    prefix = f"500 {request.method} {request.path}" if request is not None else "Server error"
    style = os.environ.get("OKAPI_TRACEBACK", "compact").lower()

    if style == "full":
        logger.error(prefix, exc_info=exc)
    elif style == "minimal":
        logger.error("%s - %s", prefix, format_minimal_error(exc))
    else:
        logger.error("%s\n%s", prefix, format_compact_traceback(exc))
