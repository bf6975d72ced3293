"""Static file serving middleware.

Serves files from a directory for request paths under a URL prefix and
passes everything else on to the rest of the chain.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING

from okapi.http.response import Response

if TYPE_CHECKING:
    from okapi.context import HttpContext
    from okapi.pipeline import Next

logger = logging.getLogger("okapi.static")


class StaticFiles:
    """Middleware that answers ``GET``/``HEAD`` with files from *directory*.

    A path that names no file (or names a directory without an index
    file) falls through to the next handler, so routes registered on the
    app still answer under the same prefix.  Paths that resolve outside
    *directory*, through ``..`` or a symlink, get ``403``.

    Usage::

        app.add_middleware(StaticFiles("wwwroot"))  # served from /
        app.add_middleware(StaticFiles("assets", prefix="/static"))
    """

    __slots__ = ("_cache_control", "_directory", "_index", "_prefix")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/",
        *,
        index: str = "index.html",
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control
        # "/static/" -> "/static"; "/" -> ""
        self._prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""

    async def __call__(self, ctx: HttpContext, next: Next) -> Response:
        request = ctx.request
        if request.method not in ("GET", "HEAD"):
            return await next(ctx)

        path = request.path
        if self._prefix and path != self._prefix and not path.startswith(self._prefix + "/"):
            return await next(ctx)
        relative = path[len(self._prefix) :].lstrip("/")

        file_path = (self._directory / relative).resolve()
        if not file_path.is_relative_to(self._directory):
            logger.warning("Refused static path outside %s: %s", self._directory, path)
            return Response("Forbidden", status=403)

        if file_path.is_dir():
            file_path = file_path / self._index
        if not file_path.is_file():
            return await next(ctx)
        return self._serve(file_path)

    def _serve(self, file_path: Path) -> Response:
        content_type, _ = mimetypes.guess_type(file_path.name)
        return Response(
            file_path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        ).with_header("Cache-Control", self._cache_control)

    def __repr__(self) -> str:
        return f"StaticFiles({str(self._directory)!r}, prefix={self._prefix or '/'!r})"
