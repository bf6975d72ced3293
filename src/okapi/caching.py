"""HTTP response caching.

Two halves that work together:

* Chain handlers (``response_caching``, ``public_response_caching``,
  ``no_response_caching``) decorate the response with ``Cache-Control``
  and friends, for clients and proxies.
* ``ResponseCachingMiddleware`` is a server-side store that replays
  fresh ``public`` responses without running the chain again.

Usage::

    app.add_middleware(ResponseCachingMiddleware())
    app.get("/report", public_response_caching(30), warbler(build_report))
    app.get("/search", response_caching(Public(30), vary_by_query_keys=["q"]), ...)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from okapi.http.response import Response
from okapi.pipeline import Handler, Next
from okapi.routing.router import normalize_path

if TYPE_CHECKING:
    from okapi.context import HttpContext
    from okapi.http.request import Request

logger = logging.getLogger("okapi.caching")

VARY_BY_QUERY_KEYS = "okapi.caching.vary_by_query_keys"

_CACHEABLE_METHODS = frozenset({"GET", "HEAD"})


@dataclass(frozen=True, slots=True)
class Public:
    """``Cache-Control: public, max-age=N``: any cache may store it."""

    max_age: float

    def header_value(self) -> str:
        return f"public, max-age={int(self.max_age)}"


@dataclass(frozen=True, slots=True)
class Private:
    """``Cache-Control: private, max-age=N``: only the client may store it."""

    max_age: float

    def header_value(self) -> str:
        return f"private, max-age={int(self.max_age)}"


type CacheDirective = Public | Private


def response_caching(
    directive: CacheDirective,
    vary_by_header: str | None = None,
    vary_by_query_keys: Sequence[str] | None = None,
) -> Handler:
    """Mark the response produced by the rest of the chain as cacheable.

    *vary_by_query_keys* only affects ``ResponseCachingMiddleware``;
    without it the server-side cache ignores the query string.
    """
    query_keys = tuple(vary_by_query_keys or ())

    async def caching(ctx: HttpContext, next: Next) -> Response:
        if query_keys:
            ctx.items[VARY_BY_QUERY_KEYS] = query_keys
        response = await next(ctx)
        response = response.with_header("Cache-Control", directive.header_value())
        if vary_by_header:
            response = response.with_header("Vary", vary_by_header)
        return response

    caching.label = f"response_caching({directive!r})"  # type: ignore[attr-defined]
    return caching


def public_response_caching(seconds: float, vary_by_header: str | None = None) -> Handler:
    return response_caching(Public(seconds), vary_by_header)


def no_response_caching() -> Handler:
    """Forbid any cache, client or proxy, from storing the response."""

    async def not_caching(ctx: HttpContext, next: Next) -> Response:
        response = await next(ctx)
        return (
            response.with_header("Cache-Control", "no-store, no-cache")
            .with_header("Pragma", "no-cache")
            .with_header("Expires", "-1")
        )

    not_caching.label = "no_response_caching"  # type: ignore[attr-defined]
    return not_caching


# -- server-side store ---------------------------------------------------


@dataclass(frozen=True, slots=True)
class VaryRules:
    headers: tuple[str, ...] = ()
    query_keys: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CacheEntry:
    response: Response
    stored_at: float
    max_age: float


def _directives(value: str | None) -> dict[str, str]:
    """Parse a Cache-Control header into ``{directive: argument}``."""
    parsed: dict[str, str] = {}
    for part in (value or "").split(","):
        name, _, arg = part.strip().partition("=")
        if name:
            parsed[name.lower()] = arg.strip().strip('"')
    return parsed


def _max_age(directives: dict[str, str]) -> float | None:
    for name in ("s-maxage", "max-age"):
        if name in directives:
            try:
                return float(directives[name])
            except ValueError:
                return None
    return None


@dataclass(slots=True)
class ResponseCachingMiddleware:
    """In-memory cache for ``public`` responses to ``GET`` and ``HEAD``.

    A response is stored when it is a ``200``, carries ``public`` with a
    ``max-age`` (or ``s-maxage``), sets no cookies, and has no ``Vary:
    *``.  Entries are keyed on method and path, plus the values of the
    headers named in ``Vary`` and of the query keys declared through
    ``response_caching(..., vary_by_query_keys=...)``.

    A request with ``Cache-Control: no-cache`` (or ``Pragma: no-cache``)
    bypasses lookup; ``no-store`` also prevents storing the fresh
    response.  Requests carrying ``Authorization`` are never cached.
    """

    max_entries: int = 1024
    clock: Callable[[], float] = time.monotonic
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _rules: dict[tuple[str, str], VaryRules] = field(default_factory=dict, init=False, repr=False)
    _entries: dict[tuple, CacheEntry] = field(default_factory=dict, init=False, repr=False)

    async def __call__(self, ctx: HttpContext, next: Next) -> Response:
        request = ctx.request
        if request.method not in _CACHEABLE_METHODS or "authorization" in request.headers:
            return await next(ctx)

        request_directives = _directives(request.headers.get("cache-control"))
        bypass = (
            "no-cache" in request_directives
            or "no-store" in request_directives
            or (request.headers.get("pragma") or "").lower() == "no-cache"
        )
        base_key = (request.method, normalize_path(request.path))

        if not bypass:
            cached = self._lookup(base_key, request)
            if cached is not None:
                return cached

        response = await next(ctx)
        if "no-store" not in request_directives:
            self._store(base_key, ctx, response)
        return response

    def _lookup(self, base_key: tuple[str, str], request: Request) -> Response | None:
        now = self.clock()
        with self._lock:
            rules = self._rules.get(base_key)
            if rules is None:
                return None
            key = self._key(base_key, rules, request)
            entry = self._entries.get(key)
            if entry is None:
                return None
            age = now - entry.stored_at
            if age >= entry.max_age:
                del self._entries[key]
                return None
        logger.debug("Cache hit for %s %s (age %ds)", request.method, request.path, age)
        return entry.response.with_header("Age", str(int(age)))

    def _store(self, base_key: tuple[str, str], ctx: HttpContext, response: Response) -> None:
        if response.status != 200 or response.cookies:
            return
        directives = _directives(response.header("cache-control"))
        if "public" not in directives or "no-store" in directives or "no-cache" in directives:
            return
        if "private" in directives:
            return
        max_age = _max_age(directives)
        if not max_age or max_age <= 0:
            return
        vary = tuple(
            sorted(
                {h.strip().lower() for h in (response.header("vary") or "").split(",") if h.strip()}
            )
        )
        if "*" in vary:
            return

        rules = VaryRules(headers=vary, query_keys=tuple(ctx.items.get(VARY_BY_QUERY_KEYS, ())))
        with self._lock:
            self._rules[base_key] = rules
            key = self._key(base_key, rules, ctx.request)
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = CacheEntry(response, self.clock(), max_age)
        logger.debug("Cached %s %s for %ss", ctx.request.method, ctx.request.path, max_age)

    @staticmethod
    def _key(base_key: tuple[str, str], rules: VaryRules, request: Request) -> tuple:
        header_part = tuple((h, tuple(request.headers.get_list(h))) for h in rules.headers)
        if "*" in rules.query_keys:
            names = sorted(request.query)
        else:
            names = sorted(rules.query_keys, key=str.lower)
        query_part = tuple((n.lower(), _query_values(request, n)) for n in names)
        return (*base_key, header_part, query_part)

    def clear(self) -> None:
        with self._lock:
            self._rules.clear()
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def _query_values(request: Request, name: str) -> tuple[str, ...]:
    lowered = name.lower()
    values: list[str] = []
    for key in request.query:
        if key.lower() == lowered:
            values.extend(request.query.get_list(key))
    return tuple(values)
