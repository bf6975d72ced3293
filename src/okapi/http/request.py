"""Immutable HTTP request.

Metadata is frozen at creation; the body is read asynchronously and
cached, so several handlers in one chain can each call ``await
request.form()`` without draining the ASGI receive channel twice.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from okapi._internal.asgi import Receive, Scope
from okapi.errors import ClientDisconnected, HTTPError
from okapi.http.cookies import parse_cookies
from okapi.http.headers import Headers
from okapi.http.query import QueryParams

if TYPE_CHECKING:
    from okapi.http.forms import FormData

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Cookies are parsed once in ``from_asgi``.  Route parameters are not
    stored here; they belong to the per-request ``HttpContext``.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    cookies: Mapping[str, str]
    scheme: str = "http"
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None
    max_body_size: int | None = None

    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Body and parsed form are cached here; the dict is mutable even
    # though the field reference is frozen.
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The ``Content-Type`` header value."""
        return self.headers.get("content-type")

    @property
    def has_form_content_type(self) -> bool:
        """True for URL-encoded and multipart bodies."""
        ct = (self.content_type or "").split(";")[0].strip().lower()
        return ct in _FORM_TYPES

    @property
    def is_secure(self) -> bool:
        """True when the request arrived over TLS."""
        return self.scheme in ("https", "wss")

    @property
    def url(self) -> str:
        """Path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    async def body(self) -> bytes:
        """Read and cache the full request body."""
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["body"]

    async def stream(self) -> AsyncGenerator[bytes]:
        """Yield the body in chunks as the server delivers them.

        Raises ``ClientDisconnected`` if the client goes away and
        ``HTTPError(413)`` past ``max_body_size``.
        """
        if self._receive is None:
            return
        received = 0
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                raise ClientDisconnected(f"{self.method} {self.path}")
            chunk = message.get("body", b"")
            if chunk:
                received += len(chunk)
                if self.max_body_size is not None and received > self.max_body_size:
                    raise HTTPError(413, "Request body too large")
                yield chunk
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        """The body decoded as UTF-8."""
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        """The body parsed as JSON."""
        return json_module.loads(await self.body())

    async def form(self) -> FormData:
        """Parse the body as form data, URL-encoded or multipart.

        Raises:
            ValueError: If the content type is not a form encoding.
        """
        if "form" not in self._cache:
            from okapi.http.forms import parse_form_data

            raw = await self.body()
            self._cache["form"] = await parse_form_data(raw, self.content_type or "")
        return self._cache["form"]

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive,
        *,
        max_body_size: int | None = None,
    ) -> Request:
        """Build a Request from an ASGI HTTP scope."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(headers.get("cookie", "")),
            scheme=scope.get("scheme", "http"),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            max_body_size=max_body_size,
            _receive=receive,
        )
