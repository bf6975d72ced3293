"""HTTP response as a value.

Handlers never mutate a response; each ``.with_*()`` call returns a new
one.  A handler that wants to decorate whatever the rest of the chain
produces awaits ``next`` and transforms the result::

    response = await next(ctx)
    return response.with_header("X-Served-By", "okapi")
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from okapi.http.cookies import SetCookie

TEXT_PLAIN = "text/plain; charset=utf-8"
TEXT_HTML = "text/html; charset=utf-8"
APPLICATION_JSON = "application/json; charset=utf-8"
APPLICATION_XML = "application/xml; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = TEXT_PLAIN
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_status(self, status: int) -> Response:
        """Return a copy with a different status code."""
        return replace(self, status=status)

    def with_body(self, body: str | bytes, content_type: str | None = None) -> Response:
        """Return a copy with a new body (and optionally content type)."""
        return replace(self, body=body, content_type=content_type or self.content_type)

    def with_content_type(self, content_type: str) -> Response:
        """Return a copy with a different content type."""
        return replace(self, content_type=content_type)

    def with_header(self, name: str, value: str) -> Response:
        """Return a copy with *name* set to *value*, replacing earlier values."""
        kept = tuple((n, v) for n, v in self.headers if n.lower() != name.lower())
        return replace(self, headers=(*kept, (name, value)))

    def with_appended_header(self, name: str, value: str) -> Response:
        """Return a copy with an additional header line."""
        return replace(self, headers=(*self.headers, (name, value)))

    def without_header(self, name: str) -> Response:
        """Return a copy with every *name* header removed."""
        kept = tuple((n, v) for n, v in self.headers if n.lower() != name.lower())
        return replace(self, headers=kept)

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of header *name*, or *default*."""
        wanted = name.lower()
        for n, v in self.headers:
            if n.lower() == wanted:
                return v
        return default

    def with_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str | None = "lax",
    ) -> Response:
        """Return a copy that sets a cookie."""
        cookie = SetCookie(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        kept = tuple(c for c in self.cookies if c.name != name)
        return replace(self, cookies=(*kept, cookie))

    def without_cookie(self, name: str, path: str = "/") -> Response:
        """Return a copy that tells the client to drop a cookie."""
        return self.with_cookie(name, "", max_age=0, path=path)

    @property
    def body_bytes(self) -> bytes:
        """Body encoded as UTF-8 bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 text."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body
