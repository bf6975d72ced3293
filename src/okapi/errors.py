"""okapi exception hierarchy.

Shared by the router, pipeline, handlers, and ASGI adapter so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class OkapiError(Exception):
    """Base for all okapi-specific errors."""


class ConfigurationError(OkapiError):
    """Raised when the app is wired up incorrectly.

    Surfaces during registration or at freeze time, before the first
    request is served.
    """


class ClientDisconnected(OkapiError):
    """The client went away while the request body was being read."""


@dataclass(frozen=True, slots=True)
class HTTPError(OkapiError):
    """An error that maps directly to an HTTP status code.

    Raise from any handler to abandon the chain with *status*; the ASGI
    adapter turns it into a plain-text response carrying *detail*.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 -- conventional name in web frameworks
    """404 -- no route rule matched the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
