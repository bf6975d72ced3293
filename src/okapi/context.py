"""Per-request context and the app-wide context it points to.

``AppContext`` is built once when the app freezes and never changes.
``HttpContext`` is created for every request, owned by that request's
pipeline, and dropped after the response is sent.  Handlers receive the
context explicitly; there are no request-scoped globals.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from okapi.auth.claims import ANONYMOUS, Identity
from okapi.config import AppConfig, Settings
from okapi.http.request import Request

if TYPE_CHECKING:
    from kida import Environment

    from okapi.routing.route import Route


@dataclass(frozen=True, slots=True)
class AppContext:
    """Read-only state shared by every request."""

    config: AppConfig
    services: Mapping[type, Any] = field(default_factory=lambda: MappingProxyType({}))
    templates: Environment | None = None

    @property
    def settings(self) -> Settings:
        return self.config.settings

    def get_service[T](self, annotation: type[T]) -> T:
        """Return the service registered for *annotation*.

        Raises ``LookupError`` if nothing was registered.
        """
        try:
            return self.services[annotation]
        except KeyError:
            msg = f"No service registered for {annotation.__name__}."
            raise LookupError(msg) from None


class HttpContext:
    """Mutable per-request bag.

    Attributes:
        request: The immutable incoming request.
        app: The shared ``AppContext``.
        params: Typed path captures of the matched route.
        route: The matched route rule (``None`` while matching or in the
            fallback chain).
        user: The authenticated identity, ``ANONYMOUS`` by default.
        items: Free-form storage for handlers further down the chain.
    """

    __slots__ = ("app", "items", "params", "request", "route", "user")

    def __init__(self, request: Request, app: AppContext) -> None:
        self.request = request
        self.app = app
        self.params: dict[str, Any] = {}
        self.route: Route | None = None
        self.user: Identity = ANONYMOUS
        self.items: dict[str, Any] = {}

    @property
    def settings(self) -> Settings:
        return self.app.settings

    def __repr__(self) -> str:
        return f"<HttpContext {self.request.method} {self.request.path} user={self.user.name!r}>"
