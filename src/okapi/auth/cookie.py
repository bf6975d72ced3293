"""Cookie authentication.

The identity is serialized to JSON and signed with ``itsdangerous``; the
signature (not encryption) guarantees the claims were issued by this
app.  ``CookieAuthentication`` runs as global middleware: it attaches
the identity from the incoming cookie to ``ctx.user`` and, once the chain
has produced a response, writes whatever ``sign_in`` / ``sign_out``
asked for.

Usage::

    app.add_middleware(CookieAuthentication(CookieAuthConfig(secret_key="...")))

    async def login(ctx, next):
        sign_in(ctx, Identity.create([Claim(ClaimTypes.NAME, "John")], COOKIE_SCHEME))
        return await text("Signed in")(ctx, next)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import time
from typing import TYPE_CHECKING, Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from okapi.auth.claims import ANONYMOUS, Identity
from okapi.errors import ConfigurationError
from okapi.http.request import Request
from okapi.http.response import Response
from okapi.pipeline import Next

if TYPE_CHECKING:
    from okapi.context import HttpContext

logger = logging.getLogger("okapi.auth")

COOKIE_SCHEME = "Cookies"

_CONFIG_KEY = "okapi.auth.config"
_PENDING_KEY = "okapi.auth.pending"
_SIGN_OUT = object()


@dataclass(frozen=True, slots=True)
class CookieAuthConfig:
    """Cookie authentication settings.

    ``secure_policy`` is ``"same_as_request"`` (mark the cookie Secure
    when the request came over TLS), ``"always"`` or ``"never"``.
    """

    secret_key: str
    scheme: str = COOKIE_SCHEME
    cookie_name: str = ".okapi.auth"
    expire_seconds: int = 7 * 24 * 3600
    sliding_expiration: bool = True
    httponly: bool = True
    secure_policy: str = "same_as_request"
    samesite: str = "lax"
    path: str = "/"
    domain: str | None = None


def sign_in(ctx: HttpContext, identity: Identity) -> None:
    """Make *identity* the current user and issue its cookie on the response."""
    _require_middleware(ctx, "sign_in")
    if not identity.is_authenticated:
        msg = "sign_in() needs an identity with an authentication scheme."
        raise ValueError(msg)
    ctx.user = identity
    ctx.items[_PENDING_KEY] = identity
    logger.info("Signed in %r via %s", identity.name, identity.scheme)


def sign_out(ctx: HttpContext) -> None:
    """Drop the current user and delete the cookie on the response."""
    _require_middleware(ctx, "sign_out")
    logger.info("Signed out %r", ctx.user.name)
    ctx.user = ANONYMOUS
    ctx.items[_PENDING_KEY] = _SIGN_OUT


def sign_out_handler() -> Any:
    """Chain step form of ``sign_out``: sign out, then delegate."""

    async def signing_out(ctx: HttpContext, next: Next) -> Response:
        sign_out(ctx)
        return await next(ctx)

    return signing_out


def _require_middleware(ctx: HttpContext, caller: str) -> None:
    if _CONFIG_KEY not in ctx.items:
        msg = f"{caller}() requires CookieAuthentication middleware to be active."
        raise ConfigurationError(msg)


class CookieAuthentication:
    """Global middleware that authenticates requests from a signed cookie."""

    __slots__ = ("_serializer", "config")

    def __init__(self, config: CookieAuthConfig) -> None:
        if not config.secret_key:
            msg = "CookieAuthConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        if config.secure_policy not in ("same_as_request", "always", "never"):
            msg = f"Unknown secure_policy {config.secure_policy!r}."
            raise ConfigurationError(msg)
        self.config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="okapi.auth")

    def load(self, request: Request) -> tuple[Identity, float | None]:
        """Return the identity in the request cookie and when it was issued."""
        value = request.cookies.get(self.config.cookie_name)
        if not value:
            return ANONYMOUS, None
        try:
            payload = self._serializer.loads(value, max_age=self.config.expire_seconds)
            identity = Identity.from_payload(payload)
            issued_at = float(payload.get("iat", 0))
        except BadSignature as exc:
            logger.debug("Rejected auth cookie: %s", exc)
            return ANONYMOUS, None
        except (ValueError, TypeError, AttributeError) as exc:
            logger.debug("Unreadable auth cookie: %s", exc)
            return ANONYMOUS, None
        if identity.scheme != self.config.scheme:
            return ANONYMOUS, None
        return identity, issued_at

    def dump(self, identity: Identity) -> str:
        """Sign *identity* into a cookie value."""
        return self._serializer.dumps({**identity.to_payload(), "iat": time()})

    def _issue(self, response: Response, identity: Identity, request: Request) -> Response:
        cfg = self.config
        if cfg.secure_policy == "same_as_request":
            secure = request.is_secure
        else:
            secure = cfg.secure_policy == "always"
        return response.with_cookie(
            cfg.cookie_name,
            self.dump(identity),
            max_age=cfg.expire_seconds,
            path=cfg.path,
            domain=cfg.domain,
            secure=secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    def _needs_renewal(self, issued_at: float | None) -> bool:
        if not self.config.sliding_expiration or issued_at is None:
            return False
        return time() - issued_at > self.config.expire_seconds / 2

    async def __call__(self, ctx: HttpContext, next: Next) -> Response:
        identity, issued_at = self.load(ctx.request)
        ctx.user = identity
        ctx.items[_CONFIG_KEY] = self.config

        response = await next(ctx)

        pending = ctx.items.get(_PENDING_KEY)
        if pending is _SIGN_OUT:
            return response.without_cookie(self.config.cookie_name, path=self.config.path)
        if isinstance(pending, Identity):
            return self._issue(response, pending, ctx.request)
        if identity.is_authenticated and self._needs_renewal(issued_at):
            return self._issue(response, identity, ctx.request)
        return response
