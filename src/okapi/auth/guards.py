"""Authorization guards.

Each guard is a chain step that delegates when the current user passes
its check and otherwise hands the request to *on_fail*, which produces
the response (typically ``401``)::

    access_denied = chain(set_status(401), text("Access Denied"))
    must_be_admin = chain(
        requires_authentication(access_denied),
        requires_role("Admin", access_denied),
    )
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from okapi.auth.claims import Identity
from okapi.http.response import Response
from okapi.pipeline import Handler, Next, end_of_chain

if TYPE_CHECKING:
    from okapi.context import HttpContext


class Guard:
    """A chain step that short-circuits to *on_fail* when *check* fails."""

    __slots__ = ("check", "label", "on_fail")

    def __init__(self, check: Callable[[Identity], bool], on_fail: Handler, label: str) -> None:
        self.check = check
        self.on_fail = on_fail
        self.label = label

    async def __call__(self, ctx: HttpContext, next: Next) -> Response:
        if self.check(ctx.user):
            return await next(ctx)
        return await self.on_fail(ctx, end_of_chain)

    def __repr__(self) -> str:
        return f"<Guard {self.label}>"


def requires_authentication(on_fail: Handler) -> Guard:
    return Guard(lambda user: user.is_authenticated, on_fail, "requires_authentication")


def requires_role(role: str, on_fail: Handler) -> Guard:
    return Guard(
        lambda user: user.is_authenticated and user.is_in_role(role),
        on_fail,
        f"requires_role({role!r})",
    )


def requires_one_of_roles(roles: frozenset[str] | set[str], on_fail: Handler) -> Guard:
    wanted = frozenset(roles)
    return Guard(
        lambda user: user.is_authenticated and bool(user.roles & wanted),
        on_fail,
        f"requires_one_of_roles({sorted(wanted)!r})",
    )


def authorize_user(predicate: Callable[[Identity], bool], on_fail: Handler) -> Guard:
    """Guard on an arbitrary predicate over the current identity."""
    return Guard(predicate, on_fail, f"authorize_user({getattr(predicate, '__name__', 'predicate')})")
