"""Chain handlers that bind and validate models.

*then* is a function from the bound model to the handler that answers,
so the value-taking handlers from ``okapi.handlers`` plug in directly::

    app.route("/car", bind_model(Car, json))
    app.route("/car2", try_bind_query(Car, bad_request, validate_model(xml)))
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from okapi.binding.binder import BindingError, from_form, from_json, from_query, from_request
from okapi.binding.validation import Err, validate
from okapi.http.request import Request
from okapi.http.response import Response
from okapi.pipeline import Handler, Next

if TYPE_CHECKING:
    from okapi.context import HttpContext

logger = logging.getLogger("okapi.binding")

type Continuation = Callable[[Any], Handler]
type Source = Callable[[type, Request], Awaitable[Any]]


def _binding_handler(cls: type, then: Continuation, source: Source, label: str) -> Handler:
    async def binding(ctx: HttpContext, next: Next) -> Response:
        try:
            model = await source(cls, ctx.request)
        except BindingError as exc:
            logger.debug("Binding %s failed: %s", cls.__name__, exc.message)
            return Response(exc.message, status=400)
        outcome = validate(model)
        if isinstance(outcome, Err):
            return await outcome.handler(ctx, next)
        return await then(outcome.value)(ctx, next)

    binding.label = f"{label}({cls.__name__})"  # type: ignore[attr-defined]
    return binding


async def _query(cls: type, request: Request) -> Any:
    return from_query(cls, request)


def bind_json(cls: type, then: Continuation) -> Handler:
    """Bind *cls* from a JSON body, validate it, and continue with *then*.

    Malformed input answers ``400`` with the binding error message.
    """
    return _binding_handler(cls, then, from_json, "bind_json")


def bind_query(cls: type, then: Continuation) -> Handler:
    return _binding_handler(cls, then, _query, "bind_query")


def bind_form(cls: type, then: Continuation) -> Handler:
    return _binding_handler(cls, then, from_form, "bind_form")


def bind_model(cls: type, then: Continuation) -> Handler:
    """Bind from the source the content type implies (see ``from_request``)."""
    return _binding_handler(cls, then, from_request, "bind_model")


def try_bind_query(
    cls: type,
    on_error: Callable[[str], Handler],
    then: Continuation,
) -> Handler:
    """Bind *cls* from the query string without validating.

    A conversion failure hands its message to *on_error*; pair *then*
    with ``validate_model`` to validate.
    """

    async def trying(ctx: HttpContext, next: Next) -> Response:
        try:
            model = from_query(cls, ctx.request)
        except BindingError as exc:
            return await on_error(exc.message)(ctx, next)
        return await then(model)(ctx, next)

    trying.label = f"try_bind_query({cls.__name__})"  # type: ignore[attr-defined]
    return trying


def validate_model(then: Continuation) -> Continuation:
    """Wrap *then* so the model is validated before it is used."""

    def validating(model: Any) -> Handler:
        outcome = validate(model)
        if isinstance(outcome, Err):
            return outcome.handler
        return then(outcome.value)

    return validating
