"""Fault handling for okapi requests.

Maps ``HTTPError`` exceptions and unexpected failures to responses,
using registered error handlers or the defaults: the error's own status
and detail for ``HTTPError``, and a ``500`` carrying the exception
message for anything else.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from okapi._internal.invoke import invoke
from okapi.context import HttpContext
from okapi.errors import HTTPError
from okapi.handlers import negotiate
from okapi.http.response import Response
from okapi.pipeline import end_of_chain
from okapi.server.terminal_errors import log_error

logger = logging.getLogger("okapi.server")

type ErrorHandlers = dict[int | type[BaseException], Callable[..., Any]]


async def call_error_handler(
    handler: Callable[..., Any],
    ctx: HttpContext,
    exc: Exception,
) -> Response:
    """Invoke a registered error handler with introspected arguments.

    Error handlers may accept ``(ctx, exc)``, ``(ctx)`` or nothing, may
    be sync or async, and may return a ``Response``, a chain handler, or
    any value ``negotiate`` accepts.
    """
    params = list(inspect.signature(handler).parameters.values())
    if len(params) >= 2:
        result = await invoke(handler, ctx, exc)
    elif len(params) == 1:
        result = await invoke(handler, ctx)
    else:
        result = await invoke(handler)

    if isinstance(result, Response):
        return result
    if callable(result):
        return await result(ctx, end_of_chain)
    return negotiate(result, ctx.app.templates)


def _find_handler(exc: BaseException, handlers: ErrorHandlers, status: int) -> Callable[..., Any] | None:
    for klass in type(exc).__mro__:
        if klass in handlers:
            return handlers[klass]
    return handlers.get(status)


async def handle_http_error(exc: HTTPError, ctx: HttpContext, handlers: ErrorHandlers) -> Response:
    """Map an HTTPError to a Response."""
    request = ctx.request
    logger.debug("%d %s %s - %s", exc.status, request.method, request.path, exc.detail)

    handler = _find_handler(exc, handlers, exc.status)
    if handler is not None:
        response = await _guarded(handler, ctx, exc)
        # Keep the error status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    response = Response(exc.detail or f"Error {exc.status}", status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


async def handle_internal_error(exc: Exception, ctx: HttpContext, handlers: ErrorHandlers) -> Response:
    """Log an unexpected exception and answer ``500``."""
    log_error(exc, ctx.request)
    handler = _find_handler(exc, handlers, 500)
    if handler is not None:
        return await _guarded(handler, ctx, exc)
    return Response(str(exc), status=500)


async def _guarded(handler: Callable[..., Any], ctx: HttpContext, exc: Exception) -> Response:
    try:
        return await call_error_handler(handler, ctx, exc)
    except Exception as handler_exc:
        logger.exception("Error handler %r failed", handler)
        return Response(str(handler_exc), status=500)
