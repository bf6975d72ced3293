"""ASGI handler: translates ASGI scope/messages to okapi types.

The only component that touches raw HTTP ASGI messages. Builds the
per-request ``HttpContext``, runs the global middleware around route
dispatch, and sends exactly one response.
"""

import logging

from okapi._internal.asgi import Receive, Scope, Send
from okapi.context import AppContext, HttpContext
from okapi.errors import ClientDisconnected, HTTPError, NotFound
from okapi.http.request import Request
from okapi.http.response import Response
from okapi.pipeline import Pipeline, end_of_chain
from okapi.routing.router import Router
from okapi.server.errors import ErrorHandlers, handle_http_error, handle_internal_error
from okapi.server.sender import send_response

logger = logging.getLogger("okapi.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: Pipeline,
    fallback: Pipeline,
    app_context: AppContext,
    error_handlers: ErrorHandlers,
) -> None:
    """Process a single HTTP request through middleware, routing and the chain."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(
        scope, receive, max_body_size=app_context.config.max_content_length
    )
    ctx = HttpContext(request, app_context)

    async def dispatch(c: HttpContext) -> Response:
        try:
            match = router.match(c.request.method, c.request.path)
        except NotFound:
            return await fallback(c, end_of_chain)
        c.route = match.route
        c.params = match.params
        return await match.route.handler(c, end_of_chain)

    try:
        response = await middleware(ctx, dispatch)
    except ClientDisconnected:
        logger.debug("Client disconnected during %s %s", request.method, request.path)
        return
    except HTTPError as exc:
        response = await handle_http_error(exc, ctx, error_handlers)
    except Exception as exc:
        response = await handle_internal_error(exc, ctx, error_handlers)

    await send_response(response, send, head_only=request.method == "HEAD")
