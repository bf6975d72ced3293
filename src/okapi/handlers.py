"""Built-in handlers and combinators.

Terminal handlers (``text``, ``json``, ``html_view`` ...) produce a
response and never call ``next``.  Wrapping handlers (``set_status``,
``set_header``) delegate first and then adjust what the rest of the
chain returned, so ``chain(set_status(401), text("Access Denied"))``
yields a 401 with that body.

Usage::

    app.get("/ping", text("pong"))
    app.get("/now", warbler(lambda ctx: text(clock())))
    app.get("/user/{id:int}", endpoint(lambda ctx, id: f"User Id: {id}"))
"""

import dataclasses
import json as json_module
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any
from xml.etree import ElementTree

from kida import Environment

from okapi._internal.invoke import invoke
from okapi.context import HttpContext
from okapi.http.response import APPLICATION_JSON, APPLICATION_XML, TEXT_HTML, Response
from okapi.pipeline import Handler, Next, Pipeline, chain, end_of_chain
from okapi.templating import Template, render_template

__all__ = [
    "Pipeline",
    "bad_request",
    "chain",
    "end_of_chain",
    "endpoint",
    "html",
    "html_view",
    "json",
    "negotiate",
    "set_header",
    "set_status",
    "text",
    "to_jsonable",
    "to_xml",
    "warbler",
    "xml",
]


class _Terminal:
    """A handler that always answers with the same response."""

    __slots__ = ("label", "response")

    def __init__(self, response: Response, label: str) -> None:
        self.response = response
        self.label = label

    async def __call__(self, ctx: HttpContext, next: Next) -> Response:  # noqa: ARG002
        return self.response

    def __repr__(self) -> str:
        return f"<{self.label}>"


def text(body: str) -> Handler:
    """Answer with *body* as ``text/plain``.

    The response is built once, when the handler is created.  Use
    ``warbler`` for values that must be computed per request.
    """
    return _Terminal(Response(body), f"text({body[:20]!r})")


def html(body: str) -> Handler:
    return _Terminal(Response(body, content_type=TEXT_HTML), "html")


def json(value: Any) -> Handler:
    """Answer with *value* serialized as JSON (see ``to_jsonable``)."""
    return _Terminal(_json_response(value), "json")


def xml(value: Any) -> Handler:
    """Answer with a dataclass instance serialized as XML (see ``to_xml``)."""
    return _Terminal(Response(to_xml(value), content_type=APPLICATION_XML), "xml")


def html_view(template: Template) -> Handler:
    """Answer with *template* rendered by the app's kida environment.

    Rendering happens per request, so template edits show up in debug
    mode without re-registering the route.
    """

    async def rendering(ctx: HttpContext, next: Next) -> Response:  # noqa: ARG001
        body = render_template(ctx.app.templates, template)
        return Response(body, content_type=TEXT_HTML)

    rendering.label = f"html_view({template.name!r})"  # type: ignore[attr-defined]
    return rendering


def bad_request(message: str) -> Handler:
    return _Terminal(Response(message, status=400), "bad_request")


def set_status(status: int) -> Handler:
    """Apply *status* to the response produced by the rest of the chain."""

    async def setting_status(ctx: HttpContext, next: Next) -> Response:
        response = await next(ctx)
        return response.with_status(status)

    setting_status.label = f"set_status({status})"  # type: ignore[attr-defined]
    return setting_status


def set_header(name: str, value: str) -> Handler:
    """Set header *name* on the response produced by the rest of the chain."""

    async def setting_header(ctx: HttpContext, next: Next) -> Response:
        response = await next(ctx)
        return response.with_header(name, value)

    setting_header.label = f"set_header({name!r})"  # type: ignore[attr-defined]
    return setting_header


def warbler(factory: Callable[[HttpContext], Handler]) -> Handler:
    """Build the handler anew for every request.

    ``text(clock())`` evaluates ``clock()`` once, at registration;
    ``warbler(lambda ctx: text(clock()))`` evaluates it per request.
    """

    async def warbling(ctx: HttpContext, next: Next) -> Response:
        return await factory(ctx)(ctx, next)

    warbling.label = f"warbler({getattr(factory, '__name__', 'factory')})"  # type: ignore[attr-defined]
    return warbling


def endpoint(func: Callable[..., Any]) -> Handler:
    """Wrap a plain function as a terminal handler.

    *func* is called as ``func(ctx, **ctx.params)``, may be sync or
    async, and its return value goes through ``negotiate``.
    """

    async def calling(ctx: HttpContext, next: Next) -> Response:  # noqa: ARG001
        value = await invoke(func, ctx, **ctx.params)
        return negotiate(value, ctx.app.templates)

    calling.label = getattr(func, "__qualname__", "endpoint")  # type: ignore[attr-defined]
    return calling


def negotiate(value: Any, templates: Environment | None = None) -> Response:
    """Convert an endpoint's return value to a Response.

    Dispatch order:

    1. ``Response``         -> pass through
    2. ``None``             -> empty 200
    3. ``Template``         -> rendered with *templates*, text/html
    4. ``str``              -> 200, text/plain
    5. ``bytes``            -> 200, application/octet-stream
    6. ``dict`` / ``list`` / dataclass -> 200, application/json
    7. ``(value, int)``     -> negotiate value, override status
    """
    match value:
        case Response():
            return value
        case None:
            return Response()
        case Template():
            return Response(render_template(templates, value), content_type=TEXT_HTML)
        case str():
            return Response(value)
        case bytes():
            return Response(value, content_type="application/octet-stream")
        case dict() | list():
            return _json_response(value)
        case (inner, int(status)):
            return negotiate(inner, templates).with_status(status)
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return _json_response(value)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return a Response, str, bytes, dict, list, Template or dataclass."
            )
            raise TypeError(msg)


# -- serialization -------------------------------------------------------


def to_jsonable(value: Any) -> Any:
    """Recursively convert dataclasses and datetimes to JSON-safe values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_jsonable(v) for v in value]
    return value


def _json_response(value: Any) -> Response:
    body = json_module.dumps(to_jsonable(value), ensure_ascii=False)
    return Response(body, content_type=APPLICATION_JSON)


def _pascal(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_"))


def to_xml(value: Any) -> str:
    """Serialize a dataclass instance as an XML document.

    The root element is named after the class and each field becomes a
    PascalCase child element; ``None`` fields are omitted.
    """
    if not dataclasses.is_dataclass(value) or isinstance(value, type):
        msg = f"Cannot serialize {type(value).__name__} as XML; expected a dataclass instance"
        raise TypeError(msg)
    root = _xml_element(type(value).__name__, value)
    return '<?xml version="1.0" encoding="utf-8"?>\n' + ElementTree.tostring(
        root, encoding="unicode"
    )


def _xml_element(tag: str, value: Any) -> ElementTree.Element:
    node = ElementTree.Element(tag)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        for f in dataclasses.fields(value):
            child = getattr(value, f.name)
            if child is not None:
                node.append(_xml_element(_pascal(f.name), child))
    elif isinstance(value, bool):
        node.text = "true" if value else "false"
    elif isinstance(value, datetime | date):
        node.text = value.isoformat()
    else:
        node.text = str(value)
    return node
