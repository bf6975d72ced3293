"""Ordered router.

Rules are tried in registration order and the first rule whose method
set and path pattern both match is selected.  There is no precedence
between literal and templated rules beyond that order, which keeps the
table easy to read top to bottom.
"""

import re
from collections.abc import Iterable
from typing import Any

from okapi.errors import ConfigurationError, NotFound
from okapi.pipeline import Handler
from okapi.routing.params import CONVERTERS, convert_param
from okapi.routing.route import PathSegment, Route, RouteMatch


def parse_path(path: str) -> list[PathSegment]:
    """Split a route pattern into segments.

    ::

        "/ping"          -> [PathSegment("ping")]
        "/user/{id:int}" -> [PathSegment("user"), PathSegment("{id:int}", True, "id", "int")]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("<") and part.endswith(">"):
            msg = (
                f"Route {path!r} uses <param> syntax; okapi captures are "
                f"written {{param}} or {{param:int}}."
            )
            raise ConfigurationError(msg)
        if part.startswith("{") and part.endswith("}"):
            name, _, param_type = part[1:-1].partition(":")
            param_type = param_type or "str"
            if param_type not in CONVERTERS:
                known = ", ".join(sorted(CONVERTERS))
                msg = f"Unknown converter {param_type!r} in route {path!r} (known: {known})."
                raise ConfigurationError(msg)
            segments.append(PathSegment(part, True, name, param_type))
        else:
            segments.append(PathSegment(part))
    return segments


def compile_pattern(path: str) -> tuple[re.Pattern[str], tuple[tuple[str, str], ...]]:
    """Build the full-path regex and the (name, converter) list for *path*."""
    segments = parse_path(path)
    pieces: list[str] = []
    params: list[tuple[str, str]] = []
    for seg in segments:
        if seg.is_param:
            name = seg.param_name or ""
            if any(existing == name for existing, _ in params):
                msg = f"Duplicate capture {name!r} in route {path!r}."
                raise ConfigurationError(msg)
            regex, _ = CONVERTERS[seg.param_type]
            pieces.append(f"(?P<{name}>{regex})")
            params.append((name, seg.param_type))
        else:
            pieces.append(re.escape(seg.value))
    return re.compile("^/" + "/".join(pieces) + "$"), tuple(params)


def normalize_path(path: str) -> str:
    """Collapse empty segments and drop the trailing slash."""
    return "/" + "/".join(p for p in path.split("/") if p)


class Router:
    """Ordered route table.

    Usage::

        router = Router()
        router.add("/user/{id:int}", handler, methods={"GET"})
        router.compile()
        match = router.match("GET", "/user/42")   # match.params == {"id": 42}
    """

    __slots__ = ("_compiled", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._compiled = False

    def add(
        self,
        path: str,
        handler: Handler,
        *,
        methods: Iterable[str] | None = None,
        name: str | None = None,
    ) -> Route:
        """Append a rule. Must be called before ``compile()``."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        if name is not None and any(r.name == name for r in self._routes):
            msg = f"Duplicate route name {name!r}."
            raise ConfigurationError(msg)

        pattern, param_types = compile_pattern(path)
        route = Route(
            path=path,
            handler=handler,
            methods=frozenset(m.upper() for m in methods) if methods is not None else None,
            pattern=pattern,
            param_types=param_types,
            name=name,
        )
        self._routes.append(route)
        return route

    def compile(self) -> None:
        """Freeze the table."""
        self._compiled = True

    @property
    def routes(self) -> tuple[Route, ...]:
        """Rules in matching order."""
        return tuple(self._routes)

    def match(self, method: str, path: str) -> RouteMatch:
        """Select the first rule matching *method* and *path*.

        Raises ``NotFound`` when nothing matches.
        """
        method = method.upper()
        path = normalize_path(path)
        for route in self._routes:
            if not route.allows(method):
                continue
            found = route.pattern.match(path)
            if found is None:
                continue
            params = _convert(route, found.groupdict())
            if params is None:
                continue
            return RouteMatch(route=route, params=params)
        raise NotFound(f"No route matches {method} {path!r}")

    def url_for(self, name: str, **params: Any) -> str:
        """Build the path of the rule registered as *name*."""
        for route in self._routes:
            if route.name == name:
                return "/" + "/".join(_fill(seg, params) for seg in parse_path(route.path))
        msg = f"No route named {name!r}."
        raise LookupError(msg)


def _convert(route: Route, raw: dict[str, str]) -> dict[str, Any] | None:
    params: dict[str, Any] = {}
    for name, param_type in route.param_types:
        try:
            params[name] = convert_param(raw[name], param_type)
        except ValueError:
            return None
    return params


def _fill(seg: PathSegment, params: dict[str, Any]) -> str:
    if not seg.is_param:
        return seg.value
    try:
        return str(params[seg.param_name or ""])
    except KeyError:
        msg = f"Missing value for capture {seg.param_name!r}."
        raise LookupError(msg) from None
