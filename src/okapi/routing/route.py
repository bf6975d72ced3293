"""Route rule and match result."""

import re
from dataclasses import dataclass
from typing import Any

from okapi.pipeline import Handler


@dataclass(frozen=True, slots=True)
class PathSegment:
    """One ``/``-separated piece of a route pattern.

    Literal:  ``users``
    Capture:  ``{id}`` or ``{id:int}``
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Route:
    """A compiled route rule. Immutable once registered.

    ``methods`` of ``None`` accepts any HTTP method.
    """

    path: str
    handler: Handler
    methods: frozenset[str] | None
    pattern: re.Pattern[str]
    param_types: tuple[tuple[str, str], ...] = ()
    name: str | None = None

    def allows(self, method: str) -> bool:
        return self.methods is None or method in self.methods


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """The selected rule plus its converted path captures."""

    route: Route
    params: dict[str, Any]
