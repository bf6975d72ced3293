"""Shared fixtures for okapi tests."""

import pytest

from okapi.config import AppConfig, Settings
from okapi.context import AppContext, HttpContext
from okapi.http.headers import Headers
from okapi.http.query import QueryParams
from okapi.http.request import Request


def make_request(
    method: str = "GET",
    path: str = "/",
    *,
    headers: dict[str, str] | None = None,
    query: bytes = b"",
) -> Request:
    raw = tuple(
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    )
    return Request(
        method=method,
        path=path,
        headers=Headers(raw),
        query=QueryParams(query),
        cookies={},
    )


def make_context(request: Request | None = None, **settings: str) -> HttpContext:
    config = AppConfig(settings=Settings(settings))
    return HttpContext(request or make_request(), AppContext(config))


@pytest.fixture
def ctx() -> HttpContext:
    return make_context()
