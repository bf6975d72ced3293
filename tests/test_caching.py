"""Tests for cache headers and the server-side response cache."""

import itertools

import pytest

from okapi.app import App
from okapi.caching import (
    Private,
    Public,
    ResponseCachingMiddleware,
    no_response_caching,
    public_response_caching,
    response_caching,
)
from okapi.handlers import text, warbler
from okapi.http.response import Response
from okapi.testing import TestClient


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _counting():
    """A warbler that answers with an increasing number per call."""
    counter = itertools.count(1)
    return warbler(lambda ctx: text(str(next(counter))))


def _make_app(cache: ResponseCachingMiddleware) -> App:
    app = App()
    app.add_middleware(cache)
    app.get("/public", public_response_caching(30), _counting())
    app.get("/by-lang", public_response_caching(30, "Accept-Language"), _counting())
    app.get(
        "/by-query",
        response_caching(Public(30), vary_by_query_keys=["key1", "key2"]),
        _counting(),
    )
    app.get("/any-query", response_caching(Public(30), vary_by_query_keys=["*"]), _counting())
    app.get("/private", response_caching(Private(30)), _counting())
    app.get("/none", no_response_caching(), _counting())
    app.post("/public", public_response_caching(30), _counting())

    async def with_cookie(ctx, next):
        response = await next(ctx)
        return response.with_cookie("seen", "1")

    app.get("/cookie", public_response_caching(30), with_cookie, _counting())
    return app


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> ResponseCachingMiddleware:
    return ResponseCachingMiddleware(clock=clock)


# ---------------------------------------------------------------------------
# Header handlers
# ---------------------------------------------------------------------------


class TestCacheHeaders:
    def test_directive_values(self) -> None:
        assert Public(30).header_value() == "public, max-age=30"
        assert Private(5).header_value() == "private, max-age=5"

    async def test_public(self) -> None:
        app = App()
        app.get("/", public_response_caching(30), text("hi"))
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.header("cache-control") == "public, max-age=30"
        assert response.header("vary") is None

    async def test_vary_by_header(self) -> None:
        app = App()
        app.get("/", public_response_caching(30, "Accept-Encoding"), text("hi"))
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.header("vary") == "Accept-Encoding"

    async def test_no_caching(self) -> None:
        app = App()
        app.get("/", no_response_caching(), text("hi"))
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.header("cache-control") == "no-store, no-cache"
        assert response.header("pragma") == "no-cache"
        assert response.header("expires") == "-1"

    async def test_headers_applied_after_inner_handlers(self) -> None:
        async def override(ctx, next):
            return Response("inner").with_header("Cache-Control", "max-age=1")

        app = App()
        app.get("/", public_response_caching(30), override)
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.header("cache-control") == "public, max-age=30"


# ---------------------------------------------------------------------------
# Server-side store
# ---------------------------------------------------------------------------


class TestResponseCache:
    async def test_replays_public_response(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            first = await client.get("/public")
            second = await client.get("/public")
        assert first.text == second.text == "1"
        assert first.header("age") is None
        assert second.header("age") == "0"
        assert len(cache) == 1

    async def test_age_grows(self, cache, clock) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public")
            clock.now += 12
            response = await client.get("/public")
        assert response.header("age") == "12"

    async def test_expires_after_max_age(self, cache, clock) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public")
            clock.now += 30
            response = await client.get("/public")
        assert response.text == "2"

    async def test_trailing_slash_shares_entry(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public")
            response = await client.get("/public/")
        assert response.text == "1"

    async def test_query_ignored_without_vary_keys(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public?a=1")
            response = await client.get("/public?a=2")
        assert response.text == "1"

    async def test_vary_by_query_keys(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            assert (await client.get("/by-query?key1=a&key2=b")).text == "1"
            assert (await client.get("/by-query?key1=a&key2=b")).text == "1"
            assert (await client.get("/by-query?key1=a&key2=c")).text == "2"
            assert (await client.get("/by-query?key2=b&key1=a&other=x")).text == "1"

    async def test_vary_by_all_query_keys(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            assert (await client.get("/any-query?x=1")).text == "1"
            assert (await client.get("/any-query?x=1&y=2")).text == "2"
            assert (await client.get("/any-query?x=1")).text == "1"

    async def test_vary_by_header(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            en = {"Accept-Language": "en"}
            de = {"Accept-Language": "de"}
            assert (await client.get("/by-lang", headers=en)).text == "1"
            assert (await client.get("/by-lang", headers=de)).text == "2"
            assert (await client.get("/by-lang", headers=en)).text == "1"

    async def test_private_not_stored(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/private")
            response = await client.get("/private")
        assert response.text == "2"
        assert len(cache) == 0

    async def test_no_caching_not_stored(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/none")
            response = await client.get("/none")
        assert response.text == "2"

    async def test_post_not_cached(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.post("/public")
            response = await client.post("/public")
        assert response.text == "2"

    async def test_response_with_cookie_not_stored(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/cookie")
            response = await client.get("/cookie")
        assert response.text == "2"

    async def test_authorization_bypasses_cache(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public")
            response = await client.get("/public", headers={"Authorization": "Bearer x"})
        assert response.text == "2"

    async def test_request_no_cache_refreshes(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public")
            fresh = await client.get("/public", headers={"Cache-Control": "no-cache"})
            replay = await client.get("/public")
        assert fresh.text == "2"
        assert replay.text == "2"

    async def test_pragma_no_cache(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public")
            response = await client.get("/public", headers={"Pragma": "no-cache"})
        assert response.text == "2"

    async def test_request_no_store_keeps_old_entry(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public")
            fresh = await client.get("/public", headers={"Cache-Control": "no-store"})
            replay = await client.get("/public")
        assert fresh.text == "2"
        assert replay.text == "1"

    async def test_evicts_oldest(self, clock) -> None:
        cache = ResponseCachingMiddleware(max_entries=1, clock=clock)
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public")
            await client.get("/by-lang")
            assert len(cache) == 1
            response = await client.get("/public")
        assert response.text == "2"

    async def test_clear(self, cache) -> None:
        async with TestClient(_make_app(cache)) as client:
            await client.get("/public")
            cache.clear()
            response = await client.get("/public")
        assert response.text == "2"
