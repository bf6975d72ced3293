"""Tests for okapi.context — per-request and app-wide context."""

import pytest
from conftest import make_context, make_request

from okapi.auth import ANONYMOUS
from okapi.config import AppConfig
from okapi.context import AppContext


class TestHttpContext:
    def test_defaults(self, ctx) -> None:
        assert ctx.user is ANONYMOUS
        assert ctx.params == {}
        assert ctx.items == {}
        assert ctx.route is None

    def test_settings_come_from_app(self) -> None:
        ctx = make_context(HelloMessage="hi")
        assert ctx.settings["HelloMessage"] == "hi"

    def test_items_are_per_request(self) -> None:
        app_ctx = AppContext(AppConfig())
        from okapi.context import HttpContext

        first = HttpContext(make_request(), app_ctx)
        second = HttpContext(make_request(), app_ctx)
        first.items["seen"] = True
        assert "seen" not in second.items

    def test_repr(self) -> None:
        ctx = make_context(make_request("POST", "/car"))
        assert repr(ctx) == "<HttpContext POST /car user=None>"


class TestAppContext:
    def test_get_service(self) -> None:
        class Clock:
            pass

        clock = Clock()
        app_ctx = AppContext(AppConfig(), services={Clock: clock})
        assert app_ctx.get_service(Clock) is clock

    def test_missing_service(self) -> None:
        with pytest.raises(LookupError, match="No service registered for dict"):
            AppContext(AppConfig()).get_service(dict)

    def test_frozen(self) -> None:
        app_ctx = AppContext(AppConfig())
        with pytest.raises(AttributeError):
            app_ctx.config = AppConfig()  # type: ignore[misc]
