"""Tests for okapi.pipeline — handler chains."""

import pytest

from okapi.handlers import text
from okapi.http.response import Response
from okapi.pipeline import Pipeline, chain, end_of_chain


def _recorder(name: str, log: list[str]):
    async def step(ctx, next):
        log.append(name)
        return await next(ctx)

    step.label = name
    return step


class TestChain:
    async def test_runs_left_to_right(self, ctx) -> None:
        log: list[str] = []
        pipeline = chain(_recorder("a", log), _recorder("b", log), _recorder("c", log))
        await pipeline(ctx)
        assert log == ["a", "b", "c"]

    async def test_all_delegating_yields_empty_200(self, ctx) -> None:
        pipeline = chain(_recorder("a", []), _recorder("b", []))
        response = await pipeline(ctx)
        assert response.status == 200
        assert response.body == ""

    async def test_empty_pipeline_calls_final(self, ctx) -> None:
        response = await Pipeline()(ctx)
        assert response == Response()

    async def test_short_circuit_stops_chain(self, ctx) -> None:
        log: list[str] = []
        pipeline = chain(_recorder("a", log), text("stop"), _recorder("never", log))
        response = await pipeline(ctx)
        assert response.text == "stop"
        assert log == ["a"]

    async def test_context_mutation_visible_downstream(self, ctx) -> None:
        async def mark(c, next):
            c.items["seen"] = "yes"
            return await next(c)

        async def read(c, next):
            return Response(c.items["seen"])

        response = await chain(mark, read)(ctx)
        assert response.text == "yes"

    async def test_handler_can_transform_downstream_response(self, ctx) -> None:
        async def shout(c, next):
            response = await next(c)
            return response.with_body(response.text.upper())

        response = await chain(shout, text("quiet"))(ctx)
        assert response.text == "QUIET"

    async def test_custom_final_continuation(self, ctx) -> None:
        async def final(c):
            return Response("final")

        response = await chain(_recorder("a", []))(ctx, final)
        assert response.text == "final"

    async def test_exceptions_propagate(self, ctx) -> None:
        async def boom(c, next):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await chain(boom)(ctx)


class TestComposition:
    def test_nested_pipelines_flatten(self) -> None:
        inner = chain(_recorder("a", []), _recorder("b", []))
        outer = chain(inner, _recorder("c", []))
        assert len(outer) == 3
        assert outer.describe() == ["a", "b", "c"]

    def test_then_appends(self) -> None:
        base = chain(_recorder("a", []))
        longer = base.then(_recorder("b", []))
        assert len(base) == 1
        assert len(longer) == 2

    def test_pipeline_is_immutable(self) -> None:
        pipeline = chain(_recorder("a", []))
        with pytest.raises(AttributeError):
            pipeline.handlers = ()  # type: ignore[misc]

    def test_rejects_non_callable(self) -> None:
        with pytest.raises(TypeError, match="callable"):
            chain("not a handler")  # type: ignore[arg-type]

    def test_describe_falls_back_to_qualname(self) -> None:
        async def plain(ctx, next):
            return await next(ctx)

        assert chain(plain).describe() == [plain.__qualname__]


class TestEndOfChain:
    async def test_empty_ok(self, ctx) -> None:
        response = await end_of_chain(ctx)
        assert response.status == 200
        assert response.body == ""
