"""Handler chains.

A handler is any async callable::

    async def handler(ctx: HttpContext, next: Next) -> Response: ...

It may return a response of its own (short-circuit), return ``await
next(ctx)`` (delegate), or mutate ``ctx`` first and then delegate.  A
``Pipeline`` is an immutable, ordered tuple of handlers and is itself a
handler, so chains nest.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from okapi.http.response import Response

if TYPE_CHECKING:
    from okapi.context import HttpContext

type Next = Callable[[HttpContext], Awaitable[Response]]


class Handler(Protocol):
    """Protocol for chain steps. Functions and callable objects both fit::

        async def no_store(ctx, next):
            response = await next(ctx)
            return response.with_header("Cache-Control", "no-store")

        class RequireHeader:
            def __init__(self, name): self.name = name
            async def __call__(self, ctx, next): ...
    """

    async def __call__(self, ctx: HttpContext, next: Next) -> Response: ...


async def end_of_chain(ctx: HttpContext) -> Response:  # noqa: ARG001
    """Continuation after the last handler: an empty ``200``."""
    return Response()


@dataclass(frozen=True, slots=True)
class Pipeline:
    """An immutable, ordered handler chain."""

    handlers: tuple[Handler, ...] = ()

    async def __call__(self, ctx: HttpContext, next: Next = end_of_chain) -> Response:
        return await self._run(0, ctx, next)

    async def _run(self, index: int, ctx: HttpContext, final: Next) -> Response:
        if index == len(self.handlers):
            return await final(ctx)

        async def proceed(c: HttpContext) -> Response:
            return await self._run(index + 1, c, final)

        return await self.handlers[index](ctx, proceed)

    def then(self, *handlers: Handler) -> Pipeline:
        """Return a longer pipeline with *handlers* appended."""
        return chain(self, *handlers)

    def __iter__(self) -> Iterator[Handler]:
        return iter(self.handlers)

    def __len__(self) -> int:
        return len(self.handlers)

    def describe(self) -> list[str]:
        """Readable names of the steps, for route listings and debugging."""
        return [_describe(h) for h in self.handlers]


def chain(*handlers: Handler) -> Pipeline:
    """Compose handlers left to right, flattening nested pipelines."""
    flat: list[Handler] = []
    for handler in handlers:
        if isinstance(handler, Pipeline):
            flat.extend(handler.handlers)
        elif callable(handler):
            flat.append(handler)
        else:
            msg = f"Handler must be callable, got {type(handler).__name__}"
            raise TypeError(msg)
    return Pipeline(tuple(flat))


def _describe(handler: Handler) -> str:
    label = getattr(handler, "label", None)
    if isinstance(label, str):
        return label
    return getattr(handler, "__qualname__", None) or type(handler).__name__
