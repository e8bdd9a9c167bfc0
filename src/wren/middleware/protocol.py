"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(ctx: Context, next: Next) -> Response | None: ...

No base class required. The framework checks the shape, not the lineage.

What a middleware returns decides what happens next:

- a ``Response``: respond with it. Before ``next()`` this short-circuits
  the rest of the chain; after ``next()`` it replaces the downstream
  response (typically a ``.with_header()`` transformation of it).
- ``None`` after ``await next()``: the downstream response stands.
- ``None`` without calling ``next()``: if the middleware wrote to the
  context (``ctx.abort_with_status(401)``) the chain stops there,
  otherwise the chain simply continues.

``next`` may be awaited at most once; a second call raises ``DoubleNext``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

from wren.http.response import Response

if TYPE_CHECKING:
    from wren.context import Context

# The rest of the chain, handler included
type Next = Callable[[], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for wren middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(ctx: Context, next: Next) -> Response:
            start = time.monotonic()
            response = await next()
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RequireToken:
            async def __call__(self, ctx: Context, next: Next) -> Response | None:
                if not ctx.request.headers.get("authorization"):
                    ctx.abort_with_status(401)
                    return None
                return await next()
    """

    async def __call__(self, ctx: Context, next: Next) -> Response | None: ...
