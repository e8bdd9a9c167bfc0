"""Request dispatcher — the only component that touches raw ASGI directly.

Converts scope dicts to typed Request objects, matches the route, builds
the per-request Context, runs the middleware chain around the handler
and sends the Response back through ASGI send().

Everything the dispatcher holds is frozen at construction (router,
middleware tuple, error handlers, template environment, config) and
shared read-only by concurrent requests.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from kida import Environment

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.invoke import invoke
from wren.config import AppConfig
from wren.context import Context, current_context
from wren.errors import AlreadyWritten, DoubleNext, HTTPError, MethodNotAllowed, NotFound
from wren.http.request import Request
from wren.http.response import Response
from wren.routing.router import Router
from wren.server.errors import handle_http_error, handle_internal_error
from wren.server.negotiation import negotiate
from wren.server.sender import send_response

logger = logging.getLogger("wren.server")

type Terminal = Callable[[], Awaitable[Response]]


def _name(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or type(obj).__qualname__


class Dispatcher:
    """Dispatch requests through the frozen route table and middleware chain.

    Usage::

        dispatcher = Dispatcher(router=router, middleware=(RequestID(),), config=config)
        response = await dispatcher.handle(request)     # design-level entry
        await dispatcher(scope, receive, send)          # ASGI entry
    """

    __slots__ = (
        "_config",
        "_error_handlers",
        "_kida_env",
        "_middleware",
        "_no_route",
        "_router",
    )

    def __init__(
        self,
        *,
        router: Router,
        middleware: tuple[Callable[..., Any], ...] = (),
        error_handlers: dict[int | type, Callable[..., Any]] | None = None,
        no_route: Callable[..., Any] | None = None,
        kida_env: Environment | None = None,
        config: AppConfig | None = None,
    ) -> None:
        self._router = router
        self._middleware = middleware
        self._error_handlers = dict(error_handlers or {})
        self._no_route = no_route
        self._kida_env = kida_env
        self._config = config or AppConfig()

    # -- ASGI boundary --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        request = Request.from_asgi(
            scope,
            receive,
            read_timeout=self._config.body_read_timeout,
            max_body_size=self._config.max_content_length,
        )
        response = await self.handle(request)

        if request.closed:
            logger.debug(
                "Client gone, not sending %d response for %s %s",
                response.status,
                request.method,
                request.path,
            )
            return
        await send_response(response, send, method=request.method)

    # -- Dispatch --

    async def handle(self, request: Request) -> Response:
        """Serve *request* and return the response to send.

        Never raises: HTTP errors become their status, anything else a
        logged 500.
        """
        ctx = Context(
            request,
            config=self._config,
            kida_env=self._kida_env,
            reroute=self.handle,
        )
        token = current_context.set(ctx)
        try:
            chain, terminal = self._resolve(ctx)
            response = await self._run_chain(ctx, chain, terminal)
        except HTTPError as exc:
            response = await handle_http_error(
                exc, ctx, self._error_handlers, self._kida_env, self._config.debug
            )
        except Exception as exc:
            response = await handle_internal_error(
                exc, ctx, self._error_handlers, self._kida_env, self._config.debug
            )
        finally:
            current_context.reset(token)
        return ctx.finalize(response)

    def _resolve(self, ctx: Context) -> tuple[tuple[Callable[..., Any], ...], Terminal]:
        """Match the route; return the middleware chain and its terminal step.

        A miss still runs the global middleware, with a terminal that
        produces the 404 (or 405).
        """
        request = ctx.request
        try:
            match = self._router.match(request.method, request.path)
        except MethodNotAllowed as exc:
            miss: HTTPError = exc if self._config.handle_method_not_allowed else NotFound()
        except NotFound as exc:
            miss = exc
        else:
            ctx._bind(match.path_params, match.route.path)
            route = match.route

            async def run_route() -> Response:
                return await self._run_handler(ctx, route.handler)

            return (*self._middleware, *route.middleware), run_route

        async def run_miss() -> Response:
            if self._no_route is not None and miss.status == 404:
                return await self._run_handler(ctx, self._no_route, default_status=404)
            return await handle_http_error(
                miss, ctx, self._error_handlers, self._kida_env, self._config.debug
            )

        return self._middleware, run_miss

    async def _run_handler(
        self,
        ctx: Context,
        handler: Callable[..., Any],
        *,
        default_status: int = 200,
    ) -> Response:
        """Call *handler* and turn its outcome into the response.

        ``HTTPError`` is converted here, inside the chain, so that
        middleware observe the error response like any other.
        """
        try:
            result = await invoke(handler, ctx)
            if ctx.response is not None:
                if result is not None and result is not ctx.response:
                    msg = (
                        f"{_name(handler)} wrote a response and also returned "
                        f"{type(result).__name__}"
                    )
                    raise AlreadyWritten(msg)
                return ctx.response
            response = negotiate(result, kida_env=self._kida_env)
            if result is None and default_status != 200:
                response = response.with_status(default_status)
        except HTTPError as exc:
            return await handle_http_error(
                exc, ctx, self._error_handlers, self._kida_env, self._config.debug
            )
        ctx.write(response)
        return response

    async def _run_chain(
        self,
        ctx: Context,
        chain: tuple[Callable[..., Any], ...],
        terminal: Terminal,
    ) -> Response:
        """Run *chain* around *terminal*, first middleware outermost."""

        async def step(index: int) -> Response:
            if index == len(chain):
                return await terminal()

            mw = chain[index]
            called = False
            downstream: Response | None = None

            async def next_() -> Response:
                nonlocal called, downstream
                if called:
                    msg = f"Middleware {_name(mw)} awaited next() more than once"
                    raise DoubleNext(msg)
                called = True
                downstream = await step(index + 1)
                return downstream

            result = await invoke(mw, ctx, next_)
            if result is not None:
                if not isinstance(result, Response):
                    msg = (
                        f"Middleware {_name(mw)} returned {type(result).__name__}; "
                        "expected Response or None"
                    )
                    raise TypeError(msg)
                return result
            if called:
                if downstream is not None:
                    return downstream
                # next() raised and the middleware swallowed it
                return ctx.response if ctx.response is not None else Response(status=500)
            if ctx.response is not None:
                return ctx.response
            return await next_()

        return await step(0)
