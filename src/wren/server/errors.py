"""Error handling pipeline for wren requests.

Maps HTTPError exceptions and unexpected failures to appropriate
Response objects, using registered error handlers or sensible defaults.
"""

import inspect
import logging
import traceback
from collections.abc import Callable
from typing import Any

from kida import Environment

from wren.context import REQUEST_ID, Context
from wren.errors import HTTPError
from wren.http.response import Response
from wren.server.negotiation import negotiate

logger = logging.getLogger("wren.server")


async def call_error_handler(
    handler: Callable[..., Any],
    ctx: Context,
    exc: Exception,
    kida_env: Environment | None,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (ctx), or two (ctx, exc) args.
    Supports both sync and async error handlers. A handler that writes
    to the context instead of returning gets its written response used.
    """
    sig = inspect.signature(handler)
    params = list(sig.parameters.values())

    if len(params) >= 2:
        result = handler(ctx, exc)
    elif len(params) == 1:
        result = handler(ctx)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result

    if result is None and ctx.response is not None:
        return ctx.response
    return negotiate(result, kida_env=kida_env)


def _lookup(
    error_handlers: dict[int | type, Callable[..., Any]],
    exc: Exception,
) -> Callable[..., Any] | None:
    for cls in type(exc).__mro__:
        handler = error_handlers.get(cls)
        if handler is not None:
            return handler
    return None


async def handle_http_error(
    exc: HTTPError,
    ctx: Context,
    error_handlers: dict[int | type, Callable[..., Any]],
    kida_env: Environment | None,
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers.

    A custom handler that raises turns the request into a logged 500.
    """
    logger.debug("%d %s %s: %s", exc.status, ctx.method, ctx.path, exc.detail)

    # Exception type (most specific first), then status code
    handler = _lookup(error_handlers, exc) or error_handlers.get(exc.status)
    if handler is not None:
        try:
            response = await call_error_handler(handler, ctx, exc, kida_env)
        except Exception as handler_exc:
            return await handle_internal_error(
                handler_exc, ctx, error_handlers, kida_env, debug
            )
        # Keep the error status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"

    resp = Response(body=detail).with_status(exc.status)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


async def handle_internal_error(
    exc: Exception,
    ctx: Context,
    error_handlers: dict[int | type, Callable[..., Any]],
    kida_env: Environment | None,
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors.

    Always logged with the request id. A failing custom handler falls
    back to the plain default instead of raising out of the dispatcher.
    """
    request_id = ctx.get(REQUEST_ID, "-")
    logger.exception(
        "500 %s %s id=%s",
        ctx.method,
        ctx.path,
        request_id,
        extra={"request_id": request_id},
    )

    handler = _lookup(error_handlers, exc) or error_handlers.get(500)
    if handler is not None:
        try:
            return await call_error_handler(handler, ctx, exc, kida_env)
        except Exception:
            logger.exception("Error handler %r failed", handler)

    if debug:
        body = "".join(traceback.format_exception(exc))
        return Response(body=body, status=500)
    return Response(body="Internal Server Error", status=500)
