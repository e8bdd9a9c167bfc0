"""Access log middleware."""

import logging
import time

from wren.context import REQUEST_ID, START_TIME, Context
from wren.errors import HTTPError
from wren.http.response import Response
from wren.middleware.protocol import Next

access_logger = logging.getLogger("wren.access")


class RequestLogger:
    """Log one line per request once the chain has unwound.

    The line carries status, method, path, latency and the request id::

        200 GET /user/karen 0.4ms id=3f0c...

    An ``HTTPError`` raised below is logged with its own status, any
    other exception as 500, before it propagates to the dispatcher.
    """

    __slots__ = ("logger",)

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or access_logger

    async def __call__(self, ctx: Context, next: Next) -> Response:
        start = time.perf_counter()
        ctx.set(START_TIME, start)
        status = 500
        try:
            response = await next()
            status = response.status
            return response
        except HTTPError as exc:
            status = exc.status
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_id = ctx.get(REQUEST_ID, "-")
            self.logger.info(
                "%d %s %s %.1fms id=%s",
                status,
                ctx.method,
                ctx.path,
                elapsed_ms,
                request_id,
                extra={"request_id": request_id},
            )
