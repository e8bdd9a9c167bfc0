"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(ctx: Context, next: Next) -> Response | None

Built-in middleware:
    RequestID -- Tag every request and response with a v4 UUID
    RequestLogger -- One access log line per request
    Recovery -- Turn downstream exceptions into a logged 500
"""

from wren.middleware.logger import RequestLogger
from wren.middleware.protocol import Middleware, Next
from wren.middleware.recovery import Recovery
from wren.middleware.request_id import RequestID

__all__ = [
    "Middleware",
    "Next",
    "Recovery",
    "RequestID",
    "RequestLogger",
]
