"""Request id middleware.

Tags every request with a random v4 UUID, stores it under
``REQUEST_ID`` and stages it as a response header. Staged headers
replace same-named headers on whatever response goes out, so the id
header appears exactly once, also on 404s, error pages and re-routed
requests.
"""

import uuid

from wren.context import REQUEST_ID, Context
from wren.http.response import Response
from wren.middleware.protocol import Next


class RequestID:
    """Assign a correlation id to every request.

    Usage::

        app.use(RequestID())

    Install it first so every other middleware (and the 500 logger)
    can see the id.

    Args:
        header: Response header name. Defaults to
            ``AppConfig.request_id_header``.
        trust_incoming: Reuse a non-empty id sent by the client in the
            same header instead of generating one.
    """

    __slots__ = ("header", "trust_incoming")

    def __init__(self, header: str | None = None, *, trust_incoming: bool = False) -> None:
        self.header = header
        self.trust_incoming = trust_incoming

    async def __call__(self, ctx: Context, next: Next) -> Response:
        header = self.header or ctx.config.request_id_header
        request_id = ""
        if self.trust_incoming:
            request_id = ctx.request.headers.get(header, "") or ""
        if not request_id:
            request_id = str(uuid.uuid4())
        ctx.set(REQUEST_ID, request_id)
        ctx.header(header, request_id)
        return await next()
