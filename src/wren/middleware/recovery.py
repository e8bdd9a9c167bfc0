"""Recovery middleware.

Without it, an unhandled exception unwinds the whole chain and is
turned into a 500 by the dispatcher, so outer middleware never see a
response. ``Recovery`` catches it at its own position instead.
"""

import logging
import traceback

from wren.context import REQUEST_ID, Context
from wren.errors import HTTPError
from wren.http.response import Response
from wren.middleware.protocol import Next

logger = logging.getLogger("wren.server")


class Recovery:
    """Turn exceptions raised downstream into a logged 500 response.

    ``HTTPError`` is left alone; the dispatcher already maps it to its
    status.
    """

    __slots__ = ()

    async def __call__(self, ctx: Context, next: Next) -> Response:
        try:
            return await next()
        except HTTPError:
            raise
        except Exception:
            request_id = ctx.get(REQUEST_ID, "-")
            logger.exception(
                "500 %s %s id=%s (recovered)",
                ctx.method,
                ctx.path,
                request_id,
                extra={"request_id": request_id},
            )
            if ctx.config.debug:
                return Response(body=traceback.format_exc(), status=500)
            return Response(body="Internal Server Error", status=500)
