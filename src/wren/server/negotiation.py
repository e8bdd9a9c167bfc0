"""Content negotiation — maps handler return values to Response objects.

Applies only when the handler did not write to its context.
isinstance-based dispatch, no magic, fully predictable.
"""

from typing import Any

from kida import Environment

from wren.http.response import TEXT_HTML, Response
from wren.templating.integration import render_template
from wren.templating.returns import Template


def negotiate(value: Any, *, kida_env: Environment | None = None) -> Response:
    """Convert a handler's return value to a Response.

    Dispatch order:

    1. ``Response``            -> pass through
    2. ``Template``            -> render via kida, text/html
    3. ``None``                -> empty 200
    4. ``str``                 -> 200, text/plain
    5. ``bytes``               -> 200, application/octet-stream
    6. ``dict`` / ``list``     -> 200, application/json
    7. ``(value, int)``        -> negotiate value, override status
    8. ``(value, int, dict)``  -> negotiate value, override status + headers
    """
    match value:
        case Response():
            return value
        case Template():
            html = render_template(kida_env, value.name, value.context)
            return Response(body=html, status=value.status, content_type=TEXT_HTML)
        case None:
            return Response()
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response.json_body(200, value)
        case (inner, int() as status):
            return negotiate(inner, kida_env=kida_env).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner, kida_env=kida_env).with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return str, bytes, dict, list, Template, Response or "
                "write to the context."
            )
            raise TypeError(msg)
