"""Per-request context.

A ``Context`` is created by the dispatcher for every request and handed
to each middleware and the handler. It owns:

- the matched path parameters and pattern,
- query and form access (delegating to the immutable ``Request``),
- a typed key/value store for middleware -> handler communication,
- the response writer (exactly one response per request),
- headers staged for the final response.

It is never shared across requests. ``current_context`` exposes it to
code that has no ``ctx`` parameter.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading (3.14t). A context is only touched by the task that
    serves its request, so no locks are needed.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, cast

from wren.config import AppConfig
from wren.errors import AlreadyWritten, KeyNotFound
from wren.http.response import TEXT_HTML, Response
from wren.templating.integration import render_template

if TYPE_CHECKING:
    from kida import Environment

    from wren.http.forms import FormData, UploadFile
    from wren.http.request import Request

logger = logging.getLogger("wren.server")

_MISSING: Any = object()


class Key[T]:
    """A typed token for the context store.

    Two keys are the same key only if they are the same object, so
    libraries can define private keys without name clashes::

        USER = Key[User]("user")

        ctx.set(USER, user)
        user = ctx.get(USER)      # typed as User
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Key({self.name!r})"


REQUEST_ID: Key[str] = Key("request_id")
"""The request's correlation id, set by ``RequestID``."""

START_TIME: Key[float] = Key("start_time")
"""``time.perf_counter()`` at the start of the request, set by ``RequestLogger``."""


type Reroute = Callable[[Request], Awaitable[Response]]


class Context:
    """The per-request state every middleware and handler receives."""

    __slots__ = (
        "_full_path",
        "_kida_env",
        "_params",
        "_reroute",
        "_response",
        "_staged",
        "_store",
        "config",
        "request",
    )

    def __init__(
        self,
        request: Request,
        *,
        config: AppConfig | None = None,
        kida_env: Environment | None = None,
        reroute: Reroute | None = None,
    ) -> None:
        self.request = request
        self.config = config or AppConfig()
        self._params: dict[str, str] = {}
        self._full_path = ""
        self._store: dict[Key[Any], Any] = {}
        self._response: Response | None = None
        self._staged: dict[str, tuple[str, str]] = {}
        self._kida_env = kida_env
        self._reroute = reroute

    def _bind(self, params: Mapping[str, str], full_path: str) -> None:
        self._params = dict(params)
        self._full_path = full_path

    # -- Request shortcuts --

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def full_path(self) -> str:
        """The matched route pattern, e.g. ``/user/:name``; ``""`` on a miss."""
        return self._full_path

    @property
    def closed(self) -> bool:
        """True once the client has disconnected."""
        return self.request.closed

    # -- Typed store --

    def set[T](self, key: Key[T], value: T) -> None:
        self._store[key] = value

    def get[T](self, key: Key[T], default: T = _MISSING) -> T:
        """Return the value stored under *key*.

        Raises ``KeyNotFound`` when the key was never set and no
        *default* is given.
        """
        try:
            return cast("T", self._store[key])
        except KeyError:
            if default is _MISSING:
                msg = f"No value stored for {key!r}"
                raise KeyNotFound(msg) from None
            return default

    def __contains__(self, key: object) -> bool:
        return key in self._store

    # -- Path parameters --

    def param(self, name: str) -> str:
        """Return path parameter *name*; ``KeyNotFound`` if the route has none."""
        try:
            return self._params[name]
        except KeyError:
            msg = f"Route {self._full_path or self.path!r} has no parameter {name!r}"
            raise KeyNotFound(msg) from None

    @property
    def params(self) -> dict[str, str]:
        return dict(self._params)

    # -- Query string --

    def query(self, name: str, default: str = "") -> str:
        """First query value for *name*, or *default* when the key is absent.

        A key that is present but empty (``?name=``) yields ``""``.
        """
        value = self.request.query.get(name)
        return default if value is None else value

    def query_list(self, name: str) -> list[str]:
        return self.request.query.get_list(name)

    def query_map(self, prefix: str) -> dict[str, str]:
        """Collect ``prefix[k]=v`` query pairs into ``{k: v}``."""
        return self.request.query.get_map(prefix)

    # -- Form body --

    async def post_form(self, name: str, default: str = "") -> str:
        """First form value for *name*, or *default* when the field is absent."""
        form = await self.request.form()
        value = form.get(name)
        return default if value is None else value

    async def post_form_list(self, name: str) -> list[str]:
        form = await self.request.form()
        return form.get_list(name)

    async def post_form_map(self, prefix: str) -> dict[str, str]:
        """Collect ``prefix[k]=v`` form fields into ``{k: v}``."""
        form = await self.request.form()
        return form.get_map(prefix)

    async def form_file(self, name: str) -> UploadFile:
        """The first file uploaded under field *name*."""
        form = await self.request.form()
        upload = form.file(name)
        if upload is None:
            msg = f"No file uploaded under {name!r}"
            raise KeyNotFound(msg)
        return upload

    async def multipart_form(self) -> FormData:
        return await self.request.form()

    # -- Response writing --

    @property
    def written(self) -> bool:
        return self._response is not None

    @property
    def response(self) -> Response | None:
        """The response written so far, if any."""
        return self._response

    def write(self, response: Response) -> None:
        """Commit *response* as this request's response.

        Raises:
            AlreadyWritten: A response was already committed.
        """
        if self._response is not None:
            msg = (
                f"{self.method} {self.path}: response already written "
                f"(status {self._response.status})"
            )
            raise AlreadyWritten(msg)
        if self.closed:
            logger.debug(
                "Client gone, dropping %d response for %s %s",
                response.status,
                self.method,
                self.path,
            )
            return
        self._response = response

    def string(self, status: int, fmt: str, *args: Any) -> None:
        """Write a text/plain response; *fmt* is %-formatted with *args*."""
        body = fmt % args if args else fmt
        self.write(Response.text_body(status, body))

    def json(self, status: int, obj: Any) -> None:
        self.write(Response.json_body(status, obj))

    def html(self, status: int, name: str, data: Mapping[str, Any] | None = None) -> None:
        """Render template *name* with *data* and write it as text/html."""
        body = render_template(self._kida_env, name, data or {})
        self.write(Response(body=body, status=status, content_type=TEXT_HTML))

    def redirect(self, status: int, location: str) -> None:
        self.write(Response.redirect(status, location))

    def data(self, status: int, content_type: str, body: bytes | str) -> None:
        self.write(Response(body=body, status=status, content_type=content_type))

    def abort_with_status(self, status: int) -> None:
        """Write an empty response with *status*; the chain stops here."""
        self.write(Response(status=status))

    def header(self, name: str, value: str) -> None:
        """Stage a header for the final response.

        A staged header replaces every same-named header of whatever
        response is finally sent, error responses included. Staging the
        same name twice keeps the last value.
        """
        self._staged[name.lower()] = (name, value)

    async def reroute(self, path: str) -> None:
        """Dispatch this request again under *path* and write the result.

        The request runs through the whole pipeline (global middleware
        included) as if it had arrived for *path*.
        """
        if self._reroute is None:
            msg = "This context cannot re-dispatch requests"
            raise RuntimeError(msg)
        response = await self._reroute(self.request.with_path(path))
        self.write(response)

    def finalize(self, response: Response) -> Response:
        """Apply staged headers to *response*."""
        for name, value in self._staged.values():
            response = response.without_header(name).with_header(name, value)
        return response

    def __repr__(self) -> str:
        return f"<Context {self.method} {self.path}>"


current_context: ContextVar[Context] = ContextVar("wren_context")
"""The context of the request being served. Set by the dispatcher."""


def get_context() -> Context:
    """Return the current request's context.

    Raises ``LookupError`` if called outside a request.
    """
    return current_context.get()
