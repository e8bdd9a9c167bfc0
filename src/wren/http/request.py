"""Immutable HTTP request.

Frozen metadata with async body access. The request is honest about
what it is: received data that doesn't change. The only mutable part is
a private cache holding the body once read, the parsed form, and the
"client went away" flag.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import anyio

from wren._internal.asgi import Receive, Scope
from wren.errors import ClientDisconnected, ContentTooLarge, RequestTimeout
from wren.http.headers import Headers
from wren.http.values import Values

if TYPE_CHECKING:
    from wren.http.forms import FormData


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, query) is frozen at creation.
    Body is read asynchronously via ``.body()``, ``.text()``, ``.json()``
    and ``.form()``; each honours the read timeout and size limit the
    dispatcher was configured with.
    """

    method: str
    path: str
    headers: Headers
    query: Values
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None
    query_string: bytes = b""

    # Body limits, copied from AppConfig by the dispatcher
    read_timeout: float | None = None
    max_body_size: int | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: body bytes, parsed form and the disconnect flag.
    # Shared with copies made by ``with_path`` so a re-dispatched request
    # never reads the ASGI stream twice.
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Request path plus query string."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    @property
    def closed(self) -> bool:
        """True once the client has disconnected."""
        return self._cache.get("_closed", False)

    def mark_closed(self) -> None:
        """Record that the connection is gone; later writes become no-ops."""
        self._cache["_closed"] = True

    def with_path(self, path: str) -> Request:
        """Return a copy routed to *path*, sharing body and form caches."""
        return replace(self, path=path)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached — the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.

        Raises:
            RequestTimeout: The body did not arrive within ``read_timeout``.
            ContentTooLarge: The body exceeds ``max_body_size``.
            ClientDisconnected: The client closed the connection mid-body.
        """
        if "_body" in self._cache:
            return self._cache["_body"]

        limit = self.max_body_size
        declared = self.content_length
        if limit is not None and declared is not None and declared > limit:
            raise ContentTooLarge(f"Body of {declared} bytes exceeds limit of {limit}")

        chunks: list[bytes] = []
        received = 0
        try:
            with anyio.fail_after(self.read_timeout):
                async for chunk in self.stream():
                    received += len(chunk)
                    if limit is not None and received > limit:
                        raise ContentTooLarge(f"Body exceeds limit of {limit} bytes")
                    chunks.append(chunk)
        except TimeoutError:
            raise RequestTimeout(
                f"Body not received within {self.read_timeout} seconds"
            ) from None

        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks, straight from the ASGI server."""
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                self.mark_closed()
                raise ClientDisconnected()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    async def json(self) -> Any:
        """Parse the body as JSON."""
        raw = await self.body()
        return json_module.loads(raw)

    async def form(self) -> FormData:
        """Parse the body as form data (URL-encoded or multipart).

        Result is cached — the body is read and parsed once.

        A request without a form content type yields an empty
        ``FormData`` rather than an error, so optional form fields on a
        bare request simply fall back to their defaults.
        """
        if "_form" in self._cache:
            return self._cache["_form"]

        from wren.http.forms import FormData, parse_form_data

        ct = self.content_type or ""
        media_type = ct.lower().split(";")[0].strip()
        if media_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
            result = parse_form_data(await self.body(), ct)
        else:
            result = FormData()

        self._cache["_form"] = result
        return result

    # -- Factory --

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive,
        *,
        read_timeout: float | None = None,
        max_body_size: int | None = None,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        server = scope.get("server")
        client = scope.get("client")
        query_string = scope.get("query_string", b"")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=Values.parse(query_string),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            query_string=query_string,
            read_timeout=read_timeout,
            max_body_size=max_body_size,
            _receive=receive,
        )
