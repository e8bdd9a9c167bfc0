"""Wren exception hierarchy.

Shared across Router, App, Dispatcher, Context and middleware so every
module raises and catches the same types.

Two families:

- ``HTTPError`` subclasses map directly to a response status and are
  converted to error responses by the dispatcher.
- Everything else is either a startup failure (``ConfigurationError``)
  or a programming error surfaced as a 500 at request time.
"""

from dataclasses import dataclass


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when app configuration is invalid.

    Typically raised during ``App._freeze()`` at startup, which aborts
    the server before it accepts connections.
    """


class RouteConflict(ConfigurationError):
    """A route registration collides with an existing one.

    Either the same (method, pattern) pair was registered twice, or two
    patterns would bind different parameter names at the same position.
    """


class KeyNotFound(WrenError, LookupError):
    """A context value, path parameter or form file was not present.

    A recoverable lookup failure: callers that expect the value to be
    optional should pass a default or catch this.
    """


class AlreadyWritten(WrenError, RuntimeError):
    """A second response was written to the same context."""


class DoubleNext(WrenError, RuntimeError):
    """A middleware awaited ``next()`` more than once."""


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, request body readers, middleware, or handlers.
    The dispatcher catches these and dispatches to the matching
    ``@app.error()`` handler or a plain-text default.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — route exists but not for this HTTP method.

    Only surfaced when ``AppConfig.handle_method_not_allowed`` is set;
    otherwise the dispatcher reports a plain 404.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail or "Method Not Allowed",
            headers=(("Allow", allow_value),),
        )


class RequestTimeout(HTTPError):  # noqa: N818
    """408 — the request body was not received within the read timeout."""

    def __init__(self, detail: str = "Request Timeout") -> None:
        super().__init__(status=408, detail=detail)


class ContentTooLarge(HTTPError):  # noqa: N818
    """413 — the request body exceeds ``AppConfig.max_content_length``."""

    def __init__(self, detail: str = "Content Too Large") -> None:
        super().__init__(status=413, detail=detail)


class ClientDisconnected(HTTPError):  # noqa: N818
    """499 — the client closed the connection before the body arrived."""

    def __init__(self, detail: str = "Client Closed Request") -> None:
        super().__init__(status=499, detail=detail)
