"""Route registration surface shared by ``App`` and ``Group``.

A ``Group`` is a path prefix plus a middleware list. Nothing about it
survives to request time: every route registered through a group is
resolved on the spot into a fully-qualified ``Route`` carrying the
prefixed pattern and a snapshot of the group's middleware.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Protocol

from wren._internal.types import Handler

if TYPE_CHECKING:
    from wren.middleware.protocol import Middleware

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


def join_paths(prefix: str, path: str) -> str:
    """Join a group prefix and a route pattern with exactly one slash."""
    parts = [p for p in (prefix.strip("/"), path.strip("/")) if p]
    return "/" + "/".join(parts)


class _RouteSink(Protocol):
    def _add_route(
        self,
        path: str,
        handler: Handler,
        methods: Iterable[str],
        *,
        name: str | None = None,
        middleware: tuple[Middleware, ...] = (),
    ) -> None: ...

    def _check_not_frozen(self) -> None: ...


class RouteRegistrar:
    """Method-named registration helpers.

    Each helper works both as a direct call and as a decorator::

        app.get("/", index)

        @app.get("/user/:name")
        def user(ctx): ...
    """

    __slots__ = ()

    def _register(
        self,
        path: str,
        handler: Handler | None,
        methods: Iterable[str],
        name: str | None,
    ) -> Any:
        methods = tuple(methods)

        def decorator(func: Handler) -> Handler:
            self._add_route(path, func, methods, name=name)
            return func

        if handler is None:
            return decorator
        return decorator(handler)

    def _add_route(
        self,
        path: str,
        handler: Handler,
        methods: Iterable[str],
        *,
        name: str | None = None,
        middleware: tuple[Middleware, ...] = (),
    ) -> None:
        raise NotImplementedError

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a handler for *methods* (default ``["GET"]``) via decorator."""
        return self._register(path, None, methods or ["GET"], name)

    def handle(self, method: str, path: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        """Register a handler for a single, arbitrary HTTP method."""
        return self._register(path, handler, [method.upper()], name)

    def get(self, path: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._register(path, handler, ["GET"], name)

    def post(self, path: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._register(path, handler, ["POST"], name)

    def put(self, path: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._register(path, handler, ["PUT"], name)

    def patch(self, path: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._register(path, handler, ["PATCH"], name)

    def delete(self, path: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._register(path, handler, ["DELETE"], name)

    def head(self, path: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._register(path, handler, ["HEAD"], name)

    def options(self, path: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._register(path, handler, ["OPTIONS"], name)

    def any(self, path: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        """Register a handler for every standard HTTP method."""
        return self._register(path, handler, HTTP_METHODS, name)


class Group(RouteRegistrar):
    """A path-prefix scope with inherited middleware.

    Usage::

        v1 = app.group("/v1", auth)
        v1.get("/posts", list_posts)      # GET /v1/posts, runs auth first

        admin = v1.group("/admin", audit)
        admin.get("/stats", stats)        # GET /v1/admin/stats, auth then audit

    ``use()`` only affects routes registered after it.
    """

    __slots__ = ("_middleware", "_owner", "prefix")

    def __init__(
        self,
        owner: _RouteSink,
        prefix: str,
        middleware: Iterable[Middleware] = (),
    ) -> None:
        self._owner = owner
        self.prefix = join_paths(prefix, "")
        self._middleware: list[Middleware] = list(middleware)

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        """The middleware routes registered now would inherit."""
        return tuple(self._middleware)

    def use(self, *middleware: Middleware) -> Group:
        """Append middleware for routes registered in this group from now on."""
        self._owner._check_not_frozen()
        self._middleware.extend(middleware)
        return self

    def group(self, prefix: str, *middleware: Middleware) -> Group:
        """Create a nested group; it inherits this group's prefix and middleware."""
        return Group(self._owner, join_paths(self.prefix, prefix), (*self._middleware, *middleware))

    def _add_route(
        self,
        path: str,
        handler: Handler,
        methods: Iterable[str],
        *,
        name: str | None = None,
        middleware: tuple[Middleware, ...] = (),
    ) -> None:
        self._owner._add_route(
            join_paths(self.prefix, path),
            handler,
            methods,
            name=name,
            middleware=(*self._middleware, *middleware),
        )

    def __repr__(self) -> str:
        return f"Group({self.prefix!r}, middleware={len(self._middleware)})"
