"""Wren application class.

Mutable during setup (route registration, middleware, error handlers,
template filters). Frozen at runtime when ``app.run()``, ``__call__()``
or a ``TestClient`` first needs it.
"""

import inspect
import threading
from collections.abc import Callable, Iterable
from typing import Any

from kida import Environment

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.types import ErrorHandler, Handler, Hook
from wren.config import AppConfig
from wren.middleware.protocol import Middleware
from wren.routing.group import Group, RouteRegistrar
from wren.routing.route import Route
from wren.routing.router import Router
from wren.server.handler import Dispatcher
from wren.templating.integration import create_environment


class App(RouteRegistrar):
    """The wren application.

    Usage::

        app = App()
        app.use(RequestID())

        @app.get("/user/:name")
        def user(ctx):
            ctx.string(200, "Hello, %s", ctx.param("name"))

        v1 = app.group("/v1")
        v1.get("/posts", list_posts)

    Routes are checked for conflicts as they are registered, so a
    duplicate route fails at import time. Global middleware added with
    ``use()`` applies to every route, whenever the route was registered,
    and to requests that match no route.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even under free-threading where
        multiple ASGI workers could call ``__call__()`` concurrently on
        first request.
    """

    __slots__ = (
        "_custom_kida_env",
        "_dispatcher",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_middleware_list",
        "_no_route",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_filters",
        "_template_globals",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        kida_env: Environment | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._router = Router()
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._no_route: Handler | None = None
        self._template_filters: dict[str, Callable[..., Any]] = {}
        self._template_globals: dict[str, Any] = {}
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._custom_kida_env: Environment | None = kida_env

        # Compiled state, set during _freeze()
        self._kida_env: Environment | None = None
        self._dispatcher: Dispatcher | None = None

    @classmethod
    def default(cls, config: AppConfig | None = None, **kwargs: Any) -> App:
        """An app preloaded with ``RequestLogger`` and ``Recovery``."""
        from wren.middleware.logger import RequestLogger
        from wren.middleware.recovery import Recovery

        app = cls(config, **kwargs)
        app.use(RequestLogger(), Recovery())
        return app

    # -- Routes --

    def _add_route(
        self,
        path: str,
        handler: Handler,
        methods: Iterable[str],
        *,
        name: str | None = None,
        middleware: tuple[Middleware, ...] = (),
    ) -> None:
        self._check_not_frozen()
        route = Route(
            path=path,
            handler=handler,
            methods=frozenset(m.upper() for m in methods),
            middleware=middleware,
            name=name,
        )
        self._router.add(route)

    def group(self, prefix: str, *middleware: Middleware) -> Group:
        """Create a route group under *prefix* with its own middleware.

        Group middleware runs after the global middleware, in the order
        given.
        """
        return Group(self, prefix, middleware)

    def no_route(self, handler: Handler) -> Handler:
        """Replace the default 404 handler for unmatched paths.

        Global middleware still runs around it. Usable as a decorator.
        """
        self._check_not_frozen()
        self._no_route = handler
        return handler

    @property
    def routes(self) -> list[Route]:
        """Every registered route, for introspection."""
        return self._router.routes

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator.

        The handler may take ``(ctx, exc)``, ``(ctx)`` or nothing.
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def use(self, *middleware: Middleware) -> App:
        """Append middleware to the global chain."""
        self._check_not_frozen()
        self._middleware_list.extend(middleware)
        return self

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a single middleware to the global chain."""
        self.use(middleware)

    # -- Template integration --

    def template_filter(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template filter."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            filter_name = name or func.__name__
            self._template_filters[filter_name] = func
            return func

        return decorator

    def template_global(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template global."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            global_name = name or func.__name__
            self._template_globals[global_name] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Hook) -> Hook:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown,
        after the server stops accepting new requests.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Serving --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the app and serve it with pounce until interrupted.

        Debug mode runs a single worker with auto-reload; otherwise
        ``config.workers`` workers.
        """
        from wren.log import configure_logging
        from wren.server.serve import run_server

        configure_logging(self.config.log_level, self.config.log_format)
        self._ensure_frozen()

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            workers=self.config.workers,
            reload=self.config.debug,
            reload_dirs=self.config.reload_dirs,
            log_level=self.config.log_level,
            log_format=self.config.log_format,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly, then delegates HTTP scopes
        to the dispatcher.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()
        assert self._dispatcher is not None
        await self._dispatcher(scope, receive, send)

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before first HTTP request), then
        runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                except Exception as exc:
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    @property
    def dispatcher(self) -> Dispatcher:
        """The frozen dispatcher; freezes the app on first access."""
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking.

        Under free-threading (3.14t), multiple ASGI worker threads could
        call __call__() concurrently on first request. This pattern ensures
        exactly one thread performs compilation.
        """
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Seal the route table
        self._router.compile()

        # 2. Capture middleware as an immutable tuple
        middleware = tuple(self._middleware_list)

        # 3. Initialize kida environment (a missing template_dir fails here)
        self._kida_env = create_environment(
            self.config,
            self._template_filters,
            self._template_globals,
            env=self._custom_kida_env,
        )

        self._dispatcher = Dispatcher(
            router=self._router,
            middleware=middleware,
            error_handlers=self._error_handlers,
            no_route=self._no_route,
            kida_env=self._kida_env,
            config=self.config,
        )
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and filters before calling app.run()."
            )
            raise RuntimeError(msg)
