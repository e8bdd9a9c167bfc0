"""wren — request routing and an onion middleware chain on ASGI.

Basic usage::

    from wren import App, RequestID

    app = App.default()
    app.use(RequestID())

    @app.get("/user/:name")
    def user(ctx):
        ctx.string(200, "Hello, %s", ctx.param("name"))

    app.run()
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "REQUEST_ID",
    "START_TIME",
    "AlreadyWritten",
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "DoubleNext",
    "Group",
    "HTTPError",
    "Key",
    "KeyNotFound",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "Recovery",
    "Request",
    "RequestID",
    "RequestLogger",
    "RequestTimeout",
    "Response",
    "RouteConflict",
    "Template",
    "WrenError",
    "get_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name == "Group":
        from wren.routing.group import Group

        return Group

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name == "Response":
        from wren.http.response import Response

        return Response

    if name == "Template":
        from wren.templating.returns import Template

        return Template

    if name in ("Middleware", "Next", "Recovery", "RequestID", "RequestLogger"):
        from wren import middleware as _mw

        return getattr(_mw, name)

    if name in ("Context", "Key", "REQUEST_ID", "START_TIME", "get_context"):
        from wren import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "AlreadyWritten",
        "ConfigurationError",
        "DoubleNext",
        "HTTPError",
        "KeyNotFound",
        "MethodNotAllowed",
        "NotFound",
        "RequestTimeout",
        "RouteConflict",
        "WrenError",
    ):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
