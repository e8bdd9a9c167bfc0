"""Serve a wren App with pounce.

Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``), but
wren hands over a live ``App`` object, so ``pounce.Server`` is used
directly with the ASGI callable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wren.app import App


def run_server(
    app: App,
    host: str,
    port: int,
    *,
    workers: int = 1,
    reload: bool = False,
    reload_dirs: tuple[str, ...] = (),
    log_level: str = "info",
    log_format: str = "text",
) -> None:
    """Start a pounce server for *app* and block until it stops.

    Args:
        app: The frozen wren App (an ASGI callable).
        host: Bind host address.
        port: Bind port number.
        workers: Worker count. Forced to 1 when *reload* is on.
        reload: Restart on source changes (development).
        reload_dirs: Extra directories to watch alongside cwd.
        log_level: Server log level (debug, info, warning, error).
        log_format: ``"text"`` or ``"json"``.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1 if reload else workers,
        reload=reload,
        reload_dirs=reload_dirs,
        log_level=log_level,
        log_format=log_format,
    )
    server = Server(config, app)
    server.run()
