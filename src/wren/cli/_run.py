"""``wren run`` — serve an app with pounce."""

import argparse
import sys

from wren.cli._resolve import resolve_app


def run_app(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it; CLI flags override the app's config."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from wren.log import configure_logging
    from wren.server.serve import run_server

    config = app.config
    configure_logging(config.log_level, config.log_format)
    app._ensure_frozen()

    run_server(
        app,
        args.host or config.host,
        args.port or config.port,
        workers=args.workers if args.workers is not None else config.workers,
        reload=config.debug,
        reload_dirs=config.reload_dirs,
        log_level=config.log_level,
        log_format=config.log_format,
    )
