"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups. It is handed to the dispatcher when the app
freezes, so every request sees the same process-scoped settings.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, template_dir="templates")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 9999
    debug: bool = False
    workers: int = 1

    # Reload (development mode, requires debug=True)
    reload_dirs: tuple[str, ...] = ()

    # Templates (None = no template environment unless App(kida_env=...) is given)
    template_dir: str | Path | None = None
    autoescape: bool = True

    # Request tracing
    request_id_header: str = "X-Request-Id"

    # Limits
    body_read_timeout: float | None = 30.0  # seconds, None = wait forever
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    # Routing
    handle_method_not_allowed: bool = False  # 405 instead of 404 for a known path

    # Logging
    log_level: str = "info"
    log_format: str = "text"  # "text" or "json"
