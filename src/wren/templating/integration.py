"""Kida environment setup and app binding.

Creates a kida Environment from wren's AppConfig and binds
user-registered filters and globals. The environment is created
once during ``App._freeze()`` and handed to the dispatcher; it is
never rebuilt or mutated while serving.
"""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from kida import Environment, FileSystemLoader

from wren.config import AppConfig
from wren.errors import ConfigurationError


def create_environment(
    config: AppConfig,
    filters: Mapping[str, Callable[..., Any]],
    globals_: Mapping[str, Any],
    *,
    env: Environment | None = None,
) -> Environment | None:
    """Build (or finish) the template environment for an app.

    - ``env`` given: register filters and globals on it and return it.
    - ``config.template_dir`` set: load templates from that directory.
      A missing directory is a ``ConfigurationError``, so a typo aborts
      startup instead of failing on the first render.
    - Neither: return ``None``; rendering then raises
      ``ConfigurationError`` at request time.
    """
    if env is None:
        if config.template_dir is None:
            return None
        template_dir = Path(config.template_dir)
        if not template_dir.is_dir():
            msg = f"Template directory {str(template_dir)!r} does not exist"
            raise ConfigurationError(msg)
        env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=config.autoescape,
            auto_reload=config.debug,
        )

    if filters:
        env.update_filters(dict(filters))
    for name, value in globals_.items():
        env.add_global(name, value)
    return env


def render_template(
    env: Environment | None,
    name: str,
    context: Mapping[str, Any],
) -> str:
    """Render template *name* with *context* to a string."""
    if env is None:
        msg = (
            f"Cannot render {name!r}: no template environment. "
            "Set AppConfig.template_dir or pass App(kida_env=...)."
        )
        raise ConfigurationError(msg)
    template = env.get_template(name)
    return template.render(dict(context))
