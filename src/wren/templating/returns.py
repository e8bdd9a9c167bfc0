"""Template return type.

A frozen value a handler can return instead of calling ``ctx.html``.
The negotiation layer renders it through the app's kida environment.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Template:
    """Render a full kida template.

    Usage::

        return Template("arr.tmpl", title="Guest", students=students)
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)
    status: int = 200

    def __init__(self, name: str, /, *, status: int = 200, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)
        object.__setattr__(self, "status", status)
