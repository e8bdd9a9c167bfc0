"""Shared type aliases used across wren modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler — receives the request Context, may write to it or return a value
Handler: TypeAlias = Callable[..., Any]

# Error handler — receives (ctx, exc), (ctx) or nothing and returns a response value
ErrorHandler: TypeAlias = Callable[..., Any]

# Lifecycle hook — zero-argument, sync or async
Hook: TypeAlias = Callable[[], Any]
