"""Route, RouteMatch and PathSegment frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class SegmentKind(Enum):
    STATIC = "static"
    PARAM = "param"
    CATCH_ALL = "catch_all"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Static:     ``/users``      (kind=STATIC, value="users")
    Param:      ``/:id``        (kind=PARAM, name="id")
    Catch-all:  ``/*filepath``  (kind=CATCH_ALL, name="filepath")
    """

    value: str
    kind: SegmentKind = SegmentKind.STATIC
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created during app setup with its group middleware already resolved,
    compiled into the router at freeze time.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str]
    middleware: tuple[Callable[..., Any], ...] = ()
    name: str | None = None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
