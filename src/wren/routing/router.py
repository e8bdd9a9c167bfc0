"""Compiled router with trie-based path matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes. Matching walks one trie level per
path segment, trying the static child first, then the parameter child,
then the catch-all, so ``/users/new`` beats ``/users/:id`` which beats
``/users/*rest``.
"""

from dataclasses import dataclass, field

from wren.errors import ConfigurationError, MethodNotAllowed, NotFound, RouteConflict
from wren.routing.route import PathSegment, Route, RouteMatch, SegmentKind


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route pattern into segments.

    Examples::

        "/users"              -> [PathSegment("users")]
        "/user/:name"         -> [PathSegment("user"), PathSegment(":name", PARAM, "name")]
        "/files/*filepath"    -> [..., PathSegment("*filepath", CATCH_ALL, "filepath")]
        "/user/{name}"        -> same as "/user/:name"
        "/files/{fp:path}"    -> same as "/files/*fp"

    Raises ``ConfigurationError`` for an unnamed parameter or a catch-all
    that is not the last segment.
    """
    parts = [p for p in path.strip("/").split("/") if p]
    segments: list[PathSegment] = []

    for index, part in enumerate(parts):
        if part.startswith("{") and part.endswith("}"):
            name, _, converter = part[1:-1].partition(":")
            kind = SegmentKind.CATCH_ALL if converter == "path" else SegmentKind.PARAM
        elif part[0] == ":":
            name, kind = part[1:], SegmentKind.PARAM
        elif part[0] == "*":
            name, kind = part[1:], SegmentKind.CATCH_ALL
        else:
            segments.append(PathSegment(part))
            continue

        if not name:
            msg = f"Route {path!r}: parameter segment {part!r} needs a name"
            raise ConfigurationError(msg)
        if kind is SegmentKind.CATCH_ALL and index != len(parts) - 1:
            msg = f"Route {path!r}: catch-all {part!r} must be the last segment"
            raise ConfigurationError(msg)
        segments.append(PathSegment(part, kind, name))

    return segments


def split_path(path: str) -> list[str]:
    """Split a request path into non-empty segments."""
    return [p for p in path.split("/") if p]


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("catch_all", "children", "param", "routes")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # At most one parameter edge per level; its name is fixed by the first route
        self.param: _ParamEdge | None = None
        # At most one catch-all per level; consumes the rest of the path
        self.catch_all: _CatchAllEdge | None = None
        # Routes ending here, keyed by HTTP method
        self.routes: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    name: str
    node: _TrieNode = field(default_factory=_TrieNode)


@dataclass(slots=True)
class _CatchAllEdge:
    name: str
    routes: dict[str, Route] = field(default_factory=dict)


def _register(routes: dict[str, Route], route: Route) -> None:
    for method in route.methods:
        existing = routes.get(method)
        if existing is not None:
            msg = (
                f"{method} {route.path!r} conflicts with already registered "
                f"{method} {existing.path!r}"
            )
            raise RouteConflict(msg)
    for method in route.methods:
        routes[method] = route


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add(Route("/users", handler, frozenset({"GET"})))
        router.add(Route("/users/:id", handler, frozenset({"GET"})))
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route. Must be called before ``compile()``.

        Raises:
            RouteConflict: The (method, pattern) pair is already taken, or
                the pattern names a parameter differently from an existing
                route at the same position.
            ConfigurationError: Malformed pattern, or the router is compiled.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise ConfigurationError(msg)

        node = self._root
        for seg in parse_path(route.path):
            if seg.kind is SegmentKind.STATIC:
                node = node.children.setdefault(seg.value, _TrieNode())
                continue

            assert seg.name is not None
            if seg.kind is SegmentKind.CATCH_ALL:
                if node.catch_all is None:
                    node.catch_all = _CatchAllEdge(seg.name)
                elif node.catch_all.name != seg.name:
                    msg = (
                        f"Route {route.path!r}: catch-all {seg.value!r} conflicts with "
                        f"existing catch-all '*{node.catch_all.name}'"
                    )
                    raise RouteConflict(msg)
                _register(node.catch_all.routes, route)
                return

            if node.param is None:
                node.param = _ParamEdge(seg.name)
            elif node.param.name != seg.name:
                msg = (
                    f"Route {route.path!r}: parameter {seg.value!r} conflicts with "
                    f"existing parameter ':{node.param.name}'"
                )
                raise RouteConflict(msg)
            node = node.param.node

        _register(node.routes, route)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    @property
    def routes(self) -> list[Route]:
        """All registered routes, each listed once, in trie order."""
        seen: set[int] = set()
        result: list[Route] = []

        def collect(candidates: dict[str, Route]) -> None:
            for route in candidates.values():
                if id(route) not in seen:
                    seen.add(id(route))
                    result.append(route)

        stack = [self._root]
        while stack:
            node = stack.pop()
            collect(node.routes)
            if node.catch_all is not None:
                collect(node.catch_all.routes)
            if node.param is not None:
                stack.append(node.param.node)
            stack.extend(reversed(node.children.values()))
        return result

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request method and path against the compiled routes.

        Raises:
            NotFound: No route matches the path.
            MethodNotAllowed: The path matches, but only for other methods.
        """
        allowed: set[str] = set()
        found = self._walk(self._root, split_path(path), 0, {}, method, allowed)
        if found is not None:
            route, params = found
            return RouteMatch(route=route, path_params=params)
        if allowed:
            raise MethodNotAllowed(frozenset(allowed))
        raise NotFound(f"No route matches {method} {path!r}")

    def _walk(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
        method: str,
        allowed: set[str],
    ) -> tuple[Route, dict[str, str]] | None:
        """Depth-first match; *allowed* collects methods of paths that matched."""
        if index == len(parts):
            route = node.routes.get(method)
            if route is not None:
                return route, params
            allowed.update(node.routes)
            return None

        part = parts[index]

        # 1. Static child (exact segment)
        child = node.children.get(part)
        if child is not None:
            found = self._walk(child, parts, index + 1, params, method, allowed)
            if found is not None:
                return found

        # 2. Parameter child (any single segment)
        if node.param is not None:
            edge = node.param
            found = self._walk(
                edge.node, parts, index + 1, {**params, edge.name: part}, method, allowed
            )
            if found is not None:
                return found

        # 3. Catch-all (one or more remaining segments)
        if node.catch_all is not None:
            route = node.catch_all.routes.get(method)
            if route is not None:
                return route, {**params, node.catch_all.name: "/".join(parts[index:])}
            allowed.update(node.catch_all.routes)

        return None
