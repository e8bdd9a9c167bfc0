"""Routing — compiled route table with O(path-depth) matching.

Routes are registered during setup (directly or through a ``Group``)
and compiled into an immutable lookup structure when the app freezes.
"""

from wren.routing.group import Group
from wren.routing.route import Route, RouteMatch
from wren.routing.router import Router

__all__ = ["Group", "Route", "RouteMatch", "Router"]
