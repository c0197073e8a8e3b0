"""Trie-based matching of URL paths against bundle page routes.

The table is built once per renderer and never changes afterwards.
Segment syntax::

    /items            static
    /items/{id}       any single segment
    /items/{id:int}   digits only
    /docs/{rest:path} the remainder of the path (must be last)

Static children win over parameters, parameters over catch-alls.
"""

import re
from dataclasses import dataclass

from warble.errors import BundleLoadError
from warble.rendering.bundle import BundleRoute

# Regex for each supported parameter converter
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".+",
}


@dataclass(frozen=True, slots=True)
class PageMatch:
    """Result of a successful route match."""

    route: BundleRoute
    params: dict[str, str]


class _Node:
    __slots__ = ("catch_all", "children", "params", "route")

    def __init__(self) -> None:
        self.children: dict[str, _Node] = {}
        # (name, kind, pattern, child) in registration order
        self.params: list[tuple[str, str, re.Pattern[str], _Node]] = []
        self.catch_all: tuple[str, BundleRoute] | None = None
        self.route: BundleRoute | None = None

    def param_child(self, name: str, kind: str) -> "_Node":
        for edge_name, edge_kind, _, child in self.params:
            if edge_name == name and edge_kind == kind:
                return child
        child = _Node()
        self.params.append((name, kind, re.compile(f"^{CONVERTERS[kind]}$"), child))
        return child


def _split(path: str) -> list[str]:
    return [part for part in path.strip("/").split("/") if part]


class PageRoutes:
    """Immutable route table for one server bundle.

    Usage::

        table = PageRoutes(bundle.routes)
        match = table.match("/items/42")   # PageMatch or None
    """

    __slots__ = ("_root",)

    def __init__(self, routes: tuple[BundleRoute, ...] | list[BundleRoute]) -> None:
        self._root = _Node()
        for route in routes:
            self._add(route)

    def _add(self, route: BundleRoute) -> None:
        node = self._root
        for part in _split(route.path):
            if not (part.startswith("{") and part.endswith("}")):
                node = node.children.setdefault(part, _Node())
                continue

            name, _, kind = part[1:-1].partition(":")
            kind = kind or "str"
            if kind not in CONVERTERS:
                msg = f"Unknown parameter type {kind!r} in route {route.path!r}"
                raise BundleLoadError(msg)
            if kind == "path":
                if node.catch_all is not None:
                    _duplicate(route, node.catch_all[1])
                node.catch_all = (name, route)
                return
            node = node.param_child(name, kind)

        if node.route is not None:
            _duplicate(route, node.route)
        node.route = route

    def match(self, path: str) -> PageMatch | None:
        """Match *path* (no query string) against the table."""
        return self._match(self._root, _split(path), 0, {})

    def _match(
        self,
        node: _Node,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> PageMatch | None:
        if index == len(parts):
            if node.route is not None:
                return PageMatch(node.route, params)
            # A catch-all also matches an empty remainder
            if node.catch_all is not None:
                name, route = node.catch_all
                return PageMatch(route, {**params, name: ""})
            return None

        part = parts[index]

        # 1. Static child (exact match)
        child = node.children.get(part)
        if child is not None:
            found = self._match(child, parts, index + 1, params)
            if found is not None:
                return found

        # 2. Parameter children, in registration order
        for name, _, pattern, param_node in node.params:
            if pattern.match(part):
                found = self._match(param_node, parts, index + 1, {**params, name: part})
                if found is not None:
                    return found

        # 3. Catch-all consumes the rest
        if node.catch_all is not None:
            name, route = node.catch_all
            return PageMatch(route, {**params, name: "/".join(parts[index:])})

        return None


def _duplicate(route: BundleRoute, existing: BundleRoute) -> None:
    msg = f"Route {route.path!r} duplicates {existing.path!r}"
    raise BundleLoadError(msg)
