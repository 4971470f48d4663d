"""Lookup of the handler behind a recorded route.

Request events carry ``"METHOD /path/{param}"`` using the route template. The
registry maps (method, template) to a dotted handler name so the slow routes
report can show which endpoint function served the route.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from fastapi import APIRouter
from starlette.routing import BaseRoute, Mount, Route

logger = logging.getLogger(__name__)


def _action_name(endpoint: Any) -> str | None:
    module = getattr(endpoint, "__module__", None)
    qualname = getattr(endpoint, "__qualname__", None) or getattr(
        endpoint, "__name__", None
    )
    if not qualname:
        return None
    return f"{module}.{qualname}" if module else qualname


class RouteRegistry:
    """Maps ``(method, path template)`` to a handler name."""

    def __init__(self) -> None:
        self._actions: dict[tuple[str, str], str] = {}

    def register(self, method: str, path: str, action: str) -> None:
        self._actions[(method.upper(), path)] = action

    def resolve_handler(self, method: str, path: str) -> str | None:
        """Handler name for the route, or None when the route is unknown."""
        return self._actions.get((method.upper(), path))

    def __len__(self) -> int:
        return len(self._actions)

    @classmethod
    def from_routes(cls, routes: Iterable[BaseRoute], *, prefix: str = "") -> RouteRegistry:
        """Build a registry from a Starlette/FastAPI route table.

        Mounted sub-applications are walked recursively; HEAD is skipped since
        Starlette adds it implicitly next to GET.
        """
        registry = cls()
        registry.add_routes(routes, prefix=prefix)
        logger.debug("Route registry built with %d handlers", len(registry))
        return registry

    @classmethod
    def from_routers(
        cls, routers: Iterable[tuple[APIRouter, str]]
    ) -> RouteRegistry:
        """Build a registry from ``(router, prefix)`` pairs.

        Routers joined with ``include_router`` are not reliably visible in
        ``app.routes``, so callers list each leaf router with the prefix it is
        served under. A router's own ``prefix`` is already part of its route
        paths.
        """
        registry = cls()
        for router, prefix in routers:
            registry.add_routes(router.routes, prefix=prefix)
        logger.debug("Route registry built with %d handlers", len(registry))
        return registry

    def add_routes(self, routes: Iterable[BaseRoute], *, prefix: str = "") -> None:
        for route in routes:
            if isinstance(route, Mount):
                self.add_routes(route.routes, prefix=prefix + route.path)
                continue
            if not isinstance(route, Route):
                continue
            action = _action_name(route.endpoint)
            if action is None:
                continue
            for method in route.methods or ():
                if method == "HEAD":
                    continue
                self.register(method, prefix + route.path, action)
