"""
=============================================================================
EXACT-MATCH ROUTER
=============================================================================

The router is a two-level dictionary:

    ┌──────────┐     ┌────────────────┐
    │  method  │────►│  path → Route  │
    └──────────┘     └────────────────┘

    {
        "GET":  {"/": Route(...), "/hello": Route(...)},
        "POST": {"/hello": Route(...)},
    }

A lookup is two dict reads, O(1) regardless of how many routes exist.

=============================================================================
MATCHING RULES
=============================================================================

A route matches only when method AND path are identical strings:

    registered        request            match?
    ──────────        ───────            ──────
    GET /hello        GET /hello         yes
    GET /hello        GET /hello/        no   (no trailing-slash folding)
    GET /hello        GET /Hello         no   (case-sensitive)
    GET /hello        get /hello         no   (method case-sensitive too)
    GET /users/1      GET /users/2       no   (no path parameters)

Registering the same (method, path) twice silently replaces the first
handler.

=============================================================================
THREAD SAFETY
=============================================================================

Routes are registered while the application is being configured, before
the server starts. Afterwards the table is only read, so worker threads
can share it without a lock.

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

from .request import Request
from .response import Response


# A handler receives the request and a fresh Response, and returns the body.
Handler = Callable[[Request, Response], Any]


@dataclass(frozen=True)
class Route:
    """
    A registered (method, path, handler) triple.

    Example:
        Route(method="GET", path="/hello", handler=hello)
    """

    method: str
    path: str
    handler: Handler

    def execute(self, request: Request, response: Response) -> Any:
        """Invoke the handler. Exceptions propagate to the dispatcher."""
        return self.handler(request, response)


class Router:
    """
    Route table mapping method → path → Route.

    Usage:
        router = Router()

        router.add_route("GET", "/hello", lambda req, res: "Hello Docker!")

        @router.get("/greeting")
        def greeting(request, response):
            return f"Hello, {request.query_param('name') or 'World'}!"

        route = router.find_route("GET", "/hello")
    """

    def __init__(self):
        self._routes: Dict[str, Dict[str, Route]] = {}

    def add_route(self, method: str, path: str, handler: Handler) -> Route:
        """
        Register a route, replacing any previous one for (method, path).

        No validation of the path is done; "hello" without a leading slash
        is stored as given and simply never matches a real request.

        Returns:
            The stored Route.
        """
        route = Route(method=method, path=path, handler=handler)
        self._routes.setdefault(method, {})[path] = route
        return route

    def find_route(self, method: str, path: str) -> Optional[Route]:
        """Exact lookup. Returns None when nothing is registered."""
        return self._routes.get(method, {}).get(path)

    def route_count(self) -> int:
        """Total number of routes across all methods."""
        return sum(len(paths) for paths in self._routes.values())

    def __iter__(self) -> Iterator[Route]:
        for paths in self._routes.values():
            yield from paths.values()

    # =========================================================================
    # DECORATOR API
    # =========================================================================

    def route(self, method: str, path: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of add_route(). Returns the handler unchanged so
        the decorated function stays callable in tests.
        """
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, path, handler)
            return handler
        return decorator

    def get(self, path: str) -> Callable[[Handler], Handler]:
        return self.route("GET", path)

    def post(self, path: str) -> Callable[[Handler], Handler]:
        return self.route("POST", path)

    def put(self, path: str) -> Callable[[Handler], Handler]:
        return self.route("PUT", path)

    def delete(self, path: str) -> Callable[[Handler], Handler]:
        return self.route("DELETE", path)
