"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler. The gallery's table:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   GET   /                 → index                                    │
    │   GET   /gallery          → index                                    │
    │   GET   /images/:name     → serve_image    path_params["name"]      │
    │   POST  /upload           → upload                                   │
    │   POST  /delete           → delete         ?name=<file>             │
    │   *     anything else     → 404 Not Found                           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PATTERN COMPILATION
=============================================================================

Each route pattern becomes one anchored regex:

    /images/:name        →  ^/images/(?P<name>[^/]+)$
    /files/*rest         →  ^/files/(?P<rest>.*)$

":param" captures one segment, "*param" captures the rest of the path and
must come last. Routes are tried in registration order; first match wins.

A path that matches under a different method is still a 404: the gallery
has no use for 405 and browsers treat both the same. Methods compare
case-sensitively, so "get /gallery" is a 404 too.
=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, List
import re

from .request import HTTPRequest
from .response import HTTPResponse, not_found


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """A pattern bound to a handler. method None accepts any method."""

    path: str
    method: Optional[str]
    handler: Handler
    name: Optional[str] = None

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    """The matched route and the parameters pulled out of the path."""

    route: Route
    params: Dict[str, str]


class Router:
    """
    Ordered route table.

    Example:
        router = Router()

        @router.get("/images/:name")
        def serve_image(request):
            name = request.path_params["name"]
            ...

        response = router.handle(request)
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Route:
        pattern, param_names = self._compile_pattern(path)
        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            name=name or getattr(handler, "__name__", None),
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> tuple[re.Pattern, List[str]]:
        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith(":"):
                param_name = segment[1:]
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>[^/]+)")

            elif segment.startswith("*"):
                param_name = segment[1:] or "wildcard"
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>.*)")
                break

            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")  # the root route "/"

        regex_parts.append("$")
        return re.compile("".join(regex_parts)), param_names

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """First route matching both method and path, or None."""
        path = "/" + path.strip("/") if path != "/" else "/"

        for route in self._routes:
            if route.method and route.method != method:
                continue

            match = route._pattern.match(path)
            if match:
                return RouteMatch(route=route, params=match.groupdict())

        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Dispatch to the matching handler, or answer 404."""
        match = self.match(request.method, request.path)
        if match is None:
            return not_found(f"No route for {request.method} {request.path}")

        request.path_params = match.params
        return match.route.handler(request)

    # =========================================================================
    # DECORATORS
    # =========================================================================

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", name)

    def routes(self) -> List[Route]:
        return list(self._routes)
