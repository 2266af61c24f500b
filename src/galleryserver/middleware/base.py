"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

A middleware sees every request on its way in and every response on its
way out:

    class Timing(Middleware):
        def __call__(self, request, next):
            start = time.time()              # before the handler
            response = next(request)         # rest of the chain
            response.set_header("X-Took", f"{time.time() - start:.3f}")
            return response                  # after the handler

The gallery's pipeline, outermost first:

    ┌─────────────────────────────────────────────────────────────────┐
    │  LoggingMiddleware          access log, X-Request-ID            │
    │  ┌───────────────────────────────────────────────────────────┐  │
    │  │  ErrorMiddleware        GalleryError → status response    │  │
    │  │  ┌─────────────────────────────────────────────────────┐  │  │
    │  │  │  router.handle                                      │  │  │
    │  │  └─────────────────────────────────────────────────────┘  │  │
    │  └───────────────────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────────────────┘
=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)

NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """One layer of the pipeline. Must call next(request) unless it short-circuits."""

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered middleware around a final handler. First added is outermost.

        pipeline = MiddlewarePipeline().add(LoggingMiddleware()).add(ErrorMiddleware())
        handler = pipeline.wrap(router.handle)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler
    ) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
