"""
Request/response middleware.

    base.py      Middleware ABC and MiddlewarePipeline
    logging.py   access log with request ids
    errors.py    GalleryError → HTTP status
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .errors import ErrorMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
    "ErrorMiddleware",
]
