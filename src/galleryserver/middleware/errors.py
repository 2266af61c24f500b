"""
Translates gallery errors into HTTP responses.

Handlers raise NotFoundError, UploadError subclasses and IOFailureError
where they happen; this layer turns each into the status code the error
carries. Anything else keeps propagating to the worker, which answers a
generic 500.
"""

import logging

from .base import Middleware, NextHandler
from ..errors import GalleryError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, error_response
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class ErrorMiddleware(Middleware):

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        try:
            return next(request)
        except GalleryError as e:
            try:
                status = HTTPStatus(e.status_code)
            except ValueError:
                status = HTTPStatus.INTERNAL_SERVER_ERROR
            if status >= 500:
                logger.error(f"{request.method} {request.path} failed: {e}")
            else:
                logger.info(f"{request.method} {request.path} rejected: {e}")
            return error_response(status, str(e))
