"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Bytes in, bytes out. Nothing here knows about images except the
multipart decoder, which knows about exactly one uploaded file.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py      raw bytes → HTTPRequest                             │
    │ multipart.py    multipart/form-data body → UploadRequest            │
    │ router.py       HTTPRequest → handler → HTTPResponse                │
    │ response.py     HTTPResponse → raw bytes                            │
    │ status_codes.py HTTPStatus enum with reason phrases                 │
    │ mime_types.py   file extension → Content-Type                       │
    └─────────────────────────────────────────────────────────────────────┘
=============================================================================
"""

from .request import HTTPRequest, HTTPParseError, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    redirect,
    error_response,
    bad_request,
    not_found,
    internal_error,
    service_unavailable,
)
from .router import Router, Route, RouteMatch, Handler
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type
from .multipart import UploadRequest, extract_boundary, decode_file_part, parse_upload

__all__ = [
    "HTTPRequest",
    "HTTPParseError",
    "RequestParser",
    "parse_request",
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "redirect",
    "error_response",
    "bad_request",
    "not_found",
    "internal_error",
    "service_unavailable",
    "Router",
    "Route",
    "RouteMatch",
    "Handler",
    "HTTPStatus",
    "get_mime_type",
    "get_content_type",
    "UploadRequest",
    "extract_boundary",
    "decode_file_part",
    "parse_upload",
]
