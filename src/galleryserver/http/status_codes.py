"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes the gallery actually answers with:

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK                 page, image bytes                  │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  3xx   │ 302 Found              after upload / delete              │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request        malformed request or upload        │
    │        │ 404 Not Found          unknown route or missing image     │
    │        │ 408 Request Timeout    client stalled mid-request         │
    │        │ 413 Payload Too Large  request over max_request_size      │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Error     disk failure or handler bug        │
    │        │ 503 Unavailable        worker queue full                  │
    │        │ 505 Version Not Supp.  not HTTP/1.0 or HTTP/1.1           │
    └────────┴───────────────────────────────────────────────────────────┘
=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes as an IntEnum, so they compare equal to plain ints:

        HTTPStatus.NOT_FOUND == 404   # True
        HTTPStatus(302).phrase        # "Found"
    """

    OK = 200
    FOUND = 302
    BAD_REQUEST = 400
    NOT_FOUND = 404
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line: HTTP/1.1 404 Not Found."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.FOUND: "Found",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}


def reason_phrase(code: int) -> str:
    """Reason phrase for any integer code, "Unknown" if we never send it."""
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
