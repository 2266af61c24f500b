"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds responses and serializes them to the bytes that go on the wire.

    HTTP/1.1 302 Found\r\n                 ◄── status line
    Location: /gallery\r\n                 ◄── headers
    Content-Type: text/html; charset=utf-8\r\n
    Content-Length: 137\r\n                ◄── always added by to_bytes()
    Date: Mon, 19 Oct 2026 10:00:00 GMT\r\n
    Server: GalleryServer/1.0\r\n
    Connection: close\r\n                  ◄── one request per connection
    \r\n
    <html>...                              ◄── body bytes

Handlers use the fluent ResponseBuilder:

    return (ResponseBuilder()
        .status(HTTPStatus.OK)
        .image(data, "cat.png")
        .no_cache()
        .build())

or one of the one-liners at the bottom (ok, redirect, not_found, ...).
=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union

from .status_codes import HTTPStatus
from .mime_types import get_content_type


DEFAULT_SERVER_NAME = "GalleryServer/1.0"


@dataclass
class HTTPResponse:
    """A response ready to be serialized with to_bytes()."""

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def get_header(self, name: str, default: str = "") -> str:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize to wire format.

        Content-Length, Date and Server are filled in when the handler did
        not set them. Every response closes the connection.
        """
        response_headers = dict(self.headers)

        response_headers["Content-Length"] = str(len(self.body))
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name
        response_headers.setdefault("Connection", "close")

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Every setter returns self so calls chain; build() produces the
    response. Later calls win:

        ResponseBuilder().text("a").html("<b>b</b>")   # body is "<b>b</b>"
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        self._headers["Content-Type"] = content_type
        return self

    # =========================================================================
    # BODY METHODS
    # =========================================================================

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def html(self, html: str) -> "ResponseBuilder":
        return self.text(html, "text/html; charset=utf-8")

    def image(self, content: bytes, filename: str) -> "ResponseBuilder":
        """Raw image bytes with a Content-Type taken from the file extension."""
        self._body = content
        self._headers["Content-Type"] = get_content_type(filename)
        return self

    # =========================================================================
    # HEADER SHORTCUTS
    # =========================================================================

    def redirect(self, location: str) -> "ResponseBuilder":
        """302 Found to location. The gallery never redirects permanently."""
        self._status = HTTPStatus.FOUND
        self._headers["Location"] = location
        return self

    def no_cache(self) -> "ResponseBuilder":
        self._headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
        self._headers["Pragma"] = "no-cache"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a UTC datetime as an RFC 7231 HTTP-date:

        Mon, 19 Oct 2026 10:00:00 GMT
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(body: Union[str, bytes] = "", content_type: str = "text/plain; charset=utf-8") -> HTTPResponse:
    return ResponseBuilder().body(body).content_type(content_type).build()


def redirect(location: str) -> HTTPResponse:
    return ResponseBuilder().redirect(location).build()


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Plain-text error body: "404 Not Found: no such image"."""
    status = HTTPStatus(status)
    return (ResponseBuilder()
        .status(status)
        .text(f"{int(status)} {status.phrase}: {message}")
        .no_cache()
        .build())


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error_response(HTTPStatus.BAD_REQUEST, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message)


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)


def service_unavailable(message: str = "Server busy, try again") -> HTTPResponse:
    return (ResponseBuilder()
        .status(HTTPStatus.SERVICE_UNAVAILABLE)
        .header("Retry-After", "1")
        .text(message)
        .build())
