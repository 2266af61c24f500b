"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted socket: read exactly one HTTP request, write one
response, close.

=============================================================================
READING A REQUEST OFF A STREAM
=============================================================================

TCP delivers bytes in arbitrary chunks. An upload of a few megabytes
arrives in hundreds of recv() calls, and the first chunk might end in the
middle of a header line. So:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  1. recv() into a buffer until "\r\n\r\n" shows up                  │
    │  2. find Content-Length in the header block                         │
    │     └── larger than max_request_size? stop now, answer 413          │
    │  3. recv() until the buffer holds headers + Content-Length bytes    │
    │  4. hand the bytes to the request parser                            │
    └─────────────────────────────────────────────────────────────────────┘

The gallery serves one request per connection (every response carries
"Connection: close"), so no keep-alive or pipelining state is kept.
=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import logging
import socket
import time
import uuid


logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"
DRAIN_LIMIT_SECONDS = 2.0


class RequestTooLargeError(ValueError):
    """The request is bigger than max_request_size."""


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One client socket and its read buffer.

    Usable as a context manager; leaving the block closes the socket:

        with Connection(sock, address, timeout=30.0) as conn:
            data = conn.read_request()
            conn.send_response(response_bytes)
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 64 * 1024
    timeout: Optional[float] = 30.0
    max_request_size: int = 50 * 1024 * 1024

    _buffer: bytearray = field(default_factory=bytearray, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete request (headers and body).

        Returns:
            The request bytes, or None if the client closed the
            connection before sending a full header block. If the client
            closes in the middle of the body, the partial request is
            returned and the parser reports it as incomplete.

        Raises:
            TimeoutError: The client stalled longer than the socket timeout.
            RequestTooLargeError: Headers or declared body exceed max_request_size.
        """
        self.state = ConnectionState.READING

        try:
            while HEADER_TERMINATOR not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._buffer += chunk
                self._check_size(len(self._buffer))

            header_end = self._buffer.find(HEADER_TERMINATOR)
            body_start = header_end + len(HEADER_TERMINATOR)
            content_length = self._parse_content_length(bytes(self._buffer[:header_end]))
            self._check_size(body_start + content_length)

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break
                self._buffer += chunk

            request_end = body_start + content_length
            data = bytes(self._buffer[:request_end])
            del self._buffer[:request_end]
            return data

        except socket.timeout:
            raise TimeoutError(f"[{self.id}] Request read timeout")

    def _check_size(self, size: int) -> None:
        if size > self.max_request_size:
            raise RequestTooLargeError(
                f"Request too large: {size} bytes (limit {self.max_request_size})"
            )

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _parse_content_length(self, headers: bytes) -> int:
        """Content-Length from the raw header block; 0 if absent or unreadable."""
        header_str = headers.decode("utf-8", errors="replace").lower()
        for line in header_str.split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(0, int(line.split(":", 1)[1].strip()))
                except ValueError:
                    return 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send the whole response.

        Returns:
            True if sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close gracefully: send FIN, drain what the client still sends
        (bounded in time), release the descriptor. Safe to call twice.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        deadline = time.time() + DRAIN_LIMIT_SECONDS
        try:
            self.socket.settimeout(0.5)
            while time.time() < deadline and self.socket.recv(self.buffer_size):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
