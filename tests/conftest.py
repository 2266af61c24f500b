"""
pytest configuration and fixtures.
"""

import socket
from typing import Dict, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from galleryserver import GalleryServer, ServerConfig
from galleryserver.gallery import ChangeNotifier, GalleryStore


BOUNDARY = "BOUND123"


def build_multipart(
    filename: Optional[str],
    payload: bytes,
    boundary: str = BOUNDARY,
    field_name: str = "file",
) -> bytes:
    """Body of a single-file multipart/form-data upload, as a browser sends it."""
    disposition = f'form-data; name="{field_name}"'
    if filename is not None:
        disposition += f'; filename="{filename}"'
    return (
        f"--{boundary}\r\n"
        f"Content-Disposition: {disposition}\r\n"
        f"Content-Type: application/octet-stream\r\n"
        f"\r\n"
    ).encode("utf-8") + payload + f"\r\n--{boundary}--\r\n".encode("utf-8")


def build_request(
    method: str,
    target: str,
    body: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
) -> bytes:
    lines = [f"{method} {target} HTTP/1.1", "Host: localhost"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if body or method == "POST":
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + body


def build_upload_request(filename: Optional[str], payload: bytes,
                         boundary: str = BOUNDARY) -> bytes:
    return build_request(
        "POST",
        "/upload",
        body=build_multipart(filename, payload, boundary),
        headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
    )


class RawResponse:
    """Status, headers and body read back off a socket."""

    def __init__(self, data: bytes):
        head, _, self.body = data.partition(b"\r\n\r\n")
        lines = head.decode("utf-8").split("\r\n")
        self.status_line = lines[0]
        self.status = int(lines[0].split(" ")[1])
        self.headers: Dict[str, str] = {}
        for line in lines[1:]:
            name, _, value = line.partition(":")
            self.headers[name.strip().lower()] = value.strip()

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def send_raw(address: Tuple[str, int], data: bytes, timeout: float = 5.0) -> RawResponse:
    """Send raw bytes, read until the server closes, parse the response."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return RawResponse(b"".join(chunks))


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /gallery?sort=name&sort=date HTTP/1.1\r\n"
        b"Host: 192.168.1.20:5001\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_upload_request() -> bytes:
    """Upload of a 10-byte a.png with boundary BOUND123."""
    return build_upload_request("a.png", b"\x89PNG\r\n\x1a\n\x00\x01")


@pytest.fixture
def gallery_dir(tmp_path: Path) -> Path:
    return tmp_path / "images"


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def store(gallery_dir: Path, notifier: ChangeNotifier) -> GalleryStore:
    store = GalleryStore(gallery_dir, notifier)
    store.ensure_directory()
    return store


@pytest.fixture
def config(gallery_dir: Path) -> ServerConfig:
    """Test server configuration on a free port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        gallery_dir=str(gallery_dir),
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        shutdown_timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[GalleryServer, None, None]:
    """A started GalleryServer, stopped after the test."""
    server = GalleryServer(config)
    server.start()
    yield server
    server.stop()
