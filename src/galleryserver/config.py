"""
=============================================================================
GALLERY SERVER CONFIGURATION
=============================================================================

All tunables of the gallery server live in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHERE VALUES COME FROM                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Command-line flags        python -m galleryserver --port 8000  │
    │   2. Environment variables     GALLERY_PORT=8000                     │
    │   3. Defaults below            port 5001, directory "images"         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The CLI starts from ServerConfig.from_env() and overrides whatever flags
were given. validate() runs before anything is bound or spawned.
=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the gallery server.

    NETWORK     host, port, backlog, buffer_size, timeout
    UPLOADS     gallery_dir, max_request_size
    WORKERS     min_workers, max_workers, queue_size, shutdown_timeout
    LOGGING     log_level, log_format
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    Address to bind. The gallery is meant to be reached from other
    devices on the LAN, so all interfaces by default.
    """

    port: int = 5001
    """
    Port to listen on. 0 lets the OS pick one; the real port is then
    available from GalleryServer.address after start().
    """

    backlog: int = 128
    """Maximum number of connections waiting in the kernel accept queue."""

    buffer_size: int = 64 * 1024
    """Receive chunk size. Uploads are large, so bigger than a typical API."""

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout in seconds. None waits forever.
    A client that stalls past it gets 408 Request Timeout.
    """

    # ─────────────────────────────────────────────────────────────────────
    # UPLOADS
    # ─────────────────────────────────────────────────────────────────────

    gallery_dir: str = "images"
    """Directory holding the slideshow images. Created on start."""

    max_request_size: int = 50 * 1024 * 1024  # 50 MB
    """Whole-request ceiling (headers + body). Larger requests get 413."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 2
    max_workers: int = 16

    queue_size: int = 64
    """
    Connections allowed to wait for a worker. When the queue is full the
    acceptor answers 503 immediately instead of spawning more threads.
    """

    shutdown_timeout: float = 10.0
    """Seconds stop() waits for in-flight requests before giving up."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log line format: 'text' or 'json'."""

    server_name: str = "GalleryServer/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

            GALLERY_HOST        bind address      (default 0.0.0.0)
            GALLERY_PORT        port              (default 5001)
            GALLERY_DIR         image directory   (default images)
            GALLERY_WORKERS     max worker threads (default 16)
            GALLERY_TIMEOUT     socket timeout    (default 30)
            GALLERY_MAX_UPLOAD  request ceiling in bytes
            GALLERY_LOG_LEVEL   logging level     (default INFO)
        """
        defaults = cls()
        max_workers = int(os.getenv("GALLERY_WORKERS", str(defaults.max_workers)))
        return cls(
            host=os.getenv("GALLERY_HOST", defaults.host),
            port=int(os.getenv("GALLERY_PORT", str(defaults.port))),
            gallery_dir=os.getenv("GALLERY_DIR", defaults.gallery_dir),
            min_workers=max(1, min(defaults.min_workers, max_workers)),
            max_workers=max_workers,
            timeout=float(os.getenv("GALLERY_TIMEOUT", str(defaults.timeout))),
            max_request_size=int(
                os.getenv("GALLERY_MAX_UPLOAD", str(defaults.max_request_size))
            ),
            log_level=os.getenv("GALLERY_LOG_LEVEL", defaults.log_level),
        )

    def validate(self) -> None:
        """Fail fast on values the server cannot run with."""
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size < 1024:
            raise ValueError("max_request_size must be >= 1024")

        if not self.gallery_dir:
            raise ValueError("gallery_dir must not be empty")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format}")
