"""
=============================================================================
CONNECTION ACCEPTOR
=============================================================================

Owns the listening socket and the thread that accepts on it.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │        start()                            stop()                    │
    │   STOPPED ─────────────► LISTENING ─────────────► STOPPED           │
    │      ▲    bind, listen,       │      clear flag, shut the           │
    │      │    spawn acceptor      │      socket down, join acceptor     │
    │      └────────────────────────┘                                     │
    │                   start() again is allowed                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The acceptor thread:

    while running:
        accept()                   wakes at least once a second to
        wrap in Connection         re-check the running flag
        handler(conn)              must not block: it only queues work

bind() and listen() happen in the caller's thread, so a port clash
raises straight out of start() and the real port (for port 0) is known
as soon as start() returns.
=============================================================================
"""

from enum import Enum
from typing import Callable, Optional, Tuple
import logging
import socket
import threading
import time

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class ServerState(Enum):
    STOPPED = "stopped"
    LISTENING = "listening"


class SocketServer:
    """
    TCP listener that hands every accepted connection to a callback.

    Example:
        server = SocketServer(config)
        server.start(pool_submit)     # returns immediately
        host, port = server.address
        ...
        server.stop()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self.state = ServerState.STOPPED

        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_flag = threading.Event()
        self._lock = threading.Lock()
        self._bound_address: Optional[Tuple[str, int]] = None

    @property
    def is_running(self) -> bool:
        return self.state == ServerState.LISTENING

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the configured values before the first start()."""
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        # restart right away without waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def start(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Bind, listen and start accepting in the background.

        Does nothing if already listening.

        Raises:
            OSError: The address could not be bound.
        """
        with self._lock:
            if self.state == ServerState.LISTENING:
                return

            sock = self._create_socket()
            try:
                sock.bind((self.config.host, self.config.port))
                sock.listen(self.config.backlog)
            except OSError as e:
                sock.close()
                logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
                raise

            self._socket = sock
            self._bound_address = sock.getsockname()[:2]
            self._stop_flag = threading.Event()
            self.state = ServerState.LISTENING

            self._thread = threading.Thread(
                target=self._accept_loop,
                args=(sock, connection_handler, self._stop_flag),
                name="gallery-acceptor",
                daemon=True,
            )
            self._thread.start()

        host, port = self._bound_address
        logger.info(f"Listening on {host}:{port}")

    def _accept_loop(
        self,
        sock: socket.socket,
        connection_handler: Callable[[Connection], None],
        stop_flag: threading.Event,
    ) -> None:
        while not stop_flag.is_set():
            try:
                client_socket, client_address = sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if stop_flag.is_set():
                    break
                # EMFILE and friends: back off instead of spinning
                logger.error(f"Accept error: {e}")
                time.sleep(0.1)
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            try:
                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    buffer_size=self.config.buffer_size,
                    timeout=self.config.timeout,
                    max_request_size=self.config.max_request_size,
                )
                connection_handler(conn)
            except Exception:
                logger.exception("Connection handler failed")
                try:
                    client_socket.close()
                except OSError:
                    pass

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """
        Stop accepting and wait for the acceptor thread to exit.

        Safe to call when already stopped and from any thread.
        """
        with self._lock:
            if self.state == ServerState.STOPPED:
                return

            logger.info("Stopping acceptor...")
            self._stop_flag.set()
            sock, self._socket = self._socket, None
            thread, self._thread = self._thread, None

            if sock is not None:
                try:
                    sock.shutdown(socket.SHUT_RDWR)  # wakes a blocked accept()
                except OSError:
                    pass
                sock.close()

            if thread is not None and thread is not threading.current_thread():
                thread.join(timeout)

            self.state = ServerState.STOPPED

        logger.info("Acceptor stopped")
