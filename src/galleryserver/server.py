"""
=============================================================================
GALLERY SERVER
=============================================================================

Wires the pieces into one start()/stop() object:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │  SocketServer ──accept──► ThreadPool ──► _process_connection        │
    │  (1 thread)               (bounded)          │                       │
    │                                              ├─ Connection.read     │
    │                                              ├─ RequestParser       │
    │                                              ├─ LoggingMiddleware   │
    │                                              ├─ ErrorMiddleware     │
    │                                              ├─ Router              │
    │                                              │    └─ GalleryHandlers│
    │                                              │         └─ Store ────┼──► ChangeNotifier
    │                                              └─ send, close         │        │
    │                                                                      │        ▼
    └─────────────────────────────────────────────────────────────────────┘   subscribers

=============================================================================
FAILURE ISOLATION
=============================================================================

Whatever goes wrong inside one request stays inside that request:

    stalled client          → 408, close
    oversized request       → 413, close
    malformed request       → 400 / 505, close
    handler exception       → 500, close
    client vanished         → logged, close
    queue full              → 503 from the acceptor, close

The acceptor loop and the other workers never see the exception.
=============================================================================
"""

from typing import Callable, Optional, Tuple
import logging
import signal
import threading

from .config import ServerConfig
from .core import Connection, ConnectionState, RequestTooLargeError, SocketServer, ThreadPool
from .gallery import ChangeNotifier, GalleryStore
from .handlers import GalleryHandlers
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    Router,
    error_response,
    internal_error,
    service_unavailable,
)
from .middleware import ErrorMiddleware, LoggingMiddleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


class GalleryServer:
    """
    The embedded gallery HTTP server.

    Usage from a host application:

        server = GalleryServer(ServerConfig(port=5001, gallery_dir="images"))
        stop_listening = server.notifier.listen(lambda event: repaint())
        server.start()            # returns once the port is bound
        ...
        server.stop()

    Usage as a program (blocks until Ctrl+C / SIGTERM):

        GalleryServer(ServerConfig.from_env()).run()
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.config = config or ServerConfig()
        self.config.validate()

        self.notifier = notifier or ChangeNotifier()
        self.store = GalleryStore(self.config.gallery_dir, self.notifier)

        self._router = Router()
        GalleryHandlers(self.store).register(self._router)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))
        self._middleware.add(ErrorMiddleware())
        self._handler: Callable[[HTTPRequest], HTTPResponse] = self._middleware.wrap(
            self._router.handle
        )

        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )

        self._lifecycle_lock = threading.Lock()
        self._stop_requested = threading.Event()

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port) actually bound; useful with port 0."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """
        Create the gallery directory, start workers, bind and accept.

        Returns as soon as the socket is listening. No-op when running.

        Raises:
            OSError: The port could not be bound.
            IOFailureError: The gallery directory could not be created.
        """
        with self._lifecycle_lock:
            if self._socket_server.is_running:
                return

            self.store.ensure_directory()
            self._stop_requested.clear()
            self._thread_pool.start()
            try:
                self._socket_server.start(self._handle_connection)
            except OSError:
                self._thread_pool.shutdown(wait=False)
                raise

        host, port = self.address
        logger.info(f"Gallery server started on {host}:{port}, serving {self.store.directory}")

    def stop(self) -> None:
        """
        Stop accepting, let in-flight requests finish (up to
        shutdown_timeout), stop workers. No-op when stopped.
        """
        with self._lifecycle_lock:
            if not self._socket_server.is_running:
                return
            logger.info("Shutting down gallery server...")
            self._socket_server.stop()
            self._thread_pool.shutdown(wait=True, timeout=self.config.shutdown_timeout)
            self._stop_requested.set()

        logger.info("Gallery server stopped")

    def run(self) -> None:
        """
        Start and block until SIGINT/SIGTERM or stop() from another thread.

        Must be called from the main thread (signal handlers).
        """
        self._setup_logging()
        self.start()
        self._print_startup_banner()

        original_handlers = {}

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self._stop_requested.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            original_handlers[sig] = signal.signal(sig, shutdown_handler)

        try:
            while not self._stop_requested.wait(0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            for sig, handler in original_handlers.items():
                signal.signal(sig, handler)
            self.stop()

    def _setup_logging(self) -> None:
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("galleryserver").setLevel(level)

    def _print_startup_banner(self) -> None:
        host, port = self.address
        shown_host = "localhost" if host == "0.0.0.0" else host
        print()
        print(f"  {self.config.server_name}")
        print(f"  Gallery:  http://{shown_host}:{port}/gallery")
        print(f"  Images:   {self.store.directory.resolve()}")
        print(f"  Workers:  {self.config.min_workers}-{self.config.max_workers}"
              f" (queue {self.config.queue_size})")
        print("  Press Ctrl+C to stop")
        print()

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        """Called on the acceptor thread: queue the connection or turn it away."""
        try:
            submitted = self._thread_pool.submit(
                self._process_connection,
                args=(conn,),
                on_discard=conn.close,
            )
        except RuntimeError:
            conn.close()  # pool already shutting down
            return

        if not submitted:
            logger.warning(f"[{conn.id}] Worker queue full, answering 503")
            self._send(conn, service_unavailable())
            conn.close()

    def _process_connection(self, conn: Connection) -> None:
        """Runs on a worker: one request, one response, close."""
        with conn:
            try:
                raw_request = conn.read_request()
                if raw_request is None:
                    return

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.info(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                    self._send(conn, error_response(e.status_code, str(e)))
                    return

                conn.state = ConnectionState.PROCESSING
                try:
                    response = self._handler(request)
                except Exception as e:
                    logger.exception(f"[{conn.id}] Handler error: {e}")
                    response = internal_error()

                self._send(conn, response)

            except TimeoutError:
                logger.info(f"[{conn.id}] Timed out reading request from {conn.client_ip}")
                self._send(conn, error_response(HTTPStatus.REQUEST_TIMEOUT, "Request timeout"))

            except RequestTooLargeError as e:
                logger.info(f"[{conn.id}] {e}")
                self._send(conn, error_response(HTTPStatus.PAYLOAD_TOO_LARGE, str(e)))

            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")
                self._send(conn, internal_error())

    def _send(self, conn: Connection, response: HTTPResponse) -> bool:
        response.headers["Connection"] = "close"
        return conn.send_response(response.to_bytes(self.config.server_name))


def create_server(config: Optional[ServerConfig] = None) -> GalleryServer:
    """Factory for a GalleryServer with the given (or default) configuration."""
    return GalleryServer(config)
