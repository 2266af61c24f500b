"""
=============================================================================
NETWORK CORE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ socket_server.py   listening socket + acceptor thread               │
    │ connection.py      one client socket, one request, then close       │
    │ thread_pool.py     bounded workers; full queue means 503            │
    └─────────────────────────────────────────────────────────────────────┘

One acceptor thread, up to max_workers request threads, and a fixed
queue between them. Nothing here knows about HTTP beyond finding the end
of a request on the stream.
=============================================================================
"""

from .socket_server import SocketServer, ServerState
from .connection import Connection, ConnectionState, RequestTooLargeError
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "ServerState",
    "Connection",
    "ConnectionState",
    "RequestTooLargeError",
    "ThreadPool",
]
