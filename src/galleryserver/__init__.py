"""
=============================================================================
GALLERYSERVER - Embedded HTTP Image Gallery
=============================================================================

A small HTTP/1.1 server, written on raw sockets, that lets any device on
the local network browse, upload and delete the images a slideshow
display is showing.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   phone / laptop ──HTTP──► GalleryServer ──► images/ directory      │
    │                                   │                                  │
    │                                   └──► ChangeNotifier ──► Slideshow │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    galleryserver/
    ├── __init__.py          # package exports
    ├── __main__.py          # CLI entry point (python -m galleryserver)
    ├── server.py            # GalleryServer: wiring and lifecycle
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # GalleryError hierarchy
    ├── core/                # sockets, connections, worker pool
    ├── http/                # parsing, responses, routing, multipart
    ├── middleware/          # access log, error translation
    ├── gallery/             # image store, change notifier, slideshow, pages
    └── handlers/            # the five gallery endpoints

=============================================================================
QUICK START
=============================================================================

    from galleryserver import GalleryServer, ServerConfig, Slideshow

    server = GalleryServer(ServerConfig(port=5001, gallery_dir="images"))

    slideshow = Slideshow(server.store)
    slideshow.attach(server.notifier)     # reloads on every upload/delete

    server.start()
    ...
    server.stop()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .errors import GalleryError
from .gallery import ChangeEvent, ChangeNotifier, GalleryStore, Slideshow
from .server import GalleryServer, create_server

__all__ = [
    "GalleryServer",
    "ServerConfig",
    "GalleryError",
    "GalleryStore",
    "ChangeNotifier",
    "ChangeEvent",
    "Slideshow",
    "create_server",
    "__version__",
]
