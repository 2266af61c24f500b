"""
=============================================================================
GALLERY SERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (0.0.0.0:5001, ./images)
    python -m galleryserver

    # Another port and image directory
    python -m galleryserver --port 8000 --dir ~/Pictures/frame

    # More worker threads for a busy network
    python -m galleryserver --workers 32

Flags override the GALLERY_* environment variables, which override the
defaults in ServerConfig.
=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig
from .server import GalleryServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="galleryserver",
        description="HTTP gallery for a slideshow image directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m galleryserver                        # Run with defaults
  python -m galleryserver --port 8000            # Custom port
  python -m galleryserver --dir ./photos         # Custom image directory
  python -m galleryserver --host 127.0.0.1       # Only this machine
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0, reachable from the LAN)",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 5001)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # GALLERY ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--dir", "-d",
        dest="gallery_dir",
        default=None,
        help="Image directory (default: ./images, created if missing)",
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum worker threads (default: 16)",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"GalleryServer {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment configuration with any given flags applied on top."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.gallery_dir is not None:
        config.gallery_dir = args.gallery_dir
    if args.workers is not None:
        config.max_workers = args.workers
        config.min_workers = max(1, min(config.min_workers, args.workers))
    if args.log_level is not None:
        config.log_level = args.log_level

    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        server = GalleryServer(config_from_args(args))
        server.run()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
