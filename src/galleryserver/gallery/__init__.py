"""
=============================================================================
GALLERY DOMAIN
=============================================================================

Everything that knows about images, independent of HTTP:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ STORE (store.py)                                                    │
    │   The image directory. Sanitized names, serialized mutations,      │
    │   lock-free reads.                                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │ NOTIFIER (notifier.py)                                              │
    │   Change channel from worker threads to the display layer.         │
    ├─────────────────────────────────────────────────────────────────────┤
    │ SLIDESHOW (slideshow.py)                                            │
    │   Rotating playlist that reloads itself on change.                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │ PAGES (pages.py)                                                    │
    │   HTML for the gallery page and upload results.                     │
    └─────────────────────────────────────────────────────────────────────┘
=============================================================================
"""

from .notifier import ChangeEvent, ChangeNotifier, Subscription
from .store import GalleryStore, sanitize_filename, default_filename
from .slideshow import Slideshow
from .pages import render_gallery

__all__ = [
    "GalleryStore",
    "sanitize_filename",
    "default_filename",
    "ChangeEvent",
    "ChangeNotifier",
    "Subscription",
    "Slideshow",
    "render_gallery",
]
