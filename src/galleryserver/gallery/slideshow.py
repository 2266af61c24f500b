"""
Slideshow playlist.

The display layer's view of the gallery: which image is on screen and
which comes next. Painting and fading stay with the display; this class
only keeps the rotation in step with the directory, reloading itself
whenever the gallery publishes a change.
"""

from typing import Callable, List, Optional
import logging
import threading

from .notifier import ChangeEvent, ChangeNotifier
from .store import GalleryStore


logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp")


class Slideshow:
    """
    Rotating playlist of displayable images.

    Example:
        show = Slideshow(store)
        show.attach(server.notifier)    # reload on every upload/delete
        ...
        name = show.current()           # image to paint
        show.advance()                  # on the display timer tick
    """

    def __init__(self, store: GalleryStore):
        self.store = store
        self._lock = threading.Lock()
        self._images: List[str] = []
        self._index = 0
        self._stop_listening: Optional[Callable[[], None]] = None
        self.reload()

    @staticmethod
    def is_displayable(name: str) -> bool:
        return name.lower().endswith(SUPPORTED_EXTENSIONS)

    def reload(self, event: Optional[ChangeEvent] = None) -> None:
        """Re-read the directory and restart the rotation at the first image."""
        images = [name for name in self.store.list() if self.is_displayable(name)]
        with self._lock:
            self._images = images
            self._index = 0
        logger.debug(f"Slideshow reloaded with {len(images)} images")

    @property
    def images(self) -> List[str]:
        with self._lock:
            return list(self._images)

    @property
    def has_images(self) -> bool:
        with self._lock:
            return bool(self._images)

    def current(self) -> Optional[str]:
        with self._lock:
            if not self._images:
                return None
            return self._images[self._index]

    def advance(self) -> Optional[str]:
        """Move to the next image, wrapping around. Returns the new current image."""
        with self._lock:
            if not self._images:
                return None
            self._index = (self._index + 1) % len(self._images)
            return self._images[self._index]

    # =========================================================================
    # CHANGE SUBSCRIPTION
    # =========================================================================

    def attach(self, notifier: ChangeNotifier) -> None:
        """Reload on every gallery change, on a listener thread of our own."""
        if self._stop_listening is not None:
            return
        self._stop_listening = notifier.listen(self.reload, name="slideshow-reload")

    def detach(self) -> None:
        if self._stop_listening is not None:
            self._stop_listening()
            self._stop_listening = None
