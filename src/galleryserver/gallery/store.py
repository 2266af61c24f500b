"""
=============================================================================
GALLERY STORE
=============================================================================

Owns the image directory: list, save, read, delete.

=============================================================================
FILENAME SAFETY
=============================================================================

Every name that reaches the store came from a client, either as the
filename of an upload part or as a URL/query parameter. A name must never
address anything outside the gallery directory:

    "a.png"                 → "a.png"
    "../../etc/passwd"      → "passwd"
    "C:\\Users\\x\\y.jpg"   → "y.jpg"
    "photos/2024/z.png"     → "z.png"
    "..", ".", ""           → (empty)
    "a\x00.png"             → (empty)

Only the final path component survives, with both "/" and "\\" treated
as separators whatever the host OS. A name holding a control character
is refused outright, and so is the temporary-file pattern save() uses.
An empty result means "no name": save() invents one, read() reports NotFound, delete() does nothing.

=============================================================================
CONCURRENCY
=============================================================================

    save()/delete()   serialized by one mutation lock
    list()/read()     lock-free

A save lands in a temporary file next to the target and is moved into
place with os.replace(), so a concurrent read() sees either the old
bytes or the new bytes, never a half-written file. A read() that races
a delete() gets NotFound, which handlers already treat as a normal 404.
=============================================================================
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union
import logging
import os
import re
import tempfile
import threading

from ..errors import NotFoundError, IOFailureError
from .notifier import ChangeNotifier


logger = logging.getLogger(__name__)

TEMP_PREFIX = ".upload-"
TEMP_SUFFIX = ".part"
CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_filename(name: Optional[str]) -> str:
    """
    Reduce a client-supplied name to a bare basename.

    Returns "" when nothing usable is left.
    """
    if not name:
        return ""
    base = name.replace("\\", "/").rsplit("/", 1)[-1].strip()
    if base in (".", "..") or CONTROL_CHARS.search(base) or is_temp_name(base):
        return ""
    return base


def is_temp_name(name: str) -> bool:
    return name.startswith(TEMP_PREFIX) and name.endswith(TEMP_SUFFIX)


def default_filename(now: Optional[datetime] = None) -> str:
    """Name given to uploads whose filename sanitizes to nothing."""
    now = now or datetime.now()
    return f"uploaded_{now:%Y%m%d_%H%M%S}.jpg"


class GalleryStore:
    """
    The directory of slideshow images.

    Example:
        store = GalleryStore("images", notifier)
        store.ensure_directory()
        name = store.save("../cat.png", data)   # "cat.png"
        store.read(name) == data
        store.delete(name)                      # True
    """

    def __init__(
        self,
        directory: Union[str, Path],
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.directory = Path(directory)
        self.notifier = notifier
        self._mutation_lock = threading.Lock()

    def ensure_directory(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailureError(f"Cannot create gallery directory {self.directory}: {e}")

    # =========================================================================
    # READS (lock-free)
    # =========================================================================

    def list(self) -> List[str]:
        """
        Names of the regular files in the directory, in the order the
        filesystem enumerates them. A missing directory lists as empty.
        """
        names = []
        try:
            with os.scandir(self.directory) as entries:
                for entry in entries:
                    if is_temp_name(entry.name):
                        continue
                    try:
                        if entry.is_file():
                            names.append(entry.name)
                    except OSError:
                        continue  # vanished between scandir and stat
        except FileNotFoundError:
            return []
        except OSError as e:
            raise IOFailureError(f"Cannot list gallery directory: {e}")
        return names

    def read(self, filename: str) -> bytes:
        """
        Raises:
            NotFoundError: No regular file by that (sanitized) name.
            IOFailureError: The file exists but could not be read.
        """
        name = sanitize_filename(filename)
        if not name:
            raise NotFoundError(f"Image not found: {filename!r}")

        path = self.directory / name
        try:
            if not path.is_file():
                raise NotFoundError(f"Image not found: {name}")
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(f"Image not found: {name}")
        except OSError as e:
            raise IOFailureError(f"Cannot read {name}: {e}")

    # =========================================================================
    # MUTATIONS (serialized)
    # =========================================================================

    def save(self, filename: str, data: bytes) -> str:
        """
        Write data under the sanitized filename, replacing any existing file.

        Returns:
            The name the image was stored under.

        Raises:
            IOFailureError: The write failed. No partial file is left behind.
        """
        name = sanitize_filename(filename) or default_filename()
        target = self.directory / name

        with self._mutation_lock:
            self.ensure_directory()
            tmp_path = None
            try:
                with tempfile.NamedTemporaryFile(
                    dir=self.directory,
                    prefix=TEMP_PREFIX,
                    suffix=TEMP_SUFFIX,
                    delete=False,
                ) as tmp:
                    tmp_path = tmp.name
                    tmp.write(data)
                os.replace(tmp_path, target)
                tmp_path = None
            except OSError as e:
                raise IOFailureError(f"Cannot save {name}: {e}")
            finally:
                if tmp_path is not None:
                    try:
                        os.unlink(tmp_path)
                    except OSError:
                        pass

        logger.info(f"Saved {name} ({len(data)} bytes)")
        self._notify()
        return name

    def delete(self, filename: str) -> bool:
        """
        Remove the image if it exists.

        Returns:
            True if a file was removed, False if there was nothing to remove.

        Raises:
            IOFailureError: The file exists but could not be removed.
        """
        name = sanitize_filename(filename)
        if not name:
            return False

        path = self.directory / name
        with self._mutation_lock:
            if not path.is_file():
                return False
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            except OSError as e:
                raise IOFailureError(f"Cannot delete {name}: {e}")

        logger.info(f"Deleted {name}")
        self._notify()
        return True

    def _notify(self) -> None:
        if self.notifier is not None:
            self.notifier.publish()
