"""
MIME types for gallery content.

Images are served with a Content-Type derived from their extension so
browsers render them inline. Anything we do not recognise is sent as
image/png, which is what the gallery has always served.
"""

from pathlib import Path
from typing import Optional, Union


IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".heic": "image/heic",
    ".avif": "image/avif",
}

TEXT_MIME_TYPES = {
    ".html": "text/html",
    ".txt": "text/plain",
    ".json": "application/json",
}

DEFAULT_IMAGE_TYPE = "image/png"


def get_mime_type(path: Union[str, Path], default: Optional[str] = None) -> str:
    """
    Look up the MIME type for a file name by extension (case-insensitive).

        >>> get_mime_type("photo.JPG")
        'image/jpeg'
        >>> get_mime_type("notes.xyz")
        'image/png'
    """
    extension = Path(path).suffix.lower()
    return (
        IMAGE_MIME_TYPES.get(extension)
        or TEXT_MIME_TYPES.get(extension)
        or default
        or DEFAULT_IMAGE_TYPE
    )


def is_text_type(mime_type: str) -> bool:
    return mime_type.startswith("text/") or mime_type in (
        "application/json",
        "image/svg+xml",
    )


def get_content_type(path: Union[str, Path], charset: str = "utf-8") -> str:
    """Content-Type header value, with a charset for text types."""
    mime_type = get_mime_type(path)
    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type
