"""
=============================================================================
GALLERY ERRORS
=============================================================================

Exception taxonomy for the gallery. Every error carries the HTTP status
code the route handlers answer with, the same way HTTPParseError does for
the request parser:

    GalleryError (500)
    ├── UploadError (400)            client sent an unusable upload
    │   ├── NoBoundaryError          Content-Type has no boundary
    │   ├── MalformedBodyError       header terminator / boundary missing
    │   ├── NoFilenameError          part headers carry no filename
    │   └── EmptyPayloadError        file part has zero bytes
    ├── NotFoundError (404)          image does not exist
    └── IOFailureError (500)         disk read/write/delete failed

Handlers translate these into responses locally. Anything that is not a
GalleryError is a bug and ends up as a generic 500 at the worker boundary.
=============================================================================
"""

from typing import Optional


class GalleryError(Exception):
    """Base class for all gallery failures."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class UploadError(GalleryError):
    """The uploaded request body could not be turned into a file."""

    status_code = 400


class NoBoundaryError(UploadError):
    """Content-Type is missing or has no usable boundary parameter."""


class MalformedBodyError(UploadError):
    """The multipart body is missing its header terminator or closing boundary."""


class NoFilenameError(UploadError):
    """The part headers do not name a file."""


class EmptyPayloadError(UploadError):
    """The file part is present but contains no bytes."""


class NotFoundError(GalleryError):
    """The requested image is not in the gallery directory."""

    status_code = 404


class IOFailureError(GalleryError):
    """The filesystem refused a read, write or delete."""

    status_code = 500
