"""
=============================================================================
MULTIPART/FORM-DATA DECODER
=============================================================================

Pulls a single uploaded file out of a raw multipart/form-data body.

=============================================================================
MULTIPART ANATOMY
=============================================================================

    Content-Type: multipart/form-data; boundary=BOUND123
                                       ─────────┬──────
                                                │
                         delimiter on the wire is "--" + value
                                                │
    ┌───────────────────────────────────────────┼─────────────────────────┐
    │                                           ▼                         │
    │  --BOUND123\r\n                                                     │
    │  Content-Disposition: form-data; name="file"; filename="a.png"\r\n  │
    │  Content-Type: image/png\r\n                                        │
    │  \r\n                          ◄── header terminator                 │
    │  <payload bytes, may contain anything, including \r\n>              │
    │  \r\n--BOUND123--\r\n          ◄── closing delimiter                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY BYTES, NOT TEXT
=============================================================================

The payload is an image. Decoding the whole body as text would corrupt
every byte sequence that is not valid in the chosen encoding, and
searching text offsets would not line up with byte offsets. So:

    1. Search the RAW bytes for the header terminator.
    2. Decode ONLY the header block to find the filename.
    3. Slice the payload straight out of the raw bytes.
    4. Find the closing delimiter with a byte search starting AFTER the
       payload start, so boundary-looking text in the headers is ignored.

Only the first part is read. Multi-file forms and extra form fields are
out of scope for the gallery upload form, which posts exactly one file.
=============================================================================
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote
import re

from ..errors import (
    NoBoundaryError,
    MalformedBodyError,
    NoFilenameError,
    EmptyPayloadError,
)


HEADER_TERMINATOR = b"\r\n\r\n"

# filename="a.png"   (the quoted form every browser sends)
FILENAME_PATTERN = re.compile(r'filename="([^"]*)"')
# filename*=UTF-8''%E2%9C%93.png   (RFC 5987 extended form)
FILENAME_EXT_PATTERN = re.compile(r"filename\*=UTF-8''([^;\r\n]*)", re.IGNORECASE)
BOUNDARY_PARAM = re.compile(r"boundary=", re.IGNORECASE)
CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


@dataclass(frozen=True)
class UploadRequest:
    """
    One decoded upload: lives only for the duration of a request.

    boundary is the full delimiter ("--" + parameter value), payload the
    exact bytes of the file part.
    """

    boundary: str
    filename: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


def extract_boundary(content_type: Optional[str]) -> str:
    """
    Get the multipart delimiter from a Content-Type header value.

    The parameter name is matched case-insensitively. The value runs up
    to the next ';', and surrounding whitespace and one pair of double
    quotes are removed:

        multipart/form-data; boundary=XYZ            → "--XYZ"
        multipart/form-data; boundary="a b"; x=1     → "--a b"

    Args:
        content_type: Raw Content-Type header value (may be None).

    Returns:
        The boundary prefixed with "--".

    Raises:
        NoBoundaryError: Header missing, no boundary parameter, or empty value.
    """
    if not content_type:
        raise NoBoundaryError("Missing Content-Type header")

    match = BOUNDARY_PARAM.search(content_type)
    if not match:
        raise NoBoundaryError("Content-Type has no boundary parameter")

    value = content_type[match.end():].split(";", 1)[0].strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1]

    if not value:
        raise NoBoundaryError("Empty boundary parameter")

    return "--" + value


def _find_filename(header_block: str) -> str:
    filename = None

    match = FILENAME_PATTERN.search(header_block)
    if match and match.group(1):
        filename = match.group(1)
    else:
        match = FILENAME_EXT_PATTERN.search(header_block)
        if match and match.group(1):
            filename = unquote(match.group(1), encoding="utf-8", errors="replace")

    if not filename:
        raise NoFilenameError("Upload part does not name a file")
    if CONTROL_CHARS.search(filename):
        raise NoFilenameError(f"Upload filename contains control characters: {filename!r}")
    return filename


def decode_file_part(body: bytes, boundary: bytes) -> tuple[str, bytes]:
    """
    Decode the first file part of a multipart body.

    Args:
        body: The raw request body.
        boundary: The delimiter as bytes, already prefixed with "--".

    Returns:
        Tuple of (filename as sent by the client, payload bytes).

    Raises:
        MalformedBodyError: No header terminator, or no closing delimiter
                            after the payload start.
        NoFilenameError: Part headers carry no usable filename.
        EmptyPayloadError: The payload is zero bytes long.
    """
    # -------------------------------------------------------------------------
    # Phase 1: locate the part headers (bytes only)
    # -------------------------------------------------------------------------
    header_end = body.find(HEADER_TERMINATOR)
    if header_end == -1:
        raise MalformedBodyError("No header terminator in multipart body")

    # -------------------------------------------------------------------------
    # Phase 2: text-decode only the header block
    # -------------------------------------------------------------------------
    header_block = body[:header_end].decode("utf-8", errors="replace")
    filename = _find_filename(header_block)

    # -------------------------------------------------------------------------
    # Phase 3: slice the payload out of the raw bytes
    # -------------------------------------------------------------------------
    data_start = header_end + len(HEADER_TERMINATOR)

    data_end = body.find(b"\r\n" + boundary, data_start)
    if data_end == -1:
        data_end = body.find(boundary, data_start)
    if data_end == -1:
        raise MalformedBodyError("No closing boundary after file data")

    payload = body[data_start:data_end]
    if not payload:
        raise EmptyPayloadError(f"Uploaded file {filename!r} is empty")

    return filename, payload


def parse_upload(content_type: Optional[str], body: bytes) -> UploadRequest:
    """
    Boundary extraction and part decoding in one call.

    Raises whichever UploadError subclass the two steps raise.
    """
    boundary = extract_boundary(content_type)
    filename, payload = decode_file_part(body, boundary.encode("utf-8"))
    return UploadRequest(boundary=boundary, filename=filename, payload=payload)
