"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file names to MIME types for the Content-Type header.

The lookup is two-staged:

    1. A small table covering the types this server classifies itself
       (text pages and the three image formats).
    2. The platform's mimetypes database for everything else, e.g. the
       fallback page when it has an unusual extension.

If neither knows the extension, the caller's default is used.

=============================================================================
"""

import mimetypes
from pathlib import Path
from typing import Optional, Union


MIME_TYPES = {
    # Text types
    ".html": "text/html",
    ".htm": "text/html",
    ".txt": "text/plain",

    # Image types
    ".gif": "image/gif",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}

DEFAULT_MIME_TYPE = "text/html"


def probe_mime_type(path: Union[str, Path], default: Optional[str] = None) -> Optional[str]:
    """
    Probe the MIME type of a file from its name.

    Args:
        path: File path or name with extension.
        default: Returned when the type cannot be determined.

    Returns:
        The MIME type string, or default.

    Examples:
        >>> probe_mime_type("/www/index.html")
        'text/html'

        >>> probe_mime_type("photo.JPG")
        'image/jpeg'

        >>> probe_mime_type("archive.unknownext") is None
        True
    """
    path = Path(path)

    extension = path.suffix.lower()  # .PNG → .png
    if extension in MIME_TYPES:
        return MIME_TYPES[extension]

    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or default


def content_type_or_default(mime_type: Optional[str]) -> str:
    """Content-Type header value, falling back to text/html."""
    return mime_type or DEFAULT_MIME_TYPE
