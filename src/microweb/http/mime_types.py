"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

When a static asset is served we have to tell the browser what it is
receiving via the Content-Type header. We decide purely from the file
name's extension; there is no content sniffing.

    style.css   →  text/css; charset=utf-8
    logo.png    →  image/png
    data.bin    →  application/octet-stream   (the "I don't know" type)

=============================================================================
LOOKUP TABLE
=============================================================================

The table below is fixed; the ``mimetypes`` module and /etc/mime.types
are not consulted. Suffixes are compared case-insensitively.

Text types already carry their charset parameter. Binary types do not,
since a charset is meaningless for image bytes.

=============================================================================
"""

from pathlib import PurePosixPath


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Keys are lowercase suffixes including the dot. Values are complete
# Content-Type header values.
#
# =============================================================================

MIME_TYPES = {
    # -------------------------------------------------------------------------
    # TEXT TYPES
    # -------------------------------------------------------------------------
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",

    # -------------------------------------------------------------------------
    # IMAGE TYPES
    # -------------------------------------------------------------------------
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".svg": "image/svg+xml",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def get_content_type(path: str) -> str:
    """
    Get the Content-Type header value for a request path or file name.

    Args:
        path: URL path or file name, e.g. ``/css/site.css``.

    Returns:
        The mapped Content-Type, or ``application/octet-stream``.

    Examples:
        >>> get_content_type("/index.html")
        'text/html; charset=utf-8'
        >>> get_content_type("/photo.JPEG")
        'image/jpeg'
        >>> get_content_type("/archive.tar.gz")
        'application/octet-stream'
    """
    # Dot-files like ".html" count too; PurePosixPath.suffix would ignore them
    _stem, dot, ext = PurePosixPath(path).name.rpartition(".")
    suffix = (dot + ext).lower()
    return MIME_TYPES.get(suffix, DEFAULT_MIME_TYPE)
