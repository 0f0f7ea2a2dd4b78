"""
=============================================================================
STATIC ASSET RESOLVER
=============================================================================

When no route matches a request, the dispatcher asks this resolver whether
a file under the static root answers the request path:

    static root:  ./public
    request:      GET /css/site.css
    file:         ./public/css/site.css   → 200, text/css; charset=utf-8

    request:      GET /
    file:         ./public/index.html     ("/" is rewritten to /index.html)

Files are re-read on every request. There is no cache, no ETag and no
directory listing: editing a file under the root takes effect on the next
request.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

The request path comes straight from the client:

    GET /../../etc/passwd HTTP/1.1

Naively joining it to the root yields ./public/../../etc/passwd, which is
OUTSIDE the root. We resolve the joined path (collapsing ".." and following
symlinks) and refuse anything that does not stay below the resolved root:

    root.resolve()   = /srv/app/public
    target.resolve() = /etc/passwd
    target.relative_to(root) → ValueError → not found

A refused path is reported exactly like a missing file.

=============================================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..http.mime_types import get_content_type
from ..http.response import build_response_bytes
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


DEFAULT_STATIC_ROOT = "public"
INDEX_FILE = "/index.html"


@dataclass(frozen=True)
class StaticAsset:
    """
    Result of a static lookup.

    Attributes:
        found: Whether a readable file answered the path.
        content: File bytes (empty when not found).
        content_type: Content-Type from the suffix table ("" when not found).
    """

    found: bool
    content: bytes = b""
    content_type: str = ""

    @classmethod
    def not_found(cls) -> "StaticAsset":
        return cls(found=False)

    def to_bytes(self) -> bytes:
        """Serialize as a 200 response carrying the file bytes verbatim."""
        return build_response_bytes(HTTPStatus.OK, self.content_type, self.content)


class StaticAssetResolver:
    """
    Maps request paths to files below a root directory.

    Usage:
        resolver = StaticAssetResolver("public")
        asset = resolver.serve("/style.css")
        if asset.found:
            conn.send(asset.to_bytes())
    """

    def __init__(self, root: Union[str, Path] = DEFAULT_STATIC_ROOT):
        self.set_root(root)

    @property
    def root(self) -> Path:
        """The resolved static root directory."""
        return self._root

    def set_root(self, root: Union[str, Path]) -> None:
        """
        Replace the static root.

        The directory does not have to exist yet; until it does, every
        lookup is simply "not found".
        """
        self._root = Path(root).resolve()
        logger.debug(f"Static root set to {self._root}")

    def serve(self, path: str) -> StaticAsset:
        """
        Resolve a request path to a static asset.

        Missing files, directories, unreadable files and paths escaping
        the root all yield StaticAsset.not_found().

        Args:
            path: Request path without query string, e.g. "/index.html".
        """
        if path == "/":
            path = INDEX_FILE

        try:
            target = (self._root / path.lstrip("/")).resolve()
            target.relative_to(self._root)
        except ValueError:
            # relative_to() failed, or the path held a NUL byte
            logger.warning(f"Refused static path outside root: {path!r}")
            return StaticAsset.not_found()
        except OSError as e:
            logger.debug(f"Cannot resolve static path {path!r}: {e}")
            return StaticAsset.not_found()

        if not target.is_file():
            return StaticAsset.not_found()

        try:
            content = target.read_bytes()
        except OSError as e:
            logger.error(f"Error reading static file {target}: {e}")
            return StaticAsset.not_found()

        return StaticAsset(
            found=True,
            content=content,
            content_type=get_content_type(path),
        )
