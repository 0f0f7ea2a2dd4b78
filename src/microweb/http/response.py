"""
=============================================================================
HTTP RESPONSE BUILDING AND SERIALIZATION
=============================================================================

A handler never writes to the socket. It receives a mutable Response,
adjusts status, content type and headers on it, and RETURNS the body:

    def greeting(request, response):
        response.status(201).header("X-Greeting", "yes")
        return "Hello, World!"

The dispatcher then combines the Response with the returned body and
serializes both with build_response_bytes().

=============================================================================
WIRE FORMAT
=============================================================================

Every response this engine produces, whether it came from a handler, a
static file or an error, has the same shape and header order:

    HTTP/1.1 200 OK\\r\\n                        ← Status line
    Content-Type: text/plain; charset=utf-8\\r\\n
    X-Custom: value\\r\\n                         ← Handler headers (if any)
    Content-Length: 13\\r\\n                      ← Encoded body length
    Connection: close\\r\\n                       ← Always; no keep-alive
    \\r\\n
    Hello Docker!                               ← Body bytes

Content-Length counts BYTES, not characters: "Olá" is 3 characters but 4
UTF-8 bytes. Getting this wrong makes clients truncate or hang.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .status_codes import HTTPStatus, reason_phrase


HTTP_VERSION = "HTTP/1.1"

DEFAULT_CONTENT_TYPE = "text/plain; charset=utf-8"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"

# Headers the engine always writes itself
_RESERVED_HEADERS = {"content-length", "connection"}


@dataclass
class Response:
    """
    Mutable response metadata owned by one handler invocation.

    The body is NOT stored here; it is the handler's return
    value. Every setter returns ``self`` for chaining::

        response.status(404).html()

    Attributes:
        status_code:  Status code, 200 unless changed.
        content_type: Content-Type header value.
        headers:      Extra headers written after Content-Type.
    """

    status_code: int = HTTPStatus.OK
    content_type: str = DEFAULT_CONTENT_TYPE
    headers: Dict[str, str] = field(default_factory=dict)

    def status(self, code: int) -> "Response":
        """Set the status code."""
        self.status_code = code
        return self

    def type(self, content_type: str) -> "Response":
        """Set the Content-Type header value."""
        self.content_type = content_type
        return self

    def json(self) -> "Response":
        """Mark the body as JSON. The handler still returns the encoded text."""
        return self.type(JSON_CONTENT_TYPE)

    def html(self) -> "Response":
        """Mark the body as HTML."""
        return self.type(HTML_CONTENT_TYPE)

    def header(self, name: str, value: str) -> "Response":
        """
        Set an extra response header. A later call with the same name
        replaces the earlier value.

        "Content-Type" is routed to type(). "Content-Length" and
        "Connection" are computed by the engine and ignored here.

        Raises:
            ValueError: If the name or value contains CR or LF, which would
                        let a handler inject arbitrary header lines.
        """
        if any(ch in name or ch in value for ch in "\r\n"):
            raise ValueError(f"Invalid characters in header {name!r}")

        if name.lower() == "content-type":
            return self.type(value)

        self.headers[name] = value
        return self

    def to_bytes(self, body: str | bytes = "") -> bytes:
        """Serialize this response with the handler's body."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        return build_response_bytes(
            self.status_code, self.content_type, body, self.headers
        )


def build_response_bytes(
    status_code: int,
    content_type: str,
    body: bytes,
    headers: Optional[Dict[str, str]] = None,
) -> bytes:
    """
    Serialize a complete response.

    Args:
        status_code: Any integer code; unmapped codes get "Unknown Status".
        content_type: Content-Type header value.
        body: Encoded body bytes.
        headers: Extra headers, written between Content-Type and
                 Content-Length in insertion order.

    Returns:
        Bytes ready for socket.sendall().
    """
    code = int(status_code)
    lines = [
        f"{HTTP_VERSION} {code} {reason_phrase(code)}",
        f"Content-Type: {content_type}",
    ]

    for name, value in (headers or {}).items():
        if name.lower() in _RESERVED_HEADERS:
            continue
        lines.append(f"{name}: {value}")

    lines.append(f"Content-Length: {len(body)}")
    lines.append("Connection: close")
    lines.append("")

    head = "\r\n".join(lines).encode("utf-8") + b"\r\n"
    return head + body


def error_response_bytes(status_code: int, message: str) -> bytes:
    """
    Serialize an HTML error page.

    Example output body for (404, "Not Found")::

        <html><body><h1>404 Not Found</h1><p>Not Found</p></body></html>

    ``message`` is written verbatim; callers pass fixed text, never
    exception details.
    """
    code = int(status_code)
    body = (
        f"<html><body><h1>{code} {reason_phrase(code)}</h1>"
        f"<p>{message}</p></body></html>"
    )
    return build_response_bytes(code, HTML_CONTENT_TYPE, body.encode("utf-8"))


# =============================================================================
# CONVENIENCE ERROR PAGES
# =============================================================================

def bad_request() -> bytes:
    return error_response_bytes(HTTPStatus.BAD_REQUEST, "Bad Request")


def not_found() -> bytes:
    return error_response_bytes(HTTPStatus.NOT_FOUND, "Not Found")


def request_timeout() -> bytes:
    return error_response_bytes(HTTPStatus.REQUEST_TIMEOUT, "Request Timeout")


def internal_error() -> bytes:
    return error_response_bytes(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")
