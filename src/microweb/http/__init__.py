"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows about the HTTP wire format lives here. Nothing in
this package touches a socket directly; the parser reads through any
object with a read_line() method and the serializers return bytes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py      Request value, RequestParser, query decoding         │
    │ response.py     Response builder, byte serialization, error pages    │
    │ router.py       Exact-match (method, path) → handler table           │
    │ status_codes.py Fixed code → reason phrase table                     │
    │ mime_types.py   File suffix → Content-Type table                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SUPPORTED SUBSET OF HTTP/1.1
=============================================================================

    REQUEST:                          RESPONSE:
    ─────────                         ──────────
    GET /path?q=1 HTTP/1.1\\r\\n        HTTP/1.1 200 OK\\r\\n
    Header: Value\\r\\n                 Content-Type: ...\\r\\n
    \\r\\n                              Content-Length: N\\r\\n
    (body ignored)                    Connection: close\\r\\n
                                      \\r\\n
                                      [body]

No keep-alive, no chunked encoding, no request bodies.

=============================================================================
"""

from .request import (
    Request,
    RequestParser,
    HTTPParseError,
    parse_request,
    parse_query_string,
)
from .response import (
    Response,
    build_response_bytes,
    error_response_bytes,
    bad_request,      # 400 page
    not_found,        # 404 page
    request_timeout,  # 408 page
    internal_error,   # 500 page
)
from .router import Router, Route, Handler
from .status_codes import HTTPStatus, reason_phrase
from .mime_types import get_content_type

__all__ = [
    # Request parsing
    "Request",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "parse_query_string",

    # Response building
    "Response",
    "build_response_bytes",
    "error_response_bytes",
    "bad_request",
    "not_found",
    "request_timeout",
    "internal_error",

    # Routing
    "Router",
    "Route",
    "Handler",

    # Status codes
    "HTTPStatus",
    "reason_phrase",

    # MIME types
    "get_content_type",
]
