"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

This module turns the head of an HTTP/1.1 request, read line by line off a
client connection, into an immutable Request value.

=============================================================================
WHAT WE READ
=============================================================================

    GET /greeting?name=Angie%20Ramos HTTP/1.1\\r\\n    ← Request line
    Host: localhost:4567\\r\\n                         ← Header
    User-Agent: curl/8.0\\r\\n                         ← Header
    \\r\\n                                             ← End of head
    (anything after this is NEVER read)

Only the request line and the headers are consumed. There is no body
support: a POST with Content-Length is accepted, but its body stays in
the socket and is thrown away when the connection closes.

=============================================================================
PARSING RULES
=============================================================================

REQUEST LINE
    Split on single spaces. Exactly three tokens are required:

        "GET /hello HTTP/1.1"      → OK
        "BADREQUEST"               → 400
        "GET /a b HTTP/1.1"        → 400 (four tokens)
        ""  (or connection closed) → 400

    Method and version are NOT validated. "BREW /pot HTCPCP/1.0" parses
    fine and simply matches no route.

TARGET
    Split at the FIRST "?":  "/a?b=1?c" → path "/a", query "b=1?c".
    The path is kept byte-exact: no percent-decoding, no normalization.

HEADERS
    Each line is split at its first ":". A line whose colon is missing or
    sits at position 0 is skipped silently. Name and value are trimmed.
    Names keep the case the client sent; a repeated name overwrites the
    earlier value.

=============================================================================
INTERVIEW QUESTIONS
=============================================================================

Q: "Why is header lookup case-sensitive here when RFC 7230 says header
    names are case-insensitive?"
A: "The engine exposes headers exactly as received so that handlers see
   what the client sent. Case-insensitive lookup could be layered on top
   in the handler. The trade-off is that 'host' and 'Host' are distinct
   keys."

Q: "What happens if a client never sends the blank line?"
A: "The parser keeps reading until end of stream. Without a read timeout
   that can block a worker forever, which is why ServerConfig exposes
   read_timeout as an opt-in hardening knob."

=============================================================================
"""

import io
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Protocol, Tuple
from urllib.parse import unquote_plus


class HTTPParseError(Exception):
    """
    Raised when the request head cannot be parsed.

    Carries the status code the client should receive. The parser in this
    module only ever produces 400.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class LineReader(Protocol):
    """Anything that yields one decoded line per call, None at end of stream."""

    def read_line(self) -> Optional[str]: ...


@dataclass(frozen=True)
class Request:
    """
    A parsed request head.

    Immutable, including the header and query mappings.

    Attributes:
        method:         Request method token exactly as sent ("GET").
        path:           Target without the query string ("/greeting").
        query_string:   Raw text after the first "?" ("" when absent).
        headers:        Header name → value, names as received.
        query_params:   Decoded query parameters (see parse_query_string).
        client_address: (ip, port) of the peer, ("", 0) when unknown.
    """

    method: str
    path: str
    query_string: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    query_params: Mapping[str, str] = field(default_factory=dict)
    client_address: Tuple[str, int] = ("", 0)

    def __post_init__(self):
        # frozen=True blocks attribute assignment; wrap the mappings too
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "query_params", MappingProxyType(dict(self.query_params)))

    @classmethod
    def from_target(
        cls,
        method: str,
        target: str,
        headers: Optional[Mapping[str, str]] = None,
        client_address: Tuple[str, int] = ("", 0),
    ) -> "Request":
        """
        Build a Request from a raw request target such as "/a?b=1".
        """
        path, _, query_string = target.partition("?")
        return cls(
            method=method,
            path=path,
            query_string=query_string,
            headers=headers or {},
            query_params=parse_query_string(query_string),
            client_address=client_address,
        )

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Header value by exact name, or ``default``."""
        return self.headers.get(name, default)

    def query_param(self, name: str, default: str = "") -> str:
        """
        Decoded query parameter value.

        Missing parameters yield ``default`` (an empty string unless given),
        so handlers can write::

            name = request.query_param("name") or "World"
        """
        return self.query_params.get(name, default)


def parse_query_string(query_string: str) -> Dict[str, str]:
    """
    Decode an ``application/x-www-form-urlencoded`` query string.

    ==========================================================================
    DECODING RULES
    ==========================================================================

        "name=Angie%20Ramos"   → {"name": "Angie Ramos"}
        "q=a+b"                → {"q": "a b"}          ("+" is a space)
        "flag"                 → {"flag": ""}
        "a=1&a=2"              → {"a": "2"}            (last one wins)
        "k=v=w"                → {"k": "v=w"}          (split at first "=")
        "=v"                   → {"=v": ""}            (no key before "=")
        "a=1&&b=2"             → {"a": "1", "b": "2"}  (empty pairs skipped)

    ==========================================================================

    Args:
        query_string: Text after the "?" without the "?" itself.

    Returns:
        Parameter name → decoded value.
    """
    params: Dict[str, str] = {}
    if not query_string:
        return params

    for pair in query_string.split("&"):
        if not pair:
            continue

        index = pair.find("=")
        if index > 0:
            key = unquote_plus(pair[:index])
            value = unquote_plus(pair[index + 1:])
        else:
            key = unquote_plus(pair)
            value = ""

        params[key] = value

    return params


class RequestParser:
    """
    Reads a request head from a LineReader and builds a Request.

    ==========================================================================
    PARSER FLOW
    ==========================================================================

        ┌───────────────────────────────────────────────────────────────┐
        │  1. read_line() → request line                                 │
        │     │  None or ""?          → HTTPParseError(400)              │
        │     │  not 3 tokens?        → HTTPParseError(400)              │
        │     ▼                                                          │
        │  2. Split target at first "?"                                  │
        │     ▼                                                          │
        │  3. read_line() until "" or None → headers                     │
        │     │  "Name: value" with colon at index > 0, else skipped     │
        │     ▼                                                          │
        │  4. Request(...)                                               │
        └───────────────────────────────────────────────────────────────┘

    ==========================================================================
    """

    def parse(
        self,
        reader: LineReader,
        client_address: Tuple[str, int] = ("", 0),
    ) -> Request:
        """
        Parse one request head.

        Args:
            reader: Source of decoded lines, usually a Connection.
            client_address: Peer address recorded on the Request.

        Returns:
            The parsed Request.

        Raises:
            HTTPParseError: If the request line is missing or malformed.
            TimeoutError, OSError: Propagated from the reader.
        """
        method, target = self._parse_request_line(reader.read_line())
        headers = self._parse_headers(reader)

        return Request.from_target(
            method=method,
            target=target,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(self, line: Optional[str]) -> Tuple[str, str]:
        """Validate the request line and return (method, target)."""
        if not line:
            raise HTTPParseError("Empty request line")

        # Trailing spaces do not create extra tokens
        tokens = line.rstrip(" ").split(" ")
        if len(tokens) != 3:
            raise HTTPParseError(f"Malformed request line: {line!r}")

        method, target, _version = tokens
        return method, target

    def _parse_headers(self, reader: LineReader) -> Dict[str, str]:
        headers: Dict[str, str] = {}

        while True:
            line = reader.read_line()
            if not line:
                break  # Blank line or end of stream

            colon = line.find(":")
            if colon <= 0:
                continue

            headers[line[:colon].strip()] = line[colon + 1:].strip()

        return headers


class _BytesLineReader:
    """LineReader over an in-memory buffer, mirroring Connection.read_line."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    def read_line(self) -> Optional[str]:
        raw = self._buffer.readline()
        if not raw:
            return None
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        return raw.decode("utf-8", errors="replace")


def parse_request(data: bytes, client_address: Tuple[str, int] = ("", 0)) -> Request:
    """
    Convenience function to parse a request head held in memory.

    Example:
        request = parse_request(b"GET /hello HTTP/1.1\\r\\n\\r\\n")
    """
    return RequestParser().parse(_BytesLineReader(data), client_address)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# Request            - immutable parsed head (method, path, query, headers)
# parse_query_string - form-style decoding, last duplicate wins
# RequestParser      - line-oriented parser; 400 on a bad request line
# parse_request      - parse from bytes, used by tests and tools
#
# NOT HANDLED ON PURPOSE:
# - Request bodies, chunked encoding, multipart forms
# - Header folding or case-insensitive lookup
# =============================================================================
