"""
=============================================================================
STATUS CODES AND REASON PHRASES
=============================================================================

Every response this engine writes starts with a status line:

    HTTP/1.1 404 Not Found
    ──┬───── ─┬─ ────┬────
      │       │      │
   Version   Code   Reason phrase

The reason phrase comes from a small, FIXED table. The engine itself only
ever produces 200, 400, 404, 408 and 500. A handler that picks any code
outside the table still gets a well-formed status line with a placeholder:

    HTTP/1.1 418 Unknown Status

=============================================================================
WHY AN IntEnum?
=============================================================================

IntEnum members compare equal to plain integers, so handlers can write
either style and the serializer does not care:

    response.status(404)
    response.status(HTTPStatus.NOT_FOUND)

=============================================================================
"""

from enum import IntEnum


UNKNOWN_STATUS_PHRASE = "Unknown Status"


class HTTPStatus(IntEnum):
    """
    The status codes with a known reason phrase.

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408           # Only produced when a read timeout is configured

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """Reason phrase for this status code."""
        return _STATUS_PHRASES[self]

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}


def reason_phrase(code: int) -> str:
    """
    Look up the reason phrase for any integer status code.

    Unmapped codes get ``"Unknown Status"``; this never raises.

    Examples:
        >>> reason_phrase(200)
        'OK'
        >>> reason_phrase(299)
        'Unknown Status'
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return UNKNOWN_STATUS_PHRASE
