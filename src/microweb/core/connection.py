"""
=============================================================================
CLIENT CONNECTION WRAPPER
=============================================================================

Every accepted TCP connection is wrapped in a Connection object before it
is handed to a worker thread. The wrapper gives the request parser a LINE
oriented view of the byte stream and owns the close sequence.

=============================================================================
ONE CONNECTION, ONE REQUEST
=============================================================================

This engine never keeps connections alive. The life of a connection is a
straight line:

    ┌──────────┐   ┌───────────┐   ┌──────────────┐   ┌──────────┐   ┌────────┐
    │ accepted │──►│ read head │──►│ run handler  │──►│ write    │──►│ close  │
    │  (NEW)   │   │ (READING) │   │ (PROCESSING) │   │(WRITING) │   │(CLOSED)│
    └──────────┘   └───────────┘   └──────────────┘   └──────────┘   └────────┘

The request body (if the client sent one) is never read. It is discarded
by the drain step of close().

=============================================================================
WHY makefile()?
=============================================================================

TCP is a byte STREAM: one recv() may return half a line, or three lines
and part of a fourth. socket.makefile("rb") gives us a buffered reader
whose readline() does the reassembly for us:

    recv() → b"GET /hel"              readline() → b"GET /hello HTTP/1.1\\r\\n"
    recv() → b"lo HTTP/1.1\\r\\nHost"   readline() → b"Host: x\\r\\n"
    recv() → b": x\\r\\n\\r\\n"          readline() → b"\\r\\n"

=============================================================================
TIMEOUTS
=============================================================================

By default reads block forever: a client that connects and sends nothing
occupies a worker until it goes away. Setting ``read_timeout`` turns a
stalled read into a TimeoutError that the dispatcher answers with 408.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional, Tuple


logger = logging.getLogger(__name__)

# Upper bounds on what close() reads and discards from the client
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Where a connection is in its single request/response cycle."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents one accepted client connection.

    Attributes:
        socket: The client socket returned by accept().
        address: Client's (ip, port) tuple.
        read_timeout: Seconds a single read may block. None blocks forever.
        id: Short random identifier used in log lines.
        state: Current ConnectionState.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: Tuple[str, int]
    read_timeout: Optional[float] = None

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        # settimeout(None) puts the socket in blocking mode
        self.socket.settimeout(self.read_timeout)
        self._reader = self.socket.makefile("rb")

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[str]:
        """
        Read one line from the client.

        The line terminator (``\\n`` or ``\\r\\n``) is stripped. Bytes are
        decoded as UTF-8; undecodable sequences become U+FFFD instead of
        failing the request.

        Returns:
            The line without its terminator, or None at end of stream.

        Raises:
            TimeoutError: If ``read_timeout`` is set and expires.
            OSError: On any other transport failure.
        """
        self.state = ConnectionState.READING
        raw = self._reader.readline()
        if not raw:
            return None
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        return raw.decode("utf-8", errors="replace")

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> None:
        """
        Write a complete response.

        sendall() loops until every byte is handed to the kernel; plain
        send() may stop early when the socket buffer is full.

        Raises:
            OSError: If the peer went away.
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def abort(self) -> None:
        """
        Wake up a thread blocked reading or writing this connection.

        Used for forced cancellation during shutdown. shutdown(SHUT_RDWR)
        makes a pending recv() return immediately; close() from another
        thread would not. The owning worker still runs close() itself.
        """
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone
        logger.debug(f"[{self.id}] Connection aborted")

    def close(self, drain: bool = True) -> None:
        """
        Close the connection gracefully.

        Args:
            drain: Discard pending client bytes before closing. Pass False
                   to close without reading anything more.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    Close Sequence                                │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   1. shutdown(SHUT_WR)   Send FIN: "no more data from us"       │
        │   2. drain               Discard what the client still sends,   │
        │                          at most DRAIN_LIMIT bytes within       │
        │                          DRAIN_TIMEOUT seconds in total         │
        │   3. close()             Release the file descriptor            │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Unread bytes left at close() make the kernel send an RST, which can
        discard the response before the client has read it.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        if drain:
            self._drain()

        try:
            self._reader.close()
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self) -> None:
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Includes socket.timeout

        if drained:
            logger.debug(f"[{self.id}] Discarded {drained} unread bytes")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
