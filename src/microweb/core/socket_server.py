"""
=============================================================================
TCP LISTENER AND ACCEPT LOOP
=============================================================================

SocketServer owns the listening socket and the dedicated acceptor thread.
It knows nothing about HTTP: every accepted client is wrapped in a
Connection and handed to a callback.

=============================================================================
SOCKET LIFECYCLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   bind()      socket() → setsockopt(SO_REUSEADDR) → bind → listen   │
    │       │       Errors here propagate: the caller must know that      │
    │       │       the port is taken.                                    │
    │       ▼                                                              │
    │   serve()     start "acceptor" thread:                              │
    │                   while running:                                    │
    │                       accept() ─► Connection ─► callback(conn)      │
    │       │                                                              │
    │       ▼                                                              │
    │   close()     running = False                                       │
    │               shutdown + close the listening socket                 │
    │               → the blocked accept() fails with OSError             │
    │               → the loop sees running == False and exits quietly    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WAKING A BLOCKED accept()
=============================================================================

On Linux, close() on a listening socket does NOT wake a thread already
blocked in accept() on it. shutdown(SHUT_RDWR) does. As a backstop for
platforms where shutdown() on a listener fails, accept() also uses a
short timeout so the loop re-checks the running flag regularly.

=============================================================================
"""

import socket
import logging
import threading
from typing import Callable, Optional, Tuple

from .connection import Connection


logger = logging.getLogger(__name__)

# accept() timeout; bounds how long close() may take to stop the loop
ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Low-level TCP server: one listening socket, one acceptor thread.

    Usage:
        def on_connection(conn: Connection):
            ...

        server = SocketServer("127.0.0.1", 0)
        server.bind()
        server.serve(on_connection)   # returns immediately
        ...
        server.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        backlog: int = 50,
        read_timeout: Optional[float] = None,
    ):
        """
        Args:
            host: Address to bind to.
            port: Port to bind to; 0 picks a free port.
            backlog: Kernel accept queue length.
            read_timeout: Applied to every accepted Connection.
        """
        self.host = host
        self.port = port
        self.backlog = backlog
        self.read_timeout = read_timeout

        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); the port is the real one after bind()."""
        return (self.host, self.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # SO_REUSEADDR: restart immediately even with old connections in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def bind(self) -> None:
        """
        Create, bind and listen.

        Raises:
            OSError: If the address is in use or not permitted.
        """
        sock = self._create_socket()
        try:
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {self.host}:{self.port}: {e}")
            raise

        self._socket = sock
        # Learn the real port when 0 was requested
        self.port = sock.getsockname()[1]
        logger.debug(f"Listening on {self.host}:{self.port}")

    def serve(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Start the acceptor thread. Returns immediately.

        Args:
            connection_handler: Called on the acceptor thread for every
                                accepted connection. It must not block;
                                HTTPServer hands the connection to the
                                thread pool.
        """
        if self._socket is None:
            raise RuntimeError("bind() must be called before serve()")

        self._running = True
        self._thread = threading.Thread(
            target=self._accept_loop,
            args=(connection_handler,),
            name="acceptor",
            daemon=True,
        )
        self._thread.start()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        ┌─────────────────────────────────────────────────────────────────┐
        │                     Accept Loop Flow                             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while running:                                                 │
        │       accept()                                                   │
        │         ├── timeout           → loop (re-check running)          │
        │         ├── OSError, running  → log, keep accepting              │
        │         ├── OSError, stopped  → exit silently                    │
        │         └── (sock, addr)      → connection_handler(Connection)   │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘
        """
        listener = self._socket

        while self._running:
            try:
                client_socket, client_address = listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break  # close() was called; this failure is the exit signal
                logger.error(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            try:
                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    read_timeout=self.read_timeout,
                )
            except OSError as e:
                logger.error(f"Failed to set up connection from {client_address[0]}: {e}")
                client_socket.close()
                continue

            connection_handler(conn)

        logger.debug("Accept loop exited")

    def close(self, join_timeout: Optional[float] = None) -> None:
        """
        Stop accepting and release the listening socket. Idempotent.

        Args:
            join_timeout: How long to wait for the acceptor thread.
                          Defaults to slightly more than one poll interval.
        """
        self._running = False

        sock, self._socket = self._socket, None
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # Not supported on listeners everywhere; the poll covers it
            try:
                sock.close()
            except OSError as e:
                logger.error(f"Error closing listening socket: {e}")

        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=join_timeout if join_timeout is not None
                        else ACCEPT_POLL_INTERVAL + 1.0)
