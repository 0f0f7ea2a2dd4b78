"""
=============================================================================
DISPATCHER AND LIFECYCLE CONTROLLER
=============================================================================

This module ties the transport (core/) and the protocol (http/) together.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   acceptor thread            worker thread                           │
    │   ───────────────            ─────────────                           │
    │   accept()                                                           │
    │     └─► pool.submit() ───►  Dispatcher.handle_connection(conn)      │
    │                               │                                      │
    │                               ├─► RequestParser.parse(conn)         │
    │                               │     └─ HTTPParseError → 400, close  │
    │                               │                                      │
    │                               ├─► Dispatcher.dispatch(request)      │
    │                               │     1. router.find_route()          │
    │                               │          └─ handler(req, res)       │
    │                               │               └─ raises → 500       │
    │                               │     2. static_resolver.serve()      │
    │                               │     3. 404                          │
    │                               │                                      │
    │                               ├─► conn.send(bytes)                  │
    │                               └─► conn.close()   (always)           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SERVER STATE MACHINE
=============================================================================

            start()                 stop()
    STOPPED ───────► RUNNING ───────► STOPPED
       ▲  │              │  ▲
       └──┘              └──┘
     stop(): no-op    start(): no-op

=============================================================================
INTERVIEW QUESTIONS
=============================================================================

Q: "A handler raised an exception. What does the client see?"
A: "A generic 500 page. The exception and its traceback go to the server
   log only; leaking them would expose internals such as file paths or
   SQL to anyone who can trigger the error."

Q: "How does stop() interrupt a thread blocked in accept()?"
A: "It flips the state to STOPPED first, then shuts down the listening
   socket. accept() fails, and the loop treats a failure while STOPPED as
   its exit signal rather than an error."

=============================================================================
"""

import functools
import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .core.connection import ConnectionState
from .handlers import StaticAssetResolver
from .http import (
    HTTPParseError,
    Request,
    RequestParser,
    Response,
    Route,
    Router,
    error_response_bytes,
    internal_error,
    not_found,
    reason_phrase,
    request_timeout,
)


logger = logging.getLogger(__name__)


class ServerState(Enum):
    """Externally observable server states."""
    STOPPED = "stopped"
    RUNNING = "running"


def _encode_body(body: Any) -> bytes:
    """Turn a handler's return value into body bytes."""
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    return str(body).encode("utf-8")


class Dispatcher:
    """
    Handles one connection end to end: parse, dispatch, respond, close.

    The dispatcher holds no per-request state, so a single instance is
    shared by every worker thread.
    """

    def __init__(self, router: Router, static_resolver: StaticAssetResolver):
        self.router = router
        self.static_resolver = static_resolver
        self._parser = RequestParser()

    def dispatch(self, request: Request) -> bytes:
        """
        Produce the complete response bytes for a parsed request.

        Order: exact route match, then static asset, then 404.
        """
        route = self.router.find_route(request.method, request.path)
        if route is not None:
            return self._run_handler(route, request)

        # Static responses bypass the handler Response entirely
        asset = self.static_resolver.serve(request.path)
        if asset.found:
            return asset.to_bytes()

        return not_found()

    def _run_handler(self, route: Route, request: Request) -> bytes:
        response = Response()
        try:
            body = route.execute(request, response)
            return response.to_bytes(_encode_body(body))
        except Exception:
            # Details stay in the server log; the client gets a generic page
            logger.exception(f"Handler for {route.method} {route.path} failed")
            return internal_error()

    def handle_connection(
        self,
        conn: Connection,
        is_running: Callable[[], bool] = lambda: True,
    ) -> None:
        """
        Serve exactly one request on ``conn`` and close it.

        Args:
            conn: The accepted connection.
            is_running: Reports whether the server is still running.
                        Transport errors after shutdown are expected and
                        only logged at DEBUG.
        """
        with conn:
            try:
                try:
                    request = self._parser.parse(conn, conn.address)
                except HTTPParseError as e:
                    logger.debug(f"[{conn.id}] Parse error from {conn.client_ip}: {e}")
                    conn.send(error_response_bytes(e.status_code, reason_phrase(e.status_code)))
                    conn.close(drain=False)
                    return
                except TimeoutError:
                    logger.debug(f"[{conn.id}] Read timeout from {conn.client_ip}")
                    conn.send(request_timeout())
                    return

                conn.state = ConnectionState.PROCESSING
                payload = self.dispatch(request)

                logger.debug(
                    f"[{conn.id}] {request.method} {request.path} -> "
                    f"{payload.split(b' ', 2)[1].decode()}"
                )
                conn.send(payload)

            except OSError as e:
                if is_running():
                    logger.error(f"[{conn.id}] Connection error: {e}")
                else:
                    logger.debug(f"[{conn.id}] Connection error during shutdown: {e}")


class HTTPServer:
    """
    Lifecycle controller: owns the listening socket and the worker pool.

    =========================================================================
    USAGE
    =========================================================================

        router = Router()
        router.add_route("GET", "/hello", lambda req, res: "Hello Docker!")

        server = HTTPServer(router, StaticAssetResolver("public"))
        server.start(4567)      # returns once the port is bound
        ...
        server.stop()           # idempotent

    =========================================================================
    """

    def __init__(
        self,
        router: Optional[Router] = None,
        static_resolver: Optional[StaticAssetResolver] = None,
        config: Optional[ServerConfig] = None,
    ):
        self.config = config or ServerConfig()
        self.config.validate()

        self.router = router if router is not None else Router()
        self.static_resolver = (
            static_resolver
            if static_resolver is not None
            else StaticAssetResolver(self.config.static_root)
        )
        self.dispatcher = Dispatcher(self.router, self.static_resolver)

        self._state = ServerState.STOPPED
        # Reentrant: a signal handler may call stop() while start() holds it
        self._lock = threading.RLock()
        self._socket_server: Optional[SocketServer] = None
        self._thread_pool: Optional[ThreadPool] = None

        self._stopped = threading.Event()
        self._stopped.set()

        # stop() arriving mid-start (e.g. from a signal handler) is deferred
        self._starting = False
        self._stop_requested = False

    @property
    def state(self) -> ServerState:
        return self._state

    def is_running(self) -> bool:
        return self._state == ServerState.RUNNING

    @property
    def port(self) -> Optional[int]:
        """The bound port while running (useful after start(0)), else None."""
        socket_server = self._socket_server
        return socket_server.port if socket_server is not None else None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self, port: Optional[int] = None) -> None:
        """
        Bind and begin serving on a background acceptor thread.

        Args:
            port: Port to bind. Defaults to ``config.port``.

        Raises:
            OSError: If binding fails. The server stays STOPPED.
        """
        with self._lock:
            if self._state == ServerState.RUNNING:
                logger.warning(f"Server is already running on port {self.port}")
                return

            self._starting = True
            self._stop_requested = False
            try:
                self._start_locked(port)
            finally:
                self._starting = False

            if self._stop_requested:
                self._stop_requested = False
                logger.info("Stop requested during startup")
                self.stop()

    def _start_locked(self, port: Optional[int]) -> None:
        """Bind, start the pool and the acceptor. Caller holds the lock."""
        socket_server = SocketServer(
            host=self.config.host,
            port=self.config.port if port is None else port,
            backlog=self.config.backlog,
            read_timeout=self.config.read_timeout,
        )
        socket_server.bind()

        thread_pool = ThreadPool(worker_count=self.config.worker_count)
        try:
            thread_pool.start()
        except RuntimeError:
            socket_server.close()
            raise

        self._socket_server = socket_server
        self._thread_pool = thread_pool
        self._state = ServerState.RUNNING
        self._stopped.clear()

        socket_server.serve(functools.partial(self._submit, thread_pool))

        logger.info(
            f"Server started on {self.config.host}:{socket_server.port} "
            f"({self.config.worker_count} workers, "
            f"{self.router.route_count()} routes, "
            f"static root {self.static_resolver.root})"
        )

    def _submit(self, thread_pool: ThreadPool, conn: Connection) -> None:
        """Hand a connection to the pool (runs on the acceptor thread)."""
        try:
            thread_pool.submit(
                self.dispatcher.handle_connection,
                args=(conn, self.is_running),
                on_cancel=conn.abort,
            )
        except RuntimeError:
            # Pool already shutting down; stop() raced with accept()
            logger.debug(f"[{conn.id}] Dropping connection accepted during shutdown")
            conn.close()

    def stop(self) -> None:
        """
        Stop accepting, drain the pool within the grace period, then
        force-cancel what remains. Calling stop() on a stopped server does
        nothing.
        """
        with self._lock:
            if self._starting:
                # Re-entered from start() on this thread; finish starting first
                self._stop_requested = True
                return

            if self._state == ServerState.STOPPED:
                return

            logger.info("Shutting down server...")
            self._state = ServerState.STOPPED

            socket_server, self._socket_server = self._socket_server, None
            thread_pool, self._thread_pool = self._thread_pool, None

            try:
                socket_server.close()
                if not thread_pool.shutdown(grace=self.config.shutdown_grace):
                    logger.warning("Some connections were cancelled during shutdown")
            except Exception:
                logger.exception("Error during shutdown")
            finally:
                self._stopped.set()

            logger.info("Server stopped")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the server is stopped.

        Returns:
            True if stopped, False if the timeout expired first.
        """
        return self._stopped.wait(timeout)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# Dispatcher  - parse → route → static → 404, one connection per call
# HTTPServer  - STOPPED/RUNNING state, bind, acceptor, pool, shutdown
#
# KEY DECISIONS:
# - Every response closes the connection
# - Handler failures become 500 with no detail leaked
# - Shutdown: close listener, grace period, then abort remaining sockets
# =============================================================================
