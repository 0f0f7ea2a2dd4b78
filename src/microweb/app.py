"""
=============================================================================
APPLICATION FACADE
=============================================================================

WebApp is what application code talks to. It collects routes and the
static root, then starts and stops an HTTPServer built from them.

    app = WebApp()

    @app.get("/hello")
    def hello(request, response):
        return "Hello Docker!"

    app.set_static_root("public")
    app.run()                      # blocks until Ctrl+C / SIGTERM

=============================================================================
NO GLOBAL STATE
=============================================================================

Every WebApp owns its own Router, StaticAssetResolver and server. Two
apps in one process (or one per test) never see each other's routes:

    ┌──────────────┐      ┌──────────────┐
    │ WebApp A     │      │ WebApp B     │
    │  Router A    │      │  Router B    │
    │  port 4567   │      │  port 8080   │
    └──────────────┘      └──────────────┘

=============================================================================
"""

import logging
import signal
from typing import Optional, Union
from pathlib import Path

from .config import ServerConfig
from .handlers import StaticAssetResolver
from .http import Handler, Router
from .server import HTTPServer


logger = logging.getLogger(__name__)


class WebApp:
    """
    Route registration plus start/stop for one server.

    Route helpers work both as decorators and as plain calls:

        @app.get("/hello")
        def hello(request, response): ...

        app.get("/hello", hello)
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.router = Router()
        self.static_resolver = StaticAssetResolver(self.config.static_root)
        self._server = HTTPServer(self.router, self.static_resolver, self.config)
        self._original_handlers: dict = {}

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def register_route(self, method: str, path: str, handler: Handler) -> None:
        """Register ``handler`` for the exact (method, path) pair."""
        self.router.add_route(method, path, handler)
        logger.debug(f"Registered {method} {path}")

    def _route(self, method: str, path: str, handler: Optional[Handler]):
        if handler is not None:
            self.register_route(method, path, handler)
            return handler

        def decorator(func: Handler) -> Handler:
            self.register_route(method, path, func)
            return func
        return decorator

    def get(self, path: str, handler: Optional[Handler] = None):
        """Register a GET route."""
        return self._route("GET", path, handler)

    def post(self, path: str, handler: Optional[Handler] = None):
        """Register a POST route."""
        return self._route("POST", path, handler)

    def put(self, path: str, handler: Optional[Handler] = None):
        """Register a PUT route."""
        return self._route("PUT", path, handler)

    def delete(self, path: str, handler: Optional[Handler] = None):
        """Register a DELETE route."""
        return self._route("DELETE", path, handler)

    def route_count(self) -> int:
        return self.router.route_count()

    def set_static_root(self, directory: Union[str, Path]) -> None:
        """Serve unmatched paths from ``directory``. Takes effect immediately."""
        self.static_resolver.set_root(directory)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def port(self) -> Optional[int]:
        """The bound port while running, else None."""
        return self._server.port

    def start(self, port: Optional[int] = None) -> None:
        """
        Start serving in the background. No-op when already running.

        Args:
            port: Overrides ``config.port`` for this start.

        Raises:
            OSError: If the port cannot be bound.
        """
        self._server.start(port)

    def stop(self) -> None:
        """Stop serving. No-op when already stopped."""
        self._server.stop()

    def is_running(self) -> bool:
        return self._server.is_running()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stopped; False if ``timeout`` expired first."""
        return self._server.wait(timeout)

    def run(self, port: Optional[int] = None) -> None:
        """
        Start the server and block until it is stopped.

        Installs SIGINT/SIGTERM handlers that call stop(), so Ctrl+C and
        ``docker stop`` both shut down gracefully. Must be called from the
        main thread (a restriction of the signal module).
        """
        self._setup_logging()
        self._setup_signals()
        try:
            self.start(port)
            print(f"Server running on http://localhost:{self.port}  (Ctrl+C to stop)")
            # Short waits keep the main thread responsive to signals
            while not self.wait(timeout=0.5):
                pass
        finally:
            self.stop()
            self._restore_signals()

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("microweb").setLevel(level)

    def _setup_signals(self) -> None:
        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()


def create_app(config: Optional[ServerConfig] = None) -> WebApp:
    """
    Create a web application.

    Example:
        app = create_app(ServerConfig(port=3000))

        @app.get("/")
        def index(request, response):
            response.html()
            return "<h1>Hi</h1>"
    """
    return WebApp(config)
