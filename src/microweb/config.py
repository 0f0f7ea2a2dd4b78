"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables of the engine in one typed, validated dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Explicit argument to start()                                   │
    │      └── app.start(8000)                                            │
    │                                                                      │
    │   2. Command-line arguments                                         │
    │      └── python -m microweb --port 3000                             │
    │                                                                      │
    │   3. Environment variables                                          │
    │      └── PORT=3000 python -m microweb                               │
    │                                                                      │
    │   4. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The port comes from plain ``PORT``, the variable container platforms
(Heroku, Cloud Run, Render) inject. Everything else uses an ``HTTP_`` prefix.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_PORT = 4567


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    Development:
        ServerConfig(host="127.0.0.1", log_level="DEBUG")

    Container:
        ServerConfig.from_env()        # PORT injected by the platform
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All interfaces (required inside containers)
    - "127.0.0.1" - Localhost only
    """

    port: int = DEFAULT_PORT
    """
    The port used by start() when none is passed. 0 asks the OS for any
    free port; read HTTPServer.port afterwards to learn which one.
    """

    backlog: int = 50
    """Connections the kernel queues before accept() picks them up."""

    read_timeout: Optional[float] = None
    """
    Seconds a single socket read may block.
    None = block forever. A silent client then holds a worker until it
    disconnects, so set this on anything exposed to the internet.
    """

    # ─────────────────────────────────────────────────────────────────────
    # WORKER POOL
    # ─────────────────────────────────────────────────────────────────────

    worker_count: int = 10
    """
    Fixed number of worker threads. Each handles one connection at a
    time; extra connections wait in an unbounded queue.
    """

    shutdown_grace: float = 10.0
    """
    Seconds stop() waits for in-flight and queued connections before
    forcibly cancelling the rest.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STATIC FILES
    # ─────────────────────────────────────────────────────────────────────

    static_root: str = "public"
    """Directory searched when no route matches the request path."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level used by WebApp.run() (DEBUG, INFO, WARNING, ERROR)."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        PORT               Server port (default: 4567)
        HTTP_HOST          Bind address (default: 0.0.0.0)
        HTTP_WORKERS       Worker threads (default: 10)
        HTTP_READ_TIMEOUT  Read timeout in seconds (default: none)
        HTTP_STATIC_ROOT   Static files directory (default: public)
        HTTP_LOG_LEVEL     Logging level (default: INFO)

        =====================================================================
        """
        read_timeout = os.getenv("HTTP_READ_TIMEOUT")
        return cls(
            host=os.getenv("HTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", str(DEFAULT_PORT))),
            worker_count=int(os.getenv("HTTP_WORKERS", "10")),
            read_timeout=float(read_timeout) if read_timeout else None,
            static_root=os.getenv("HTTP_STATIC_ROOT", "public"),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.worker_count < 1:
            raise ValueError("worker_count must be >= 1")

        if self.shutdown_grace < 0:
            raise ValueError("shutdown_grace must be >= 0")

        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0 or None")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with dataclass
# 2. PORT plus HTTP_* environment variables
# 3. Validation at startup (fail-fast)
#
# PRODUCTION CHECKLIST:
# □ Set read_timeout (defaults to blocking forever)
# □ Size worker_count for the slowest expected handler
# □ Keep static_root free of anything private
# =============================================================================
