"""
=============================================================================
microweb - A MINIMAL HTTP/1.1 WEB ENGINE
=============================================================================

A small web engine written directly on top of TCP sockets: no http.server,
no WSGI, no third-party protocol library. It parses a restricted subset of
HTTP/1.1 off the wire, routes requests to handlers by exact (method, path),
falls back to static files, and writes responses by hand.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         WebApp (app.py)                              │
    │        register routes · static root · start / stop / run            │
    └───────────────────────────────┬─────────────────────────────────────┘
                                    │
    ┌───────────────────────────────▼─────────────────────────────────────┐
    │                     HTTPServer (server.py)                           │
    │            STOPPED ⇄ RUNNING · owns listener and pool                │
    ├───────────────────────┬───────────────────────┬─────────────────────┤
    │  SocketServer         │  ThreadPool           │  Dispatcher         │
    │  acceptor thread      │  10 workers           │  parse → route →    │
    │                       │  unbounded queue      │  static → 404       │
    └───────────────────────┴───────────────────────┴─────────────────────┘

=============================================================================
QUICK START
=============================================================================

    from microweb import WebApp

    app = WebApp()

    @app.get("/hello")
    def hello(request, response):
        return "Hello Docker!"

    @app.get("/greeting")
    def greeting(request, response):
        return f"Hello, {request.query_param('name') or 'World'}!"

    app.set_static_root("public")
    app.run()

=============================================================================
WHAT IT DOES NOT DO
=============================================================================

- Keep-alive: every response carries "Connection: close"
- Request bodies: never read
- Chunked encoding, TLS, HTTP/2, multipart forms
- Path parameters ("/users/:id"), caching headers, directory listings

=============================================================================
"""

__version__ = "1.0.0"

from .app import WebApp, create_app
from .config import ServerConfig
from .server import HTTPServer, Dispatcher, ServerState

__all__ = [
    "WebApp",
    "create_app",
    "ServerConfig",
    "HTTPServer",
    "Dispatcher",
    "ServerState",
    "__version__",
]
