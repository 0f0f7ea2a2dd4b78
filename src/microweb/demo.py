"""
Sample application: a landing page and two greeting endpoints.

    GET /           HTML page listing the endpoints
    GET /hello      "Hello Docker!"
    GET /greeting   "Hello, {name}!"   (?name=..., defaults to World)

Run it with ``python -m microweb``.
"""

from typing import Optional

from .app import WebApp
from .config import ServerConfig
from .http import Request, Response


INDEX_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>Welcome - microweb</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; line-height: 1.6; }
        h1 { color: #333; }
        .container { max-width: 800px; margin: 0 auto; }
        .endpoints { background: #f4f4f4; padding: 20px; border-radius: 5px; }
        .endpoint { margin-bottom: 10px; }
        a { color: #0066cc; text-decoration: none; }
        a:hover { text-decoration: underline; }
    </style>
</head>
<body>
    <div class="container">
        <h1>Welcome to microweb</h1>
        <p>A demo application running on a web engine built from raw sockets.</p>

        <div class="endpoints">
            <h2>Available endpoints:</h2>
            <div class="endpoint"><a href="/hello">/hello</a> - Returns a simple greeting</div>
            <div class="endpoint"><a href="/greeting?name=Angie%20Ramos">/greeting?name=Angie Ramos</a> - Returns a personalised greeting</div>
        </div>
    </div>
</body>
</html>"""


def index(request: Request, response: Response) -> str:
    response.html()
    return INDEX_HTML


def hello(request: Request, response: Response) -> str:
    return "Hello Docker!"


def greeting(request: Request, response: Response) -> str:
    name = request.query_param("name") or "World"
    return f"Hello, {name}!"


def create_demo_app(config: Optional[ServerConfig] = None) -> WebApp:
    """Build the sample app with its three routes registered."""
    app = WebApp(config)
    app.get("/", index)
    app.get("/hello", hello)
    app.get("/greeting", greeting)
    return app
