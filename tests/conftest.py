"""
pytest configuration and fixtures.
"""

import socket
from dataclasses import dataclass
from typing import Callable, Dict, Generator

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microweb import WebApp, ServerConfig


# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000100e221bc330000000049454e44ae426082"
)


@dataclass
class RawResponse:
    """A response split into its parts by parse_raw_response()."""
    status_code: int
    reason: str
    headers: Dict[str, str]
    header_names: list
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


def parse_raw_response(raw: bytes) -> RawResponse:
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    _version, code, reason = lines[0].split(" ", 2)

    headers: Dict[str, str] = {}
    names = []
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
        names.append(name)

    return RawResponse(int(code), reason, headers, names, body)


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /greeting?name=Angie%20Ramos HTTP/1.1\r\n"
        b"Host: localhost:4567\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/plain\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample POST request; the body must never be read."""
    body = b'{"name": "John"}'
    return (
        b"POST /submit HTTP/1.1\r\n"
        b"Host: localhost:4567\r\n"
        b"Content-Type: application/json\r\n"
        b"Content-Length: %d\r\n"
        b"\r\n"
    ) % len(body) + body


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration: localhost, OS-assigned port, short grace."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        worker_count=4,
        shutdown_grace=1.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def static_root(tmp_path: Path) -> Path:
    """A populated static directory plus a secret file just outside it."""
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<h1>Home</h1>", encoding="utf-8")
    (root / "style.css").write_text("body { color: red; }", encoding="utf-8")
    (root / "app.js").write_text("console.log('hi');", encoding="utf-8")
    (root / "logo.png").write_bytes(PNG_BYTES)
    (root / "notes.txt").write_text("plain notes", encoding="utf-8")
    (root / "docs").mkdir()
    (root / "docs" / "guide.html").write_text("<p>Guide</p>", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    return root


@pytest.fixture
def send_request() -> Callable[[int, bytes], RawResponse]:
    """
    Send raw bytes to 127.0.0.1:port and read until the server closes.
    """
    def _send(port: int, data: bytes, timeout: float = 5.0) -> RawResponse:
        with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
            s.sendall(data)
            chunks = []
            while True:
                chunk = s.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return parse_raw_response(b"".join(chunks))

    return _send


@pytest.fixture
def app(config: ServerConfig, static_root: Path) -> Generator[WebApp, None, None]:
    """A started WebApp with a few test routes and the static fixture root."""
    web_app = WebApp(config)
    web_app.set_static_root(static_root)

    @web_app.get("/hello")
    def hello(request, response):
        return "Hello Docker!"

    @web_app.get("/greeting")
    def greeting(request, response):
        return f"Hello, {request.query_param('name') or 'World'}!"

    @web_app.get("/boom")
    def boom(request, response):
        raise RuntimeError("database password is hunter2")

    web_app.start()
    yield web_app
    web_app.stop()
