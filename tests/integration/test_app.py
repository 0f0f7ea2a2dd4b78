"""
Integration tests for the WebApp facade, the demo app and the CLI.
"""

import os
import signal
import socket
import threading
import time
from pathlib import Path

import pytest

from microweb import ServerConfig, WebApp, __version__, create_app
from microweb.__main__ import build_config, main, parse_args
from microweb.demo import INDEX_HTML, create_demo_app


class TestWebApp:
    """Tests for route registration and lifecycle through the facade."""

    def test_decorator_and_direct_registration(self, config: ServerConfig):
        """Route helpers work as decorators and as plain calls."""
        app = WebApp(config)

        @app.get("/a")
        def a(request, response):
            return "a"

        def b(request, response):
            return "b"

        returned = app.post("/b", b)
        app.put("/c", b)
        app.delete("/d", b)

        assert returned is b
        assert a(None, None) == "a"
        assert app.route_count() == 4
        assert app.router.find_route("DELETE", "/d").handler is b

    def test_apps_are_isolated(self, config: ServerConfig):
        """Two apps never share routes."""
        first = WebApp(config)
        second = create_app(config)

        first.get("/only-first", lambda req, res: "x")

        assert first.route_count() == 1
        assert second.route_count() == 0

    def test_invalid_config_rejected(self):
        """The constructor validates its configuration."""
        with pytest.raises(ValueError):
            WebApp(ServerConfig(worker_count=0))

    def test_set_static_root_while_running(self, app: WebApp, send_request, tmp_path: Path):
        """Changing the static root takes effect on the next request."""
        other = tmp_path / "other"
        other.mkdir()
        (other / "index.html").write_text("<h1>Other</h1>", encoding="utf-8")

        app.set_static_root(other)

        assert send_request(app.port, b"GET / HTTP/1.1\r\n\r\n").text == "<h1>Other</h1>"

    def test_route_registered_after_start(self, app: WebApp, send_request):
        """Routes added to a running app are served."""
        app.get("/late", lambda req, res: "late")

        assert send_request(app.port, b"GET /late HTTP/1.1\r\n\r\n").text == "late"

    def test_start_stop(self, config: ServerConfig):
        """start() and stop() drive is_running()."""
        app = WebApp(config)
        assert not app.is_running()
        assert app.port is None

        app.start()
        assert app.is_running()
        assert app.port > 0

        app.stop()
        assert not app.is_running()
        assert app.wait(timeout=0.1)

    def test_run_returns_after_stop(self, config: ServerConfig):
        """run() blocks until another thread stops the app."""
        app = WebApp(config)

        def stopper():
            deadline = time.monotonic() + 5.0
            while not app.is_running() and time.monotonic() < deadline:
                time.sleep(0.05)
            app.stop()

        threading.Thread(target=stopper, daemon=True).start()
        app.run(port=0)

        assert not app.is_running()

    def test_run_stops_on_sigterm(self, config: ServerConfig):
        """SIGTERM triggers a graceful stop and the old handler comes back."""
        previous = signal.getsignal(signal.SIGTERM)
        app = WebApp(config)

        def terminate():
            deadline = time.monotonic() + 5.0
            while not app.is_running() and time.monotonic() < deadline:
                time.sleep(0.05)
            os.kill(os.getpid(), signal.SIGTERM)

        threading.Thread(target=terminate, daemon=True).start()
        app.run(port=0)

        assert not app.is_running()
        assert signal.getsignal(signal.SIGTERM) is previous


class TestDemoApp:
    """Tests for the sample application."""

    @pytest.fixture
    def demo(self, config: ServerConfig, tmp_path: Path):
        config.static_root = str(tmp_path)
        demo_app = create_demo_app(config)
        demo_app.start()
        yield demo_app
        demo_app.stop()

    def test_routes_registered(self, config: ServerConfig):
        """The demo registers exactly its three GET routes."""
        app = create_demo_app(config)

        assert app.route_count() == 3
        assert {(r.method, r.path) for r in app.router} == {
            ("GET", "/"), ("GET", "/hello"), ("GET", "/greeting"),
        }

    def test_index_page(self, demo: WebApp, send_request):
        """The landing page is HTML."""
        response = send_request(demo.port, b"GET / HTTP/1.1\r\n\r\n")

        assert response.status_code == 200
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert response.text == INDEX_HTML

    def test_hello(self, demo: WebApp, send_request):
        """/hello answers with the fixed greeting."""
        assert send_request(demo.port, b"GET /hello HTTP/1.1\r\n\r\n").text == "Hello Docker!"

    @pytest.mark.parametrize("target,expected", [
        (b"/greeting", "Hello, World!"),
        (b"/greeting?name=World", "Hello, World!"),
        (b"/greeting?name=Angie%20Ramos", "Hello, Angie Ramos!"),
        (b"/greeting?name=", "Hello, World!"),
    ])
    def test_greeting(self, demo: WebApp, send_request, target: bytes, expected: str):
        """/greeting uses the name parameter or falls back to World."""
        response = send_request(demo.port, b"GET " + target + b" HTTP/1.1\r\n\r\n")

        assert response.text == expected


class TestCommandLine:
    """Tests for argument parsing and config overlay."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("PORT", "HTTP_HOST", "HTTP_WORKERS", "HTTP_READ_TIMEOUT",
                     "HTTP_STATIC_ROOT", "HTTP_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        """No flags and no environment gives the default config."""
        assert build_config(parse_args([])) == ServerConfig()

    def test_flags(self):
        """Every flag lands on its config field."""
        args = parse_args([
            "--host", "127.0.0.1",
            "--port", "3000",
            "--workers", "2",
            "--static", "site",
            "--read-timeout", "1.5",
            "--log-level", "DEBUG",
        ])
        config = build_config(args)

        assert config.host == "127.0.0.1"
        assert config.port == 3000
        assert config.worker_count == 2
        assert config.static_root == "site"
        assert config.read_timeout == 1.5
        assert config.log_level == "DEBUG"

    def test_flags_override_environment(self, monkeypatch):
        """Explicit flags win; unset flags keep the environment value."""
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("HTTP_WORKERS", "7")

        config = build_config(parse_args(["-p", "9090"]))

        assert config.port == 9090
        assert config.worker_count == 7

    def test_version(self, capsys):
        """--version prints the package version and exits."""
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_invalid_config_exit_code(self, capsys):
        """An invalid value exits with status 2 before anything binds."""
        assert main(["--workers", "0"]) == 2
        assert "Invalid configuration" in capsys.readouterr().err

    def test_bind_failure_exit_code(self, capsys):
        """A busy port exits with status 1."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            taken = blocker.getsockname()[1]

            code = main(["--host", "127.0.0.1", "--port", str(taken), "--log-level", "ERROR"])

        assert code == 1
        assert "Could not start server" in capsys.readouterr().err
