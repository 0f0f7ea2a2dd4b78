"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

Run the sample application:

    python -m microweb                        # PORT env var or 4567
    python -m microweb --port 3000
    python -m microweb --static ./public --log-level DEBUG
    PORT=8080 python -m microweb              # what container platforms do

Options left unset on the command line fall back to the environment
(see ServerConfig.from_env), then to the built-in defaults.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .demo import create_demo_app


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Overlay explicitly given CLI options on the environment config."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.worker_count = args.workers
    if args.static is not None:
        config.static_root = args.static
    if args.read_timeout is not None:
        config.read_timeout = args.read_timeout
    if args.log_level is not None:
        config.log_level = args.log_level

    return config


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="microweb",
        description="Minimal HTTP/1.1 web engine serving a demo application",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m microweb                      # Run with defaults
  python -m microweb --port 3000          # Custom port
  python -m microweb --host 127.0.0.1     # Localhost only
  python -m microweb --static ./public    # Serve static files
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0, or HTTP_HOST)",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 4567, or PORT)",
    )

    parser.add_argument(
        "--read-timeout",
        type=float,
        default=None,
        help="Seconds to wait for a request before answering 408 (default: wait forever)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of worker threads (default: 10, or HTTP_WORKERS)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--static", "-s",
        default=None,
        help="Directory to serve static files from (default: public)",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"microweb {__version__}",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = build_config(args)
        config.validate()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    app = create_demo_app(config)

    try:
        app.run()
    except OSError as e:
        print(f"Could not start server: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
