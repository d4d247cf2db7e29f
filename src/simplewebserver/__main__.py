"""
=============================================================================
SIMPLEWEBSERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on localhost:8080
    python -m simplewebserver

    # Custom port and document root
    python -m simplewebserver --port 3000 --root ./www

    # Separate fallback directory for 404 pages and image substitutes
    python -m simplewebserver --root ./site --fallback ./errors

    # Hardened path handling and a single status line on 404
    python -m simplewebserver --strict-paths --single-status-line

Command-line flags override environment variables (see
ServerConfig.from_env), which override the defaults.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import LOG_LEVELS, ServerConfig, setup_logging
from .core.socket_server import WebServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simplewebserver",
        description="Serve files one request per connection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m simplewebserver                          # Serve . on 127.0.0.1:8080
  python -m simplewebserver --port 3000 --root www   # Custom port and root
  python -m simplewebserver --strict-paths           # Reject ../ escapes
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", default=None, help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port to listen on (default: 8080)")

    # ─────────────────────────────────────────────────────────────────────
    # FILESYSTEM ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--root", "-r", default=None, help="Document root (default: .)")
    parser.add_argument(
        "--fallback", "-f",
        default=None,
        help="Directory with 404error.html and image fallbacks (default: www)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOR ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--strict-paths",
        action="store_true",
        help="Treat targets resolving outside the document root as missing",
    )
    parser.add_argument(
        "--single-status-line",
        action="store_true",
        help="Send only '404 Not Found' on 404 responses, without the extra '200 OK' line",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--version", "-v", action="version", version=f"simplewebserver {__version__}")

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Overlay parsed CLI arguments onto the environment configuration."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.root is not None:
        config.document_root = args.root
    if args.fallback is not None:
        config.fallback_dir = args.fallback
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.strict_paths:
        config.confine_to_root = True
    if args.single_status_line:
        config.legacy_status_lines = False

    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        setup_logging(config.log_level)
        server = WebServer(config)
        server.serve_forever()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
