"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the web server and its connection workers.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m simplewebserver --port 3000                     │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m simplewebserver                  │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The document root and the fallback directory are plain configuration
values. Nothing in the request-handling code knows where they live on
disk; workers only ever see the paths handed to them here.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the web server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, idle_wait

    FILESYSTEM
    - document_root, fallback_dir, not_found_page

    RESPONSE IDENTITY
    - server_header, server_name, date_token, server_token

    COMPATIBILITY SWITCHES
    - legacy_status_lines, confine_to_root

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """The IP address to bind to."""

    port: int = 8080
    """The port number to listen on."""

    backlog: int = 128
    """Maximum number of queued connections."""

    buffer_size: int = 8192
    """
    Chunk size in bytes for socket reads and for streaming binary files.
    A binary body is never held in memory larger than this.
    """

    idle_wait: float = 0.5
    """
    Seconds to block in one readiness check while waiting for request
    bytes. The wait repeats until data or end of stream arrives.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILESYSTEM
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "."
    """Directory under which request targets are resolved."""

    fallback_dir: str = "www"
    """
    Directory holding the generic 404 page and same-named substitutes
    for missing images.
    """

    not_found_page: str = "404error.html"
    """File name of the generic 404 page inside fallback_dir."""

    # ─────────────────────────────────────────────────────────────────────
    # RESPONSE IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_header: str = "SimpleWebServer/1.0"
    """Value of the Server response header."""

    server_name: str = "SimpleWebServer"
    """Literal substituted for the server token in text resources."""

    date_token: str = "<cs371date>"
    server_token: str = "<cs371server>"

    # ─────────────────────────────────────────────────────────────────────
    # COMPATIBILITY SWITCHES
    # ─────────────────────────────────────────────────────────────────────

    legacy_status_lines: bool = True
    """
    Write "HTTP/1.1 200 OK" after "HTTP/1.0 404 Not Found" on 404
    responses, matching the historical wire output. Set to False to emit
    a single status line.
    """

    confine_to_root: bool = False
    """
    Reject targets that resolve outside document_root (for example
    "/../secret.txt"). Off by default: targets are joined verbatim.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    @property
    def document_root_path(self) -> Path:
        return Path(self.document_root)

    @property
    def fallback_path(self) -> Path:
        return Path(self.fallback_dir)

    @property
    def not_found_path(self) -> Path:
        """Full path of the generic 404 page."""
        return self.fallback_path / self.not_found_page

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST           Server host (default: 127.0.0.1)
        HTTP_PORT           Server port (default: 8080)
        HTTP_DOCUMENT_ROOT  Document root (default: .)
        HTTP_FALLBACK_DIR   Fallback directory (default: www)
        HTTP_SERVER_NAME    Server-name token replacement
        HTTP_LOG_LEVEL      Logging level (default: INFO)

        =====================================================================
        """
        defaults = cls()
        return cls(
            host=os.getenv("HTTP_HOST", defaults.host),
            port=int(os.getenv("HTTP_PORT", str(defaults.port))),
            document_root=os.getenv("HTTP_DOCUMENT_ROOT", defaults.document_root),
            fallback_dir=os.getenv("HTTP_FALLBACK_DIR", defaults.fallback_dir),
            server_name=os.getenv("HTTP_SERVER_NAME", defaults.server_name),
            log_level=os.getenv("HTTP_LOG_LEVEL", defaults.log_level),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.idle_wait <= 0:
            raise ValueError("idle_wait must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if not self.document_root_path.is_dir():
            raise ValueError(f"Document root does not exist: {self.document_root}")

        if not self.date_token or not self.server_token:
            raise ValueError("Template tokens must not be empty")


def setup_logging(level: Optional[str] = "INFO") -> None:
    """Configure logging for the server process."""
    numeric = getattr(logging, (level or "INFO").upper(), logging.INFO)

    logging.basicConfig(
        level=numeric,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("simplewebserver").setLevel(numeric)
