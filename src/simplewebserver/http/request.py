"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads the request header block from a connection, one line at a time,
and keeps only what the worker needs: the method and the target.

=============================================================================
WHAT WE READ
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    GET /docs/index.html HTTP/1.1      ← request line: kept          │
    │    ─┬─ ───────┬───────  ────┬───                                    │
    │   Method    Target       Version (ignored)                          │
    │                                                                      │
    │    Host: localhost:8080               ← header lines: read and      │
    │    User-Agent: curl/8.0                 discarded                   │
    │    Accept: */*                                                       │
    │                                                                      │
    │    (empty line)                       ← end of header block         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Request bodies are never read.

=============================================================================
BEST EFFORT
=============================================================================

Parsing never fails the connection. A malformed request line, a socket
error, or an early end of stream stops reading and the worker carries on
with whatever was parsed, possibly an empty method and target. The
Request records this in its `complete` flag.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from ..core.connection import Connection


logger = logging.getLogger(__name__)


class HTTPParseError(Exception):
    """Raised when a request line cannot be split into method and target."""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


@dataclass(frozen=True)
class Request:
    """
    The parsed request, created once per connection.

    Attributes:
        method: Request method as sent (e.g. "GET"), possibly empty.
        target: Raw request-target as sent (e.g. "/a/b.html"), possibly empty.
        request_line: The first line as received, for logging.
        complete: False when parsing stopped early on an error.
    """

    method: str = ""
    target: str = ""
    request_line: str = ""
    complete: bool = True

    @property
    def is_get(self) -> bool:
        return self.method == "GET"


def parse_request_line(line: str) -> Tuple[str, str]:
    """
    Split a request line into (method, target).

    Tokens are separated by single spaces; anything after the target
    (the HTTP version) is ignored.

    Raises:
        HTTPParseError: If the line has no target token.

    Examples:
        >>> parse_request_line("GET /index.html HTTP/1.1")
        ('GET', '/index.html')
    """
    tokens = line.split(" ")
    if len(tokens) < 2:
        raise HTTPParseError(f"Malformed request line: {line!r}", line)
    return tokens[0], tokens[1]


class RequestParser:
    """
    Reads one request header block from a connection.

    Usage:
        request = RequestParser().parse(conn)
    """

    encoding = "latin-1"

    def parse(self, conn: Connection) -> Request:
        """
        Consume header lines until the blank line or end of stream.

        Args:
            conn: Open client connection.

        Returns:
            The Request built from the first line.
        """
        method = target = request_line = ""
        complete = True
        first = True

        while True:
            try:
                raw = conn.readline()
            except OSError as e:
                logger.warning(f"[{conn.id}] Request error: {e}")
                complete = False
                break

            if raw is None:
                # Stream ended before the blank line
                if first:
                    complete = False
                break

            line = raw.decode(self.encoding, errors="replace")
            logger.debug(f"[{conn.id}] Request line: ({line})")

            if first:
                first = False
                request_line = line
                try:
                    method, target = parse_request_line(line)
                except HTTPParseError as e:
                    logger.warning(f"[{conn.id}] {e}")
                    method = line.split(" ")[0]
                    complete = False
                    break

            if not line:
                break

        return Request(
            method=method,
            target=target,
            request_line=request_line,
            complete=complete,
        )
