"""
=============================================================================
HTTP RESPONSE ASSEMBLER
=============================================================================

Writes the status line, header block and body of a response to the
client connection.

=============================================================================
WIRE FORMAT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    HTTP/1.0 404 Not Found\r\n          ← only for 404 outcomes      │
    │    HTTP/1.1 200 OK\r\n                 ← legacy: always present     │
    │    Date: Sat, 17 Oct 2026 12:00:00 GMT\r\n                          │
    │    Server: SimpleWebServer/1.0\r\n                                  │
    │    Connection: close\r\n                                            │
    │    Content-Type: text/html\r\n                                      │
    │    \r\n                                                              │
    │    <body bytes>                                                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The historical output of this server always carries the "200 OK" line,
even right after a "404 Not Found" line. That is reproduced when
legacy_status_lines is on; with it off a 404 response has exactly one
status line.

No Content-Length is sent. The connection is closed after every
response, and the close marks the end of the body.

=============================================================================
BODY VARIANTS
=============================================================================

    RenderedText(text)   → text encoded as UTF-8, written in one piece
    SyntheticPage(html)  → built-in HTML encoded as UTF-8
    FileStream(path)     → file copied from disk in buffer_size chunks

Exactly one variant is attached to every ResponseOutcome.

=============================================================================
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .status_codes import HTTPStatus
from .mime_types import content_type_or_default
from ..core.connection import Connection
from ..handlers.static import ResourceReadError


logger = logging.getLogger(__name__)


SYNTHETIC_PAGE = (
    "<html><head></head><body>\n"
    "<h3>My web server works!</h3>\n"
    "</body></html>\n"
)


@dataclass(frozen=True)
class RenderedText:
    text: str


@dataclass(frozen=True)
class FileStream:
    path: Path


@dataclass(frozen=True)
class SyntheticPage:
    html: str = SYNTHETIC_PAGE


Body = Union[RenderedText, FileStream, SyntheticPage]


@dataclass(frozen=True)
class ResponseOutcome:
    """
    Everything the assembler needs to write one response.

    Attributes:
        status: 200 or 404.
        body: Exactly one body variant.
        content_type: Probed MIME type, or None for the text/html default.
    """

    status: HTTPStatus
    body: Body
    content_type: Optional[str] = None

    @property
    def is_not_found(self) -> bool:
        return self.status == HTTPStatus.NOT_FOUND


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sat, 17 Oct 2026 12:00:00 GMT
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


class ResponseAssembler:
    """
    Serializes a ResponseOutcome onto a connection.

    Args:
        server_header: Value of the Server header.
        legacy_status_lines: Keep the always-present "200 OK" line.
        buffer_size: Chunk size for streaming files.
    """

    def __init__(
        self,
        server_header: str = "SimpleWebServer/1.0",
        legacy_status_lines: bool = True,
        buffer_size: int = 8192,
    ):
        self.server_header = server_header
        self.legacy_status_lines = legacy_status_lines
        self.buffer_size = buffer_size

    def status_lines(self, status: HTTPStatus) -> list:
        if status == HTTPStatus.NOT_FOUND:
            lines = [f"HTTP/1.0 {int(status)} {status.phrase}"]
            if self.legacy_status_lines:
                lines.append(f"HTTP/1.1 {int(HTTPStatus.OK)} {HTTPStatus.OK.phrase}")
            return lines
        return [f"HTTP/1.1 {int(status)} {status.phrase}"]

    def header_bytes(self, outcome: ResponseOutcome, now: Optional[datetime] = None) -> bytes:
        """Serialize status line(s) and headers, including the blank line."""
        now = now or datetime.now(timezone.utc)

        lines = self.status_lines(outcome.status)
        lines.append(f"Date: {format_http_date(now)}")
        lines.append(f"Server: {self.server_header}")
        lines.append("Connection: close")
        lines.append(f"Content-Type: {content_type_or_default(outcome.content_type)}")
        lines.append("")

        return ("\r\n".join(lines) + "\r\n").encode("utf-8")

    def write(self, conn: Connection, outcome: ResponseOutcome) -> None:
        """
        Write the full response: headers first, then the body.

        Raises:
            ResourceReadError: A FileStream source cannot be opened. Raised
                before any byte is written, so the caller may still send a
                different response.
            OSError: The client connection failed while writing.
        """
        body = outcome.body

        if isinstance(body, FileStream):
            source = self._open(body.path)
            with source:
                conn.send(self.header_bytes(outcome))
                self._stream(conn, source)
        elif isinstance(body, RenderedText):
            conn.send(self.header_bytes(outcome))
            conn.send(body.text.encode("utf-8", errors="surrogateescape"))
        elif isinstance(body, SyntheticPage):
            conn.send(self.header_bytes(outcome))
            conn.send(body.html.encode("utf-8"))
        else:
            raise TypeError(f"Unknown body variant: {body!r}")

    def _open(self, path: Path) -> BinaryIO:
        try:
            return open(path, "rb")
        except OSError as e:
            raise ResourceReadError(path, str(e)) from e

    def _stream(self, conn: Connection, source: BinaryIO) -> None:
        while True:
            chunk = source.read(self.buffer_size)
            if not chunk:
                break
            conn.send(chunk)
