"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the line-oriented read API the
request parser needs and the write/close API the response assembler
needs.

=============================================================================
TCP IS A BYTE STREAM, NOT A LINE PROTOCOL
=============================================================================

A request header arrives in arbitrary chunks:

    First recv():   "GET /index.ht"
    Second recv():  "ml HTTP/1.1\r\nHost: loc"
    Third recv():   "alhost\r\n\r\n"

So we buffer what we receive and hand out complete lines, cutting at
each "\n" and dropping a trailing "\r".

=============================================================================
WAITING FOR INPUT
=============================================================================

A client may connect and only then start typing its request. "No data
yet" is not the end of the request, so readline() waits:

    while socket is not readable:
        select([socket], [], [], idle_wait)   ← blocks at most idle_wait

Each check blocks in the kernel for a bounded time instead of spinning,
and the loop repeats until bytes or end-of-stream arrive. There is no
overall deadline: a silent client keeps its worker waiting.

=============================================================================
"""

import logging
import select
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"              # Just accepted, nothing read yet
    READING = "reading"      # Reading request header lines
    WRITING = "writing"      # Sending response bytes
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple, when known.
        id: Short identifier used as a log prefix.
        state: Current connection state.
        bytes_sent: Total response bytes written.
    """

    socket: socket.socket
    address: tuple = ("", 0)

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    bytes_sent: int = 0

    buffer_size: int = 8192
    idle_wait: float = 0.5

    _buffer: bytes = field(default=b"", repr=False)
    _eof: bool = field(default=False, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)

    @property
    def client_ip(self) -> str:
        if isinstance(self.address, tuple) and self.address:
            return str(self.address[0]) or "-"
        return "-"

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def readline(self) -> Optional[bytes]:
        """
        Read one line from the client.

        Returns:
            The line without its terminator ("\\n" or "\\r\\n"), an
            unterminated tail if the stream ended mid-line, or None once
            the stream has ended and nothing is buffered.

        Raises:
            OSError: If the socket fails while reading.
        """
        self.state = ConnectionState.READING

        while b"\n" not in self._buffer and not self._eof:
            self._wait_readable()
            chunk = self._recv()
            if not chunk:
                self._eof = True
                break
            self._buffer += chunk

        if not self._buffer:
            return None

        line, sep, self._buffer = self._buffer.partition(b"\n")
        if line.endswith(b"\r"):
            line = line[:-1]
        return line

    def _wait_readable(self):
        """Block in bounded idle waits until the socket has data or EOF."""
        while True:
            readable, _, _ = select.select([self.socket], [], [], self.idle_wait)
            if readable:
                return

    def _recv(self) -> bytes:
        """Receive one chunk; a reset by the peer counts as end of stream."""
        try:
            return self.socket.recv(self.buffer_size)
        except ConnectionResetError:
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> None:
        """
        Send bytes to the client.

        Raises:
            OSError: BrokenPipeError, ConnectionResetError and friends when
                the client has gone away. The caller decides what to log.
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)
        self.bytes_sent += len(data)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): tell the client no more bytes are coming
        2. drain: discard whatever the client still sends, briefly
        3. close(): release the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Ensure the connection is closed; exceptions propagate."""
        self.close()
        return False
