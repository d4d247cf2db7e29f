"""
pytest configuration and fixtures.
"""

import socket
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Generator, List

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from simplewebserver import ServerConfig, WebServer
from simplewebserver.core.worker import ConnectionWorker


FIXED_NOW = datetime(2026, 10, 17, 9, 30, 0)

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\nIDATx\x9cc\x00\x01"
    b"\x00\x00\x05\x00\x01\r\n-\xb4\x00\x00\x00\x00IEND\xaeB`\x82"
)
GIF_BYTES = b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
FALLBACK_PNG_BYTES = b"\x89PNG\r\n\x1a\nfallback-image" + bytes(range(256))


@dataclass
class RawResponse:
    """A response split into status lines, headers and body."""

    status_lines: List[str]
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    raw: bytes = b""

    @property
    def status(self) -> int:
        return int(self.status_lines[0].split(" ")[1])


def split_response(raw: bytes) -> RawResponse:
    head, _, body = raw.partition(b"\r\n\r\n")
    status_lines, headers = [], {}
    for line in head.decode("latin-1").split("\r\n"):
        if line.startswith("HTTP/"):
            status_lines.append(line)
        elif ": " in line:
            name, value = line.split(": ", 1)
            headers[name] = value
    return RawResponse(status_lines, headers, body, raw)


def recv_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """
    A document root and a fallback directory:

        root/index.html      tokens on separate lines
        root/notes.txt       plain text with one token
        root/repeat.html     both tokens several times on one line
        root/logo.png        binary
        root/anim.gif        binary
        root/readme.md       unrecognized suffix
        root/sub/page.html
        fallback/404error.html
        fallback/missing.png
        secret.txt           outside the root
    """
    root = tmp_path / "root"
    fallback = tmp_path / "fallback"
    (root / "sub").mkdir(parents=True)
    fallback.mkdir()

    (root / "index.html").write_text(
        "<html>\n<body>\n<p><cs371date></p>\n<p><cs371server></p>\n</body>\n</html>\n"
    )
    (root / "notes.txt").write_text("served by <cs371server>\r\nsecond line\r\n")
    (root / "repeat.html").write_text(
        "<cs371date>|<cs371server>|<cs371date>|<cs371server>|<cs371date>\n"
    )
    (root / "logo.png").write_bytes(PNG_BYTES)
    (root / "anim.gif").write_bytes(GIF_BYTES)
    (root / "readme.md").write_text("# not served as a file\n")
    (root / "sub" / "page.html").write_text("<p>nested</p>\n")

    (fallback / "404error.html").write_text(
        "<html>\n<h1>Not Found</h1>\n<p><cs371server> on <cs371date></p>\n</html>\n"
    )
    (fallback / "missing.png").write_bytes(FALLBACK_PNG_BYTES)

    (tmp_path / "secret.txt").write_text("top secret\n")

    return tmp_path


@pytest.fixture
def config(site: Path) -> ServerConfig:
    """Configuration pointing at the test site."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        document_root=str(site / "root"),
        fallback_dir=str(site / "fallback"),
        server_name="Test Server",
        server_header="TestServer/1.0",
        log_level="WARNING",
    )


@pytest.fixture
def exchange(config: ServerConfig):
    """
    Run one ConnectionWorker over a socket pair.

    Returns a function taking raw request bytes (and optionally a config)
    and returning the parsed RawResponse.
    """
    def _exchange(
        raw_request: bytes,
        cfg: ServerConfig = None,
        clock=lambda: FIXED_NOW,
        half_close: bool = False,
    ) -> RawResponse:
        server_sock, client_sock = socket.socketpair()
        worker = ConnectionWorker(server_sock, ("127.0.0.1", 50000), cfg or config, clock=clock)
        thread = threading.Thread(target=worker.run, daemon=True)
        thread.start()
        try:
            client_sock.sendall(raw_request)
            if half_close:
                client_sock.shutdown(socket.SHUT_WR)
            raw = recv_all(client_sock)
        finally:
            client_sock.close()
        thread.join(timeout=5.0)
        assert not thread.is_alive()
        return split_response(raw)

    return _exchange


class TestServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: WebServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()
        if not self.server.wait_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def request(self, raw_request: bytes) -> RawResponse:
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as sock:
            sock.sendall(raw_request)
            return split_response(recv_all(sock))

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running WebServer on a free port."""
    test_srv = TestServer(WebServer(config))
    test_srv.start()

    yield test_srv

    test_srv.stop()
