"""
End-to-end tests against a running WebServer over real TCP.
"""

import socket
import threading

from conftest import FALLBACK_PNG_BYTES, PNG_BYTES, recv_all, split_response


def get(target: str) -> bytes:
    return f"GET {target} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode()


class TestWebServer:

    def test_serves_text(self, test_server):
        response = test_server.request(get("/index.html"))

        assert response.status_lines == ["HTTP/1.1 200 OK"]
        assert b"Test Server" in response.body
        assert b"<cs371" not in response.body

    def test_serves_image(self, test_server):
        response = test_server.request(get("/logo.png"))
        assert response.body == PNG_BYTES

    def test_generic_404(self, test_server):
        response = test_server.request(get("/missing.html"))
        assert response.status_lines[0] == "HTTP/1.0 404 Not Found"

    def test_image_404(self, test_server):
        response = test_server.request(get("/missing.png"))
        assert response.body == FALLBACK_PNG_BYTES

    def test_one_request_per_connection(self, test_server):
        """A second request on the same socket is never answered."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as sock:
            sock.sendall(get("/index.html") + get("/notes.txt"))
            response = split_response(recv_all(sock))

        assert response.status_lines == ["HTTP/1.1 200 OK"]
        assert b"served by" not in response.body

    def test_concurrent_connections(self, test_server):
        results = {}

        def fetch(i):
            target = "/index.html" if i % 2 else "/logo.png"
            results[i] = (target, test_server.request(get(target)))

        threads = [threading.Thread(target=fetch, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert len(results) == 10
        for target, response in results.values():
            assert response.status == 200
            if target == "/logo.png":
                assert response.body == PNG_BYTES

    def test_slow_client_does_not_block_others(self, test_server):
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as slow:
            slow.sendall(b"GET /index.html HTTP/1.1\r\n")  # No blank line yet

            response = test_server.request(get("/notes.txt"))
            assert response.body == b"served by Test Serversecond line"

            slow.sendall(b"\r\n")
            slow_response = split_response(recv_all(slow))

        assert slow_response.status == 200

    def test_bound_to_ephemeral_port(self, test_server):
        assert test_server.port != 0
        assert test_server.server.is_running
