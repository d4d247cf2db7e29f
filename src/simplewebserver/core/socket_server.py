"""
=============================================================================
SOCKET SERVER
=============================================================================

The thin wrapper around the connection workers: a listening TCP socket
that accepts clients and starts one thread per connection.

=============================================================================
THREAD PER CONNECTION
=============================================================================

    accept() ──► (client_socket, address)
                    │
                    ▼
            threading.Thread(target=ConnectionWorker(...).run)
                    │
                    ▼
            worker parses, answers, closes; the thread ends

Workers share no mutable state, so no locks are needed. The accept
socket has a 1 second timeout so the loop can notice shutdown().

=============================================================================
SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) both trigger shutdown().
Handlers are only installed from the main thread, because Python only
allows signal.signal() there.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Optional, Tuple

from ..config import ServerConfig
from .worker import ConnectionWorker


logger = logging.getLogger(__name__)


class WebServer:
    """
    Accepts connections and hands each to a ConnectionWorker thread.

    Usage:
        server = WebServer(ServerConfig(port=8080, document_root="www"))
        server.serve_forever()   # Blocks until shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); the real port once bound to port 0."""
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is bound."""
        return self._ready.wait(timeout)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def serve_forever(self) -> None:
        """Bind, listen and accept until shutdown() is called."""
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            raise

        self._socket.listen(self.config.backlog)
        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(
            f"Serving {self.config.document_root} on {host}:{port} "
            f"(fallback: {self.config.fallback_dir})"
        )
        self._ready.set()

        try:
            self._accept_loop()
        finally:
            self._cleanup()

    def _accept_loop(self):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")
            self.dispatch(client_socket, client_address)

    def dispatch(self, client_socket: socket.socket, client_address: tuple) -> threading.Thread:
        """Start a worker thread for one accepted connection."""
        worker = ConnectionWorker(client_socket, client_address, self.config)
        thread = threading.Thread(
            target=worker.run,
            name=f"worker-{worker.conn.id}",
            daemon=True,
        )
        thread.start()
        return thread

    def shutdown(self):
        """Stop accepting connections. Safe to call more than once."""
        logger.info("Shutting down web server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
        self._running = False
        self._ready.clear()
        logger.info("Server stopped")
