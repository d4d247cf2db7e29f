"""
=============================================================================
CONNECTION WORKER
=============================================================================

Handles exactly one request on one already-open connection, then closes
it. One worker runs per connection, in its own thread; workers share
nothing but the read-only document root and fallback directory.

=============================================================================
PIPELINE
=============================================================================

    socket ──► RequestParser ──► PathResolver + ContentClassifier
                                            │
                                            ▼
                                  decide outcome (state machine)
                                            │
                                            ▼
               ResponseAssembler: headers, body, flush ──► close

Every stage receives its input as a value and returns a new value:

    Request ──► ResolvedResource ──► ResponseOutcome

=============================================================================
404 FALLBACK CHAIN
=============================================================================

    ┌───────────┐ SYNTHETIC (unknown suffix, non-GET)  ┌─────────────┐
    │ RESOLVING │ ───────────────────────────────────► │ SERVING_200 │
    │           │ TEXT/BINARY, exists, readable        │             │
    │           │ ───────────────────────────────────► │             │
    │           │                                      └──────┬──────┘
    │           │ TEXT missing or unreadable   ┌──────────────┴──────┐
    │           │ ───────────────────────────► │ SERVING_404_GENERIC │
    │           │                              │ fallback/404 page   │
    │           │ BINARY missing or unopenable ├─────────────────────┤
    │           │ ───────────────────────────► │ SERVING_404_IMAGE   │
    └───────────┘                              │ fallback/<name>     │
                                               └──────────┬──────────┘
                                                          ▼
                                                       ┌──────┐
                                                       │ DONE │ (always closes)
                                                       └──────┘

A missing fallback resource is fatal for the request: nothing is sent
and the connection is closed.

=============================================================================
"""

import logging
import socket
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from ..config import ServerConfig
from ..handlers.static import (
    ContentClassifier,
    FallbackMissingError,
    PathResolver,
    ResolvedResource,
    ResourceReadError,
    TransferMode,
    resolve_resource,
)
from ..handlers.template import TemplateRenderer
from ..http.mime_types import probe_mime_type
from ..http.request import Request, RequestParser
from ..http.response import (
    FileStream,
    RenderedText,
    ResponseAssembler,
    ResponseOutcome,
    SyntheticPage,
)
from ..http.status_codes import HTTPStatus
from .connection import Connection


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("simplewebserver.access")


class WorkerState(Enum):
    RESOLVING = "resolving"
    SERVING_200 = "serving_200"
    SERVING_404_GENERIC = "serving_404_generic"
    SERVING_404_IMAGE = "serving_404_image"
    DONE = "done"


@dataclass
class AccessLog:
    """One access log entry per connection."""

    client_ip: str
    method: str
    target: str
    status: Optional[int]
    mode: str
    bytes_sent: int
    duration_ms: float

    def to_line(self) -> str:
        status = self.status if self.status is not None else "-"
        return (
            f'{self.client_ip} "{self.method or "-"} {self.target or "-"}" '
            f"{status} {self.mode} {self.bytes_sent} {self.duration_ms:.2f}ms"
        )


class ConnectionWorker:
    """
    Serves one request on one connection.

    Usage:
        client_socket, address = listener.accept()
        worker = ConnectionWorker(client_socket, address, config)
        threading.Thread(target=worker.run, daemon=True).start()

    Args:
        sock: Connected client socket.
        address: Client (ip, port), used for logging.
        config: Server configuration; defaults when omitted.
        clock: Local-time source for the date token.
    """

    def __init__(
        self,
        sock: socket.socket,
        address: tuple = ("", 0),
        config: Optional[ServerConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or ServerConfig()
        self.conn = Connection(
            socket=sock,
            address=address,
            buffer_size=self.config.buffer_size,
            idle_wait=self.config.idle_wait,
        )
        self.state = WorkerState.RESOLVING

        self._parser = RequestParser()
        self._resolver = PathResolver(self.config.document_root, self.config.confine_to_root)
        self._classifier = ContentClassifier()
        self._renderer = TemplateRenderer(
            server_name=self.config.server_name,
            date_token=self.config.date_token,
            server_token=self.config.server_token,
            clock=clock,
        )
        self._assembler = ResponseAssembler(
            server_header=self.config.server_header,
            legacy_status_lines=self.config.legacy_status_lines,
            buffer_size=self.config.buffer_size,
        )

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def run(self) -> None:
        """
        Handle the connection from first byte to close.

        Never raises: every failure is logged and ends only this
        connection.
        """
        logger.debug(f"[{self.conn.id}] Handling connection from {self.conn.client_ip}")
        started = time.time()
        request: Optional[Request] = None
        outcome: Optional[ResponseOutcome] = None

        with self.conn:
            try:
                request = self._parser.parse(self.conn)
                resource = self.resolve(request)
                outcome = self.decide(resource)
                outcome = self.respond(resource, outcome)
            except ResourceReadError as e:
                outcome = None
                logger.error(f"[{self.conn.id}] No response sent: {e}")
            except OSError as e:
                # Client went away mid-response
                logger.warning(f"[{self.conn.id}] Output error: {e}")
            except Exception as e:
                logger.exception(f"[{self.conn.id}] Worker error: {e}")
            finally:
                self.state = WorkerState.DONE

        self._log_access(request, outcome, started)

    # =========================================================================
    # STAGES
    # =========================================================================

    def resolve(self, request: Request) -> ResolvedResource:
        return resolve_resource(
            request.target, request.method, self._resolver, self._classifier
        )

    def decide(self, resource: ResolvedResource) -> ResponseOutcome:
        """
        Pick status and body for a resolved resource.

        Raises:
            FallbackMissingError: The 404 fallback for this resource is missing.
        """
        mode = resource.transfer_mode

        if mode is TransferMode.SYNTHETIC:
            self.state = WorkerState.SERVING_200
            return ResponseOutcome(HTTPStatus.OK, SyntheticPage())

        if not resource.exists:
            return self.not_found(resource)

        if mode is TransferMode.TEXT:
            try:
                text = self._renderer.render(resource.filesystem_path)
            except ResourceReadError as e:
                # Existence check and read are separate; either may fail
                logger.info(f"[{self.conn.id}] {e}")
                return self.not_found(resource)

            self.state = WorkerState.SERVING_200
            return ResponseOutcome(HTTPStatus.OK, RenderedText(text), resource.mime_type)

        self.state = WorkerState.SERVING_200
        return ResponseOutcome(
            HTTPStatus.OK, FileStream(resource.filesystem_path), resource.mime_type
        )

    def not_found(self, resource: ResolvedResource) -> ResponseOutcome:
        """Build the 404 outcome matching the resource's transfer mode."""
        if resource.transfer_mode is TransferMode.BINARY:
            fallback = self.config.fallback_path / resource.name
            if not fallback.is_file():
                raise FallbackMissingError(fallback, "image fallback missing")

            self.state = WorkerState.SERVING_404_IMAGE
            return ResponseOutcome(
                HTTPStatus.NOT_FOUND, FileStream(fallback), probe_mime_type(fallback)
            )

        page = self.config.not_found_path
        try:
            text = self._renderer.render(page)
        except ResourceReadError as e:
            raise FallbackMissingError(page, "404 page missing") from e

        self.state = WorkerState.SERVING_404_GENERIC
        return ResponseOutcome(HTTPStatus.NOT_FOUND, RenderedText(text), probe_mime_type(page))

    def respond(self, resource: ResolvedResource, outcome: ResponseOutcome) -> ResponseOutcome:
        """
        Write the outcome. A binary source that vanished between the
        existence check and the open is downgraded to its 404 fallback.

        Returns:
            The outcome actually written.
        """
        try:
            self._assembler.write(self.conn, outcome)
            return outcome
        except ResourceReadError as e:
            if outcome.is_not_found:
                raise FallbackMissingError(e.path, "image fallback unreadable") from e
            logger.info(f"[{self.conn.id}] {e}")

        outcome = self.not_found(resource)
        self._assembler.write(self.conn, outcome)
        return outcome

    # =========================================================================
    # LOGGING
    # =========================================================================

    def _log_access(self, request: Optional[Request], outcome: Optional[ResponseOutcome], started: float):
        entry = AccessLog(
            client_ip=self.conn.client_ip,
            method=request.method if request else "",
            target=request.target if request else "",
            status=int(outcome.status) if outcome else None,
            mode=type(outcome.body).__name__ if outcome else "none",
            bytes_sent=self.conn.bytes_sent,
            duration_ms=(time.time() - started) * 1000,
        )
        access_logger.info(entry.to_line())


def handle_connection(
    sock: socket.socket,
    address: tuple = ("", 0),
    config: Optional[ServerConfig] = None,
) -> None:
    """Serve one connection synchronously; convenience wrapper around ConnectionWorker."""
    ConnectionWorker(sock, address, config).run()
