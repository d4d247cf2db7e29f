"""
=============================================================================
SIMPLEWEBSERVER - A ONE-REQUEST-PER-CONNECTION WEB SERVER
=============================================================================

Each accepted connection gets its own worker thread. The worker reads one
request, serves one file (or a fallback), and closes the connection.

    simplewebserver/
    ├── __init__.py          # Package exports
    ├── __main__.py          # CLI entry point (python -m simplewebserver)
    ├── config.py            # ServerConfig dataclass, logging setup
    ├── core/                # Connection handling
    │   ├── connection.py    # Buffered socket wrapper
    │   ├── worker.py        # ConnectionWorker and the 404 fallback chain
    │   └── socket_server.py # Accept loop, thread per connection
    ├── http/                # Wire format
    │   ├── request.py       # Request line parsing
    │   ├── response.py      # Response assembly
    │   ├── status_codes.py  # 200 / 404
    │   └── mime_types.py    # MIME type probing
    └── handlers/            # Resources
        ├── static.py        # Path resolution and classification
        └── template.py      # Date / server-name token substitution

=============================================================================
QUICK START
=============================================================================

    from simplewebserver import WebServer, ServerConfig

    server = WebServer(ServerConfig(port=8080, document_root="www", fallback_dir="www"))
    server.serve_forever()

Or serve a single, already-connected socket:

    from simplewebserver import ConnectionWorker

    ConnectionWorker(client_socket, address, config).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig, setup_logging
from .core.socket_server import WebServer
from .core.worker import ConnectionWorker, handle_connection

__all__ = [
    "ConnectionWorker",
    "ServerConfig",
    "WebServer",
    "handle_connection",
    "setup_logging",
    "__version__",
]
