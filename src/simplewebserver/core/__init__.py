"""
Core connection handling.

    connection.py     Buffered line reads and writes over a client socket
    worker.py         One request per connection: parse, resolve, respond
    socket_server.py  Accept loop starting one worker thread per client

Import from the submodules directly, e.g.

    from simplewebserver.core.worker import ConnectionWorker
"""
