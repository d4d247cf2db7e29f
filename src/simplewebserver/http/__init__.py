"""
HTTP wire handling.

    request.py       Request line parsing (method and target only)
    response.py      Status line, headers and body serialization
    status_codes.py  The two statuses the worker emits
    mime_types.py    Content-Type probing from file names
"""
