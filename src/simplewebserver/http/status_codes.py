"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The worker only ever answers with two statuses:

    200 OK         - Content found (or the built-in default page)
    404 Not Found  - Resource missing or unreadable; fallback body sent

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the worker.

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """Reason phrase that follows the code on the status line."""
        return _PHRASES[self]


_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Not Found",
}
