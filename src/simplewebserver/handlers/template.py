"""
=============================================================================
TEMPLATE RENDERER
=============================================================================

Text resources may carry two placeholder tokens that are filled in each
time the file is served:

    ┌─────────────────┬────────────────────────────────────────────────────┐
    │  Token          │  Replaced with                                     │
    ├─────────────────┼────────────────────────────────────────────────────┤
    │  <cs371date>    │  Today's local date, MM-DD-YYYY (e.g. 10-17-2026)  │
    │  <cs371server>  │  The configured server name                        │
    └─────────────────┴────────────────────────────────────────────────────┘

The file is read line by line and every occurrence on every line is
replaced. Line terminators are dropped, so the rendered result is one
unbroken string:

    "<p>Today is <cs371date></p>\\n"       "<p>Today is 10-17-2026</p><p>..."
    "<p>Served by <cs371server></p>\\n"  →

=============================================================================
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Union

from .static import ResourceReadError


logger = logging.getLogger(__name__)

DATE_FORMAT = "%m-%d-%Y"


class TemplateRenderer:
    """
    Renders text resources with token substitution.

    Args:
        server_name: Literal that replaces the server token.
        date_token: Marker replaced by the current date.
        server_token: Marker replaced by server_name.
        clock: Returns the current local time; injectable for tests.
    """

    def __init__(
        self,
        server_name: str,
        date_token: str = "<cs371date>",
        server_token: str = "<cs371server>",
        clock: Callable[[], datetime] = datetime.now,
        encoding: str = "utf-8",
    ):
        self.server_name = server_name
        self.date_token = date_token
        self.server_token = server_token
        self.clock = clock
        self.encoding = encoding

    def today(self) -> str:
        return self.clock().strftime(DATE_FORMAT)

    def substitute(self, line: str, today: str) -> str:
        """Replace every occurrence of both tokens in one line."""
        line = line.replace(self.date_token, today)
        return line.replace(self.server_token, self.server_name)

    def render(self, path: Union[str, Path]) -> str:
        """
        Render a text file.

        Args:
            path: File to read.

        Returns:
            All lines, substituted and concatenated without terminators.

        Raises:
            ResourceReadError: If the file cannot be opened or read,
                including when path names a directory. Bytes that are not
                valid in the encoding are carried through as surrogates.
        """
        today = self.today()
        parts = []

        try:
            with open(path, "r", encoding=self.encoding, errors="surrogateescape") as f:
                for line in f:
                    parts.append(self.substitute(line.rstrip("\n"), today))
        except OSError as e:
            logger.debug(f"Render failed for {path}: {e}")
            raise ResourceReadError(path, str(e)) from e

        return "".join(parts)
