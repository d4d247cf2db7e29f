"""
=============================================================================
STATIC RESOURCE RESOLUTION
=============================================================================

Turns a request target into a local file and decides how its body will
be produced.

=============================================================================
FLOW
=============================================================================

    Request target: /images/logo.png

    1. PathResolver      →  <document_root>/images/logo.png, exists?
    2. ContentClassifier →  suffix .png  →  BINARY, image/png

=============================================================================
TRANSFER MODES
=============================================================================

    ┌────────────┬─────────────────┬──────────────────────────────────────┐
    │  Mode      │  Suffixes       │  Body                                │
    ├────────────┼─────────────────┼──────────────────────────────────────┤
    │  TEXT      │  .html .txt     │  File read line by line, template    │
    │            │                 │  tokens replaced                     │
    │  BINARY    │  .gif .png .jpg │  File streamed from disk as-is       │
    │  SYNTHETIC │  anything else  │  Built-in "My web server works!"     │
    │            │  or non-GET     │  page, no file is read               │
    └────────────┴─────────────────┴──────────────────────────────────────┘

=============================================================================
PATH TRAVERSAL
=============================================================================

By default the target is joined onto the document root verbatim, so
"/../notes.txt" names a file one level above the root. With
confine_to_root enabled, the joined path is resolved (following ".."
and symlinks) and anything outside the root is reported as missing,
which sends it down the 404 chain.

=============================================================================
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..http.mime_types import probe_mime_type


logger = logging.getLogger(__name__)


class ResourceReadError(Exception):
    """A resource could not be opened or read."""

    def __init__(self, path: Union[str, Path], reason: str = ""):
        super().__init__(f"Cannot read {path}: {reason}" if reason else f"Cannot read {path}")
        self.path = Path(path)


class FallbackMissingError(ResourceReadError):
    """A 404 fallback resource is itself missing; the request cannot be answered."""


class TransferMode(Enum):
    TEXT = "text"
    BINARY = "binary"
    SYNTHETIC = "synthetic"


TEXT_SUFFIXES = frozenset({".html", ".txt"})
BINARY_SUFFIXES = frozenset({".gif", ".png", ".jpg"})


@dataclass(frozen=True)
class ResolvedResource:
    """
    A request target mapped onto the filesystem and classified.

    Attributes:
        filesystem_path: Where the target points on disk.
        exists: True only for an existing regular file.
        mime_type: Probed MIME type for TEXT and BINARY, else None.
        transfer_mode: How the body is produced.
    """

    filesystem_path: Path
    exists: bool
    mime_type: Optional[str]
    transfer_mode: TransferMode

    @property
    def name(self) -> str:
        return self.filesystem_path.name


class PathResolver:
    """
    Maps request targets under a document root.

    Args:
        document_root: Directory the targets are anchored under.
        confine_to_root: Treat targets resolving outside the root as missing.
    """

    def __init__(self, document_root: Union[str, Path], confine_to_root: bool = False):
        self.document_root = Path(document_root)
        self.confine_to_root = confine_to_root

    def resolve(self, target: str) -> Path:
        """Join the target onto the document root without normalizing it."""
        return self.document_root / target.lstrip("/")

    def exists(self, path: Path) -> bool:
        """
        Check that path is an existing regular file (and, when confined,
        that it lies inside the document root).
        """
        if self.confine_to_root and not self._inside_root(path):
            logger.warning(f"Path traversal attempt: {path}")
            return False

        try:
            return path.is_file()
        except OSError:
            return False

    def _inside_root(self, path: Path) -> bool:
        try:
            path.resolve().relative_to(self.document_root.resolve())
        except ValueError:
            return False
        return True


class ContentClassifier:
    """Chooses the transfer mode and MIME type of a resolved path."""

    @staticmethod
    def transfer_mode_for(path: Path, method: str = "GET") -> TransferMode:
        """
        Classify by suffix alone.

        Only GET retrieves content; every other method gets the built-in
        page regardless of what the target names.

        The built-in page is also what an unrecognized suffix gets, whether
        or not the file exists: existence only matters for text and image
        targets, so such a request is answered 200 and never reaches the
        404 chain.
        """
        if method != "GET":
            return TransferMode.SYNTHETIC

        suffix = path.suffix.lower()
        if suffix in TEXT_SUFFIXES:
            return TransferMode.TEXT
        if suffix in BINARY_SUFFIXES:
            return TransferMode.BINARY
        return TransferMode.SYNTHETIC

    def classify(self, path: Path, exists: bool, method: str = "GET") -> ResolvedResource:
        mode = self.transfer_mode_for(path, method)

        mime_type = None
        if mode is not TransferMode.SYNTHETIC:
            mime_type = probe_mime_type(path)

        return ResolvedResource(
            filesystem_path=path,
            exists=exists,
            mime_type=mime_type,
            transfer_mode=mode,
        )


def resolve_resource(
    target: str,
    method: str,
    resolver: PathResolver,
    classifier: Optional[ContentClassifier] = None,
) -> ResolvedResource:
    """
    Resolve and classify a request target in one step.

    Example:
        resource = resolve_resource("/index.html", "GET", PathResolver("www"))
        resource.transfer_mode    # TransferMode.TEXT
    """
    classifier = classifier or ContentClassifier()
    path = resolver.resolve(target)
    return classifier.classify(path, resolver.exists(path), method)
