"""
=============================================================================
RESOURCE HANDLERS
=============================================================================

1. static.py
   - PathResolver: request target → file under the document root
   - ContentClassifier: suffix → TEXT / BINARY / SYNTHETIC, MIME probe
   - ResourceReadError, FallbackMissingError

2. template.py
   - TemplateRenderer: date and server-name token substitution

=============================================================================
USAGE
=============================================================================

    from simplewebserver.handlers import PathResolver, TemplateRenderer, resolve_resource

    resource = resolve_resource("/index.html", "GET", PathResolver("www"))
    html = TemplateRenderer("My Server").render(resource.filesystem_path)

=============================================================================
"""

from .static import (
    ContentClassifier,
    FallbackMissingError,
    PathResolver,
    ResolvedResource,
    ResourceReadError,
    TransferMode,
    resolve_resource,
)
from .template import TemplateRenderer

__all__ = [
    "ContentClassifier",
    "FallbackMissingError",
    "PathResolver",
    "ResolvedResource",
    "ResourceReadError",
    "TransferMode",
    "resolve_resource",
    "TemplateRenderer",
]
