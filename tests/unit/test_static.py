"""
Unit tests for path resolution and content classification.
"""

from pathlib import Path

import pytest

from simplewebserver.handlers.static import (
    ContentClassifier,
    PathResolver,
    TransferMode,
    resolve_resource,
)


class TestPathResolver:

    def test_anchors_under_document_root(self, site: Path):
        resolver = PathResolver(site / "root")
        assert resolver.resolve("/index.html") == site / "root" / "index.html"

    def test_nested_target(self, site: Path):
        resolver = PathResolver(site / "root")
        path = resolver.resolve("/sub/page.html")
        assert path == site / "root" / "sub" / "page.html"
        assert resolver.exists(path)

    def test_empty_target_is_root(self, site: Path):
        resolver = PathResolver(site / "root")
        assert resolver.resolve("") == site / "root"

    def test_directory_does_not_exist_as_file(self, site: Path):
        resolver = PathResolver(site / "root")
        assert not resolver.exists(resolver.resolve("/sub"))

    def test_missing_file(self, site: Path):
        resolver = PathResolver(site / "root")
        assert not resolver.exists(resolver.resolve("/nope.html"))

    def test_dot_dot_is_not_normalized(self, site: Path):
        """Default behavior: targets are joined verbatim, '..' included."""
        resolver = PathResolver(site / "root")
        path = resolver.resolve("/../secret.txt")

        assert ".." in path.parts
        assert resolver.exists(path)

    def test_confined_root_rejects_traversal(self, site: Path):
        """Deliberate hardening: escaping the root is reported as missing."""
        resolver = PathResolver(site / "root", confine_to_root=True)
        path = resolver.resolve("/../secret.txt")

        assert not resolver.exists(path)

    def test_confined_root_allows_inner_dot_dot(self, site: Path):
        resolver = PathResolver(site / "root", confine_to_root=True)
        assert resolver.exists(resolver.resolve("/sub/../index.html"))


class TestContentClassifier:

    @pytest.mark.parametrize("name,mode", [
        ("a.html", TransferMode.TEXT),
        ("a.txt", TransferMode.TEXT),
        ("a.HTML", TransferMode.TEXT),
        ("a.gif", TransferMode.BINARY),
        ("a.png", TransferMode.BINARY),
        ("a.jpg", TransferMode.BINARY),
        ("a.md", TransferMode.SYNTHETIC),
        ("a.css", TransferMode.SYNTHETIC),
        ("noext", TransferMode.SYNTHETIC),
    ])
    def test_suffix_classification(self, name, mode):
        assert ContentClassifier.transfer_mode_for(Path(name)) is mode

    @pytest.mark.parametrize("method", ["POST", "HEAD", "PUT", ""])
    def test_non_get_is_synthetic(self, method):
        assert ContentClassifier.transfer_mode_for(Path("a.html"), method) is TransferMode.SYNTHETIC

    def test_text_mime_probed(self, site: Path):
        resource = ContentClassifier().classify(site / "root" / "notes.txt", True)
        assert resource.mime_type == "text/plain"
        assert resource.transfer_mode is TransferMode.TEXT

    def test_image_mime_probed(self, site: Path):
        resource = ContentClassifier().classify(site / "root" / "logo.png", True)
        assert resource.mime_type == "image/png"
        assert resource.transfer_mode is TransferMode.BINARY

    def test_synthetic_has_no_mime(self, site: Path):
        resource = ContentClassifier().classify(site / "root" / "readme.md", True)
        assert resource.mime_type is None


class TestResolveResource:

    def test_existing_text(self, site: Path):
        resource = resolve_resource("/index.html", "GET", PathResolver(site / "root"))

        assert resource.exists is True
        assert resource.transfer_mode is TransferMode.TEXT
        assert resource.mime_type == "text/html"
        assert resource.name == "index.html"

    def test_missing_image(self, site: Path):
        resource = resolve_resource("/missing.png", "GET", PathResolver(site / "root"))

        assert resource.exists is False
        assert resource.transfer_mode is TransferMode.BINARY
        assert resource.name == "missing.png"

    def test_fresh_result_per_call(self, site: Path):
        resolver = PathResolver(site / "root")
        first = resolve_resource("/new.html", "GET", resolver)
        (site / "root" / "new.html").write_text("hi\n")
        second = resolve_resource("/new.html", "GET", resolver)

        assert first.exists is False
        assert second.exists is True
