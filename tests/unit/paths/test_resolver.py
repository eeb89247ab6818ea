"""Unit tests for PathResolver."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from jpulse_core.errors import JPulseError
from jpulse_core.paths import PathResolver, PluginDirectory, is_traversal, normalize_path
from jpulse_core.types import PathOrigin


def probe(existing: set[str]) -> MagicMock:
    """Existence probe that answers from a fixed set and records calls."""
    return MagicMock(side_effect=lambda path: path in existing)


class TestResolve:
    """Tests for single-file resolution."""

    def test_site_override_wins(self) -> None:
        """A file present in both layers resolves to the site copy."""
        exists = probe({"/site/view/index.shtml", "/fw/view/index.shtml"})
        resolver = PathResolver("/fw", "/site", exists=exists)

        result = resolver.resolve("view/index.shtml")

        assert result.absolute_path == Path("/site/view/index.shtml")
        assert result.origin == PathOrigin.SITE

    def test_framework_not_probed_after_site_hit(self) -> None:
        """Once the site file is found the framework path is never checked."""
        exists = probe({"/site/view/index.shtml", "/fw/view/index.shtml"})
        resolver = PathResolver("/fw", "/site", exists=exists)

        resolver.resolve("view/index.shtml")

        exists.assert_called_once_with(str(Path("/site/view/index.shtml")))

    def test_framework_fallback(self) -> None:
        """Without a site copy the framework file is returned."""
        exists = probe({str(Path("/fw/view/index.shtml"))})
        resolver = PathResolver("/fw", "/site", exists=exists)

        result = resolver.resolve("view/index.shtml")

        assert result.absolute_path == Path("/fw/view/index.shtml")
        assert result.origin == PathOrigin.FRAMEWORK
        assert exists.call_count == 2

    def test_missing_file_names_path(self) -> None:
        """Failure carries the requested relative path."""
        resolver = PathResolver("/fw", "/site", exists=probe(set()))

        with pytest.raises(JPulseError) as exc_info:
            resolver.resolve("view/missing.shtml")

        assert exc_info.value.code == "RESOLUTION_FAILED"
        assert "view/missing.shtml" in exc_info.value.message
        assert exc_info.value.path == "view/missing.shtml"

    @pytest.mark.parametrize("path", ["", "/", "//"])
    def test_empty_path_fails(self, path: str) -> None:
        """Empty paths never resolve to a directory."""
        exists = probe(set())
        resolver = PathResolver("/fw", "/site", exists=exists)

        with pytest.raises(JPulseError):
            resolver.resolve(path)
        exists.assert_not_called()

    def test_separators_normalized(self) -> None:
        """Backslashes, doubled and leading slashes are normalized."""
        exists = probe({str(Path("/fw/view/a/b.tmpl"))})
        resolver = PathResolver("/fw", exists=exists)

        assert resolver.resolve("\\view\\a//b.tmpl").requested_path == "view/a/b.tmpl"

    def test_no_site_dir(self) -> None:
        """Without a site layer only the framework is probed."""
        exists = probe({str(Path("/fw/view/x.shtml"))})
        resolver = PathResolver("/fw", exists=exists)

        assert resolver.resolve("view/x.shtml").origin == PathOrigin.FRAMEWORK
        assert exists.call_count == 1


class TestResolveWithPlugins:
    """Tests for plugin-aware resolution."""

    def test_plugin_between_site_and_framework(self) -> None:
        """Plugins win over the framework but not over the site."""
        exists = probe({str(Path("/plug/view/p.tmpl")), str(Path("/fw/view/p.tmpl"))})
        resolver = PathResolver("/fw", "/site", [PluginDirectory("hello", Path("/plug"))], exists=exists)

        result = resolver.resolve_with_plugins("view/p.tmpl")

        assert result.origin == PathOrigin.PLUGIN
        assert result.plugin == "hello"

    def test_plugins_in_load_order(self) -> None:
        """The first plugin providing the file wins."""
        exists = probe({str(Path("/one/view/p.tmpl")), str(Path("/two/view/p.tmpl"))})
        resolver = PathResolver(
            "/fw",
            plugin_dirs=[PluginDirectory("one", Path("/one")), PluginDirectory("two", Path("/two"))],
            exists=exists,
        )

        assert resolver.resolve_with_plugins("view/p.tmpl").plugin == "one"

    def test_not_found_anywhere(self) -> None:
        """Failure mentions the number of plugin layers checked."""
        resolver = PathResolver("/fw", plugin_dirs=[PluginDirectory("one", Path("/one"))], exists=probe(set()))

        with pytest.raises(JPulseError) as exc_info:
            resolver.resolve_with_plugins("view/none.tmpl")

        assert "1 plugin" in exc_info.value.detail

    def test_resolve_asset_returns_none(self) -> None:
        """resolve_asset reports a miss as None."""
        resolver = PathResolver("/fw", exists=probe(set()))

        assert resolver.resolve_asset("view/none.png") is None
        assert resolver.resolve_asset("") is None

    def test_resolve_asset_rejects_traversal(self) -> None:
        """Parent segments are never probed."""
        exists = probe(set())
        resolver = PathResolver("/fw", exists=exists)

        assert resolver.resolve_asset("view/../secret.txt") is None
        exists.assert_not_called()


class TestCollectAll:
    """Tests for append-mode collection."""

    def test_order_framework_site_plugins(self) -> None:
        """Framework first, then site, then plugins."""
        exists = probe(
            {
                str(Path("/fw/view/app.css")),
                str(Path("/site/view/app.css")),
                str(Path("/plug/view/app.css")),
            }
        )
        resolver = PathResolver("/fw", "/site", [PluginDirectory("p", Path("/plug"))], exists=exists)

        origins = [r.origin for r in resolver.collect_all("view/app.css")]

        assert origins == [PathOrigin.FRAMEWORK, PathOrigin.SITE, PathOrigin.PLUGIN]

    def test_only_existing_layers(self) -> None:
        """Missing layers are skipped."""
        exists = probe({str(Path("/site/view/app.css"))})
        resolver = PathResolver("/fw", "/site", exists=exists)

        result = resolver.collect_all("view/app.css")

        assert [r.origin for r in result] == [PathOrigin.SITE]

    def test_nothing_found(self) -> None:
        """No layer gives an empty list."""
        assert PathResolver("/fw", exists=probe(set())).collect_all("view/app.css") == []


class TestListFiles:
    """Tests for glob listing across layers."""

    def test_site_first_deduplication(self, resolver: PathResolver) -> None:
        """Same relative name in both layers is listed once, from the site."""
        resolved = resolver.list_resolved("view/examples/*.shtml")

        by_name = {r.requested_path: r.origin for r in resolved}
        assert list(by_name) == [
            "view/examples/alpha.shtml",
            "view/examples/beta.shtml",
            "view/examples/gamma.shtml",
        ]
        assert by_name["view/examples/beta.shtml"] == PathOrigin.SITE
        assert by_name["view/examples/alpha.shtml"] == PathOrigin.FRAMEWORK

    def test_list_files_names(self, resolver: PathResolver) -> None:
        """list_files returns relative names sorted."""
        assert resolver.list_files("view/examples/a*.shtml") == ["view/examples/alpha.shtml"]

    def test_traversal_pattern_rejected(self, resolver: PathResolver) -> None:
        """Patterns with parent segments list nothing."""
        assert resolver.list_files("view/../view/*.shtml") == []

    def test_glob_does_not_cross_directories(self, resolver: PathResolver) -> None:
        """A single * stays within one path segment."""
        names = resolver.list_files("view/*.shtml")

        assert "view/greeting.shtml" in names
        assert not any(name.startswith("view/examples/") for name in names)

    def test_missing_directory(self, resolver: PathResolver) -> None:
        """A directory absent from every layer lists nothing."""
        assert resolver.list_files("view/nowhere/*.shtml") == []


class TestHelpers:
    """Tests for module-level path utilities and diagnostics."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("../etc/passwd", True),
            ("view/../x", True),
            ("view\\..\\x", True),
            ("view/..hidden", False),
            ("view/a.b/c", False),
        ],
    )
    def test_is_traversal(self, path: str, expected: bool) -> None:
        """Only whole '..' segments count as traversal."""
        assert is_traversal(path) is expected

    def test_normalize_path(self) -> None:
        """Leading slashes and doubled separators are removed."""
        assert normalize_path("//view//a.tmpl") == "view/a.tmpl"

    def test_has_site_override(self, resolver: PathResolver) -> None:
        """Site override detection."""
        assert resolver.has_site_override("view/jpulse-common.css") is True
        assert resolver.has_site_override("view/index.shtml") is False

    def test_get_directories(self) -> None:
        """Configured roots are reported."""
        resolver = PathResolver("/fw", "/site", [PluginDirectory("p", Path("/plug"))])
        resolver.add_plugin_dir(PluginDirectory("q", Path("/q")))

        directories = resolver.get_directories()

        assert directories["framework"] == str(Path("/fw"))
        assert directories["site"] == str(Path("/site"))
        assert directories["plugins"] == [str(Path("/plug")), str(Path("/q"))]
