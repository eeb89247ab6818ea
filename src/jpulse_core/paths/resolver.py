"""Layered file resolution: site override > plugin > framework default."""

import fnmatch
import logging
import os
from collections.abc import Callable, Iterable
from pathlib import Path

from jpulse_core.errors import JPulseError, create_error
from jpulse_core.types import PathOrigin

from .types import PluginDirectory, ResolvedPath

logger = logging.getLogger(__name__)


def normalize_path(relative_path: str) -> str:
    """Normalize separators and strip leading slashes.

    Raises:
        JPulseError(RESOLUTION_FAILED): If the path is empty after normalization
    """
    normalized = (relative_path or "").replace("\\", "/").lstrip("/")
    while "//" in normalized:
        normalized = normalized.replace("//", "/")
    if not normalized:
        raise create_error("RESOLUTION_FAILED", path=relative_path or "")
    return normalized


def is_traversal(relative_path: str) -> bool:
    """True when any segment of the path is a parent-directory reference."""
    return ".." in relative_path.replace("\\", "/").split("/")


class PathResolver:
    """Resolve webapp-relative paths across the site, plugin and framework layers.

    The same resolver serves template loading, static assets and module
    lookup. ``exists`` is the only filesystem probe used by single-file
    resolution, so tests can count calls on it.
    """

    def __init__(
        self,
        framework_dir: str | Path,
        site_dir: str | Path | None = None,
        plugin_dirs: Iterable[PluginDirectory] = (),
        exists: Callable[[str], bool] | None = None,
    ):
        """Initialize resolver.

        Args:
            framework_dir: Framework webapp directory
            site_dir: Site override webapp directory (optional)
            plugin_dirs: Plugin webapp directories in load order
            exists: Existence probe, defaults to os.path.isfile
        """
        self.framework_dir = Path(framework_dir)
        self.site_dir = Path(site_dir) if site_dir else None
        self.plugin_dirs: list[PluginDirectory] = list(plugin_dirs)
        self._exists = exists or os.path.isfile

    def add_plugin_dir(self, plugin: PluginDirectory) -> None:
        """Append a plugin layer (lowest priority among plugins)."""
        self.plugin_dirs.append(plugin)

    def resolve(self, relative_path: str) -> ResolvedPath:
        """Resolve a path, site override first, then framework.

        The framework location is not probed once the site file is found.

        Raises:
            JPulseError(RESOLUTION_FAILED): Path is empty or found in neither location
        """
        rel = normalize_path(relative_path)

        found = self._probe_site(rel)
        if found:
            return found

        framework_path = self.framework_dir / rel
        if self._exists(str(framework_path)):
            return ResolvedPath(rel, framework_path, PathOrigin.FRAMEWORK)

        raise create_error("RESOLUTION_FAILED", path=rel)

    def resolve_with_plugins(self, relative_path: str) -> ResolvedPath:
        """Resolve with plugin layers between site and framework.

        Raises:
            JPulseError(RESOLUTION_FAILED): Path not found in any layer
        """
        rel = normalize_path(relative_path)

        found = self._probe_site(rel)
        if found:
            return found

        for plugin in self.plugin_dirs:
            plugin_path = plugin.webapp_dir / rel
            if self._exists(str(plugin_path)):
                return ResolvedPath(rel, plugin_path, PathOrigin.PLUGIN, plugin=plugin.name)

        framework_path = self.framework_dir / rel
        if self._exists(str(framework_path)):
            return ResolvedPath(rel, framework_path, PathOrigin.FRAMEWORK)

        raise create_error(
            "RESOLUTION_FAILED",
            path=rel,
            detail=f"Checked site, {len(self.plugin_dirs)} plugin(s) and framework",
        )

    def resolve_asset(self, relative_path: str) -> ResolvedPath | None:
        """Like resolve_with_plugins but returns None instead of raising."""
        if not relative_path or is_traversal(relative_path):
            return None
        try:
            return self.resolve_with_plugins(relative_path)
        except JPulseError as e:
            logger.debug(f"Asset not resolved: {relative_path}: {e}")
            return None

    def has_site_override(self, relative_path: str) -> bool:
        """Whether the site layer provides this path."""
        return self._probe_site(normalize_path(relative_path)) is not None

    def collect_all(self, relative_path: str) -> list[ResolvedPath]:
        """All layers providing the path, in append order.

        Order is framework, then site, then plugins (load order), so
        concatenated CSS/JS lets later layers augment earlier rules.
        """
        rel = normalize_path(relative_path)
        collected: list[ResolvedPath] = []

        framework_path = self.framework_dir / rel
        if self._exists(str(framework_path)):
            collected.append(ResolvedPath(rel, framework_path, PathOrigin.FRAMEWORK))

        site = self._probe_site(rel)
        if site:
            collected.append(site)

        for plugin in self.plugin_dirs:
            plugin_path = plugin.webapp_dir / rel
            if self._exists(str(plugin_path)):
                collected.append(ResolvedPath(rel, plugin_path, PathOrigin.PLUGIN, plugin=plugin.name))

        return collected

    def list_resolved(self, pattern: str, sort: bool = True) -> list[ResolvedPath]:
        """Files matching a glob across layers, one entry per relative name.

        ``*`` and ``?`` match within a single path segment. When several
        layers provide the same relative name the site file wins, then
        plugins, then the framework.

        Args:
            pattern: Glob relative to the webapp root, e.g. "view/jpulse-examples/*.shtml"
            sort: Sort by relative name; otherwise keep discovery order
                (site, plugins, framework, each directory by entry name)
        """
        pattern = pattern.replace("\\", "/").lstrip("/")
        if not pattern or is_traversal(pattern):
            return []

        by_name: dict[str, ResolvedPath] = {}
        layers: list[tuple[Path, PathOrigin, str | None]] = []
        if self.site_dir:
            layers.append((self.site_dir, PathOrigin.SITE, None))
        layers.extend((p.webapp_dir, PathOrigin.PLUGIN, p.name) for p in self.plugin_dirs)
        layers.append((self.framework_dir, PathOrigin.FRAMEWORK, None))

        for root, origin, plugin_name in layers:
            for rel in self._match_in(root, pattern):
                if rel not in by_name:
                    by_name[rel] = ResolvedPath(rel, root / rel, origin, plugin=plugin_name)

        if not sort:
            return list(by_name.values())
        return [by_name[name] for name in sorted(by_name)]

    def list_files(self, pattern: str) -> list[str]:
        """Relative names matching a glob, site-first de-duplicated."""
        return [resolved.requested_path for resolved in self.list_resolved(pattern)]

    def get_directories(self) -> dict[str, str | list[str] | None]:
        """Configured layer roots, for diagnostics."""
        return {
            "framework": str(self.framework_dir),
            "site": str(self.site_dir) if self.site_dir else None,
            "plugins": [str(p.webapp_dir) for p in self.plugin_dirs],
        }

    def _probe_site(self, rel: str) -> ResolvedPath | None:
        if not self.site_dir:
            return None
        site_path = self.site_dir / rel
        if self._exists(str(site_path)):
            return ResolvedPath(rel, site_path, PathOrigin.SITE)
        return None

    def _match_in(self, root: Path, pattern: str) -> list[str]:
        """Relative file names under root matching a segment-wise glob."""
        segments = pattern.split("/")
        base = root
        # Walk the literal prefix directly
        while len(segments) > 1 and not any(ch in segments[0] for ch in "*?["):
            base = base / segments[0]
            segments = segments[1:]
        if not base.is_dir():
            return []

        matches: list[str] = []
        self._walk_match(root, base, segments, matches)
        return matches

    def _walk_match(self, root: Path, current: Path, segments: list[str], out: list[str]) -> None:
        head, rest = segments[0], segments[1:]
        try:
            entries = sorted(os.scandir(current), key=lambda e: e.name)
        except OSError as e:
            logger.debug(f"Cannot list {current}: {e}")
            return
        for entry in entries:
            if entry.name.startswith(".") or not fnmatch.fnmatchcase(entry.name, head):
                continue
            if rest:
                if entry.is_dir():
                    self._walk_match(root, Path(entry.path), rest, out)
            elif entry.is_file():
                rel = Path(entry.path).relative_to(root).as_posix()
                if not is_traversal(rel):
                    out.append(rel)
