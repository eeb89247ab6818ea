"""Path resolution type definitions."""

from dataclasses import dataclass
from pathlib import Path

from jpulse_core.types import PathOrigin


@dataclass(frozen=True)
class ResolvedPath:
    """Outcome of one lookup. Built fresh per call, never cached."""

    requested_path: str
    absolute_path: Path
    origin: PathOrigin
    plugin: str | None = None  # Plugin name when origin is PLUGIN


@dataclass(frozen=True)
class PluginDirectory:
    """A plugin's webapp root, in plugin load order."""

    name: str
    webapp_dir: Path
