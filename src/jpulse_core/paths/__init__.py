"""Site > plugin > framework file resolution."""

from .resolver import PathResolver, is_traversal, normalize_path
from .types import PluginDirectory, ResolvedPath

__all__ = [
    "PathResolver",
    "ResolvedPath",
    "PluginDirectory",
    "normalize_path",
    "is_traversal",
]
