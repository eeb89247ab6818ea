"""Handlebars-style template expansion."""

from .cache import FileCache
from .context import ContextBuilder, ContextExtension
from .engine import DEFAULT_MAX_INCLUDE_DEPTH, HandlebarEngine, error_marker
from .filter import filter_context
from .helpers import register_core_helpers
from .registry import HelperEntry, HelperRegistry, detect_helper_type
from .types import ComponentDef, HelperArgs, HelperScope, RenderState

__all__ = [
    # Engine
    "HandlebarEngine",
    "DEFAULT_MAX_INCLUDE_DEPTH",
    "error_marker",
    "RenderState",
    "ComponentDef",
    # Helpers
    "HelperRegistry",
    "HelperEntry",
    "HelperArgs",
    "HelperScope",
    "detect_helper_type",
    "register_core_helpers",
    # Context
    "ContextBuilder",
    "ContextExtension",
    "filter_context",
    # Cache
    "FileCache",
]
