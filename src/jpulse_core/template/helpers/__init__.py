"""Built-in template helpers."""

import inspect
import logging
import re
from typing import Any

from ..registry import HelperRegistry
from .arithmetic import MATH_HELPERS
from .arrays import ARRAY_HELPERS
from .control import CONTROL_HELPERS, LAZY_HELPERS
from .data import DATA_HELPERS
from .dates import DATE_HELPERS
from .files import FILE_HELPERS
from .logic import LOGIC_HELPERS
from .strings import STRING_HELPERS, make_titlecase_helper

logger = logging.getLogger(__name__)

_EXAMPLE = re.compile(r"``(\{\{.*?\}\})``", re.S)


def describe(handler: Any) -> tuple[str, str]:
    """(description, example) taken from a handler's docstring."""
    doc = inspect.getdoc(handler) or ""
    description = doc.split("\n", 1)[0].strip()
    match = _EXAMPLE.search(doc)
    return description, match.group(1) if match else ""


def core_helpers(small_words: list[str] | None = None) -> dict[str, Any]:
    """Name -> handler for every built-in helper."""
    helpers: dict[str, Any] = {}
    for group in (
        CONTROL_HELPERS,
        LOGIC_HELPERS,
        MATH_HELPERS,
        STRING_HELPERS,
        ARRAY_HELPERS,
        DATA_HELPERS,
        DATE_HELPERS,
        FILE_HELPERS,
    ):
        helpers.update(group)
    if small_words:
        helpers["string.titlecase"] = make_titlecase_helper(small_words)
    return helpers


def register_core_helpers(registry: HelperRegistry, small_words: list[str] | None = None) -> int:
    """Register all built-in helpers with ``source="core"``.

    Args:
        registry: Target registry
        small_words: Replacement list of words kept lowercase by string.titlecase

    Returns:
        Number of helpers registered
    """
    helpers = core_helpers(small_words)
    for name, handler in helpers.items():
        description, example = describe(handler)
        registry.register(
            name,
            handler,
            source="core",
            description=description,
            example=example,
            lazy_args=name in LAZY_HELPERS,
        )
    logger.debug(f"Registered {len(helpers)} core helpers")
    return len(helpers)


__all__ = [
    "core_helpers",
    "describe",
    "register_core_helpers",
]
