"""Helper registry: name -> handler with source and type metadata."""

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from jpulse_core.errors import create_error
from jpulse_core.types import HelperType

from .types import HelperArgs, HelperScope

logger = logging.getLogger(__name__)

HelperHandler = Callable[..., Any]


@dataclass
class HelperEntry:
    """A registered helper.

    Regular handlers are called as ``handler(args, scope)`` and return a value.
    Block handlers are called as ``handler(args, block, scope)`` with the raw,
    unexpanded body; ``block`` is None when used inline.
    Either kind may be sync or async. With ``lazy_args`` the handler gets
    only the raw parameter text and evaluates it itself (conditions, loops).
    """

    name: str
    handler: HelperHandler
    type: HelperType
    source: str = "core"
    description: str = ""
    example: str = ""
    lazy_args: bool = False

    async def invoke(self, args: HelperArgs, scope: HelperScope, block: str | None = None) -> Any:
        """Call the handler and await its result if needed."""
        if self.type == HelperType.BLOCK:
            result = self.handler(args, block, scope)
        else:
            result = self.handler(args, scope)
        if inspect.isawaitable(result):
            result = await result
        return result


def detect_helper_type(name: str, handler: Any) -> HelperType:
    """Infer the helper type from the handler's positional arity.

    Raises:
        JPulseError(HELPER_INVALID): Not callable or arity is neither 2 nor 3
    """
    if not callable(handler):
        raise create_error("HELPER_INVALID", helper=name, detail="Handler must be callable")
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError) as e:
        raise create_error("HELPER_INVALID", helper=name, detail=f"Cannot inspect handler: {e}") from e

    positional = [
        p
        for p in signature.parameters.values()
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    if len(positional) == 2:
        return HelperType.REGULAR
    if len(positional) == 3:
        return HelperType.BLOCK
    raise create_error(
        "HELPER_INVALID",
        helper=name,
        detail=f"Handler takes {len(positional)} positional parameters, expected 2 or 3",
    )


class HelperRegistry:
    """Mutable mapping of helper names to entries.

    Registering an existing name replaces it (last registration wins), which
    is how plugins and sites override framework helpers. Names are
    case-sensitive and may be dotted ("string.uppercase").
    """

    def __init__(self) -> None:
        self._helpers: dict[str, HelperEntry] = {}

    def register(
        self,
        name: str,
        handler: HelperHandler,
        *,
        source: str = "core",
        type: HelperType | str | None = None,  # noqa: A002
        description: str = "",
        example: str = "",
        lazy_args: bool = False,
    ) -> HelperEntry:
        """Register or replace a helper.

        Args:
            name: Helper name as used in templates
            handler: Sync or async callable
            source: Origin tag: "core", "site" or a plugin name
            type: "regular" or "block"; inferred from arity when omitted
            description: One-line description for listings
            example: Usage example for listings
            lazy_args: Pass raw parameter text instead of evaluated arguments

        Returns:
            The stored entry

        Raises:
            JPulseError(HELPER_INVALID): Empty name or invalid handler
        """
        if not name or not isinstance(name, str):
            raise create_error("HELPER_INVALID", helper=str(name), detail="Helper name must be a non-empty string")
        if not callable(handler):
            raise create_error("HELPER_INVALID", helper=name, detail="Handler must be callable")

        helper_type = HelperType(type) if type else detect_helper_type(name, handler)

        previous = self._helpers.get(name)
        if previous:
            logger.info(f"Helper '{name}' from '{previous.source}' overridden by '{source}'")

        entry = HelperEntry(
            name=name,
            handler=handler,
            type=helper_type,
            source=source,
            description=description,
            example=example,
            lazy_args=lazy_args,
        )
        self._helpers[name] = entry
        return entry

    def get(self, name: str) -> HelperEntry | None:
        """Get helper entry by name."""
        return self._helpers.get(name)

    def has(self, name: str) -> bool:
        """Check if a helper is registered."""
        return name in self._helpers

    def unregister(self, name: str) -> bool:
        """Remove a helper. Returns True if it existed."""
        return self._helpers.pop(name, None) is not None

    def clear(self) -> None:
        """Remove all helpers."""
        self._helpers.clear()

    def list_helpers(self) -> list[HelperEntry]:
        """All entries sorted by name."""
        return [self._helpers[name] for name in sorted(self._helpers)]

    def stats(self) -> dict[str, Any]:
        """Counts by type and by source."""
        by_source: dict[str, int] = {}
        for entry in self._helpers.values():
            by_source[entry.source] = by_source.get(entry.source, 0) + 1
        return {
            "total": len(self._helpers),
            "regular": sum(1 for e in self._helpers.values() if e.type == HelperType.REGULAR),
            "block": sum(1 for e in self._helpers.values() if e.type == HelperType.BLOCK),
            "by_source": by_source,
        }

    def __contains__(self, name: object) -> bool:
        return name in self._helpers

    def __len__(self) -> int:
        return len(self._helpers)
