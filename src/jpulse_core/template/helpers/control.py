"""Built-in block helpers: if, unless, each, with, let and component.

Block handlers receive the raw block body; only the chosen branch is
expanded. ``if``, ``unless``, ``each`` and ``with`` evaluate their own
parameter text so that negation (``!path``) and helper calls
(``file.exists "x"``) work without parentheses.
"""

import copy
import logging
import re
from typing import Any

from jpulse_core.errors import create_error

from ..parser import split_else
from ..types import HelperArgs, HelperScope
from ..values import set_path, stringify

logger = logging.getLogger(__name__)

_COMPONENT_NAME = re.compile(r"^[a-z][\w\-.]*[a-z0-9]$", re.I)


async def _branch(block: str | None, condition: bool, scope: HelperScope, context: dict[str, Any] | None = None) -> str:
    if block is None:
        return ""
    then_part, else_part = split_else(block)
    chosen = then_part if condition else else_part
    if not chosen:
        return ""
    return await scope.expand(chosen, context)


async def block_if(args: HelperArgs, block: str | None, scope: HelperScope) -> str:
    """Render the block when the condition is truthy, else the {{else}} part."""
    return await _branch(block, await scope.evaluate_condition(args.raw), scope)


async def block_unless(args: HelperArgs, block: str | None, scope: HelperScope) -> str:
    """Render the block when the condition is falsy, else the {{else}} part."""
    return await _branch(block, not await scope.evaluate_condition(args.raw), scope)


async def block_each(args: HelperArgs, block: str | None, scope: HelperScope) -> str:
    """Iterate a list or mapping.

    Inside the block ``this`` is the current item; ``@index``, ``@first``,
    ``@last`` and ``@count`` describe the position and ``@key`` the mapping
    key. The {{else}} part renders when there is nothing to iterate.
    """
    if block is None:
        return ""
    items = await scope.evaluate(args.raw)
    body, else_part = split_else(block)

    if isinstance(items, dict):
        pairs: list[tuple[Any, Any]] = list(items.items())
    elif isinstance(items, (list, tuple)):
        pairs = [(None, item) for item in items]
    else:
        pairs = []

    if not pairs:
        return await scope.expand(else_part) if else_part else ""

    out: list[str] = []
    count = len(pairs)
    for index, (key, item) in enumerate(pairs):
        iteration = scope.derive(
            this=item,
            **{"@index": index, "@first": index == 0, "@last": index == count - 1, "@count": count},
        )
        if key is not None:
            iteration["@key"] = key
        out.append(await scope.expand(body, iteration))
    return "".join(out)


async def block_with(args: HelperArgs, block: str | None, scope: HelperScope) -> str:
    """Merge a mapping into the context for the block."""
    value = await scope.evaluate(args.raw)
    if not isinstance(value, dict):
        logger.debug(f"with: '{args.raw}' is not a mapping")
        return await _branch(block, False, scope)
    return await _branch(block, True, scope, scope.derive(**value, this=value))


async def block_let(args: HelperArgs, block: str | None, scope: HelperScope) -> str:
    """Assign template variables under ``vars``.

    Inline ``{{let a=1 nav.title="Home"}}`` sets them for the rest of the
    pass. The block form ``{{#let a=1}}...{{/let}}`` works on a copy of
    ``vars`` that is discarded after the block.
    """
    if block is None:
        for key, value in args.named.items():
            set_path(scope.vars, key, value)
        if args.named:
            logger.debug(f"Variables set: {', '.join(args.named)}")
        return ""

    scoped_vars = copy.deepcopy(scope.vars)
    for key, value in args.named.items():
        set_path(scoped_vars, key, value)
    return await scope.expand(block, scope.derive(vars=scoped_vars))


def block_component(args: HelperArgs, block: str | None, scope: HelperScope) -> str:
    """Define a component: ``{{#component "icons.config-svg" size="64"}}...{{/component}}``.

    Produces no output. Named parameters are defaults for each call.

    Raises:
        JPulseError(TEMPLATE_ERROR): Used inline, or the name is missing or invalid
    """
    if block is None:
        raise create_error("TEMPLATE_ERROR", reason="component must be used as a block")
    name = stringify(args.target)
    if not name:
        raise create_error("TEMPLATE_ERROR", reason="component definition requires a name")
    if not _COMPONENT_NAME.match(name):
        raise create_error(
            "TEMPLATE_ERROR",
            reason=f'Invalid component name "{name}": use letters, digits, "_", "-" and ".", '
            "starting with a letter",
        )
    scope.engine.register_component(scope.state, name, block, dict(args.named))
    return ""


CONTROL_HELPERS: dict[str, Any] = {
    "if": block_if,
    "unless": block_unless,
    "each": block_each,
    "with": block_with,
    "let": block_let,
    "component": block_component,
}

# Helpers that receive their parameter text unevaluated
LAZY_HELPERS = frozenset({"if", "unless", "each", "with"})
