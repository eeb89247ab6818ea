"""Handlebars-style template expansion engine."""

import logging
import re
from typing import Any

from jpulse_core.errors import JPulseError, create_error
from jpulse_core.paths import PathResolver, is_traversal
from jpulse_core.types import HelperType, RequestInfo

from .cache import FileCache
from .parser import (
    ArgKind,
    ArgToken,
    TagKind,
    find_block_end,
    scan_tags,
    split_else,
    strip_comments,
    tokenize_args,
)
from .registry import HelperEntry, HelperRegistry
from .types import ComponentDef, HelperArgs, HelperScope, RenderState
from .values import is_truthy, lookup_path, stringify

logger = logging.getLogger(__name__)

DEFAULT_MAX_INCLUDE_DEPTH = 16

_NUMBER = re.compile(r"^-?(\d+\.?\d*|\.\d+)$")
_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None, "undefined": None}
_COMPONENT_TRAILING_SPACE = re.compile(r"(\{\{/component\}\})\s+")
# Source file banners: <!-- * @name ... -->, /** * @name ... */, {{!-- * @name ... --}}
_HEADER_COMMENT = re.compile(r"(<!--|/\*\*|\{\{!--)\s+\* +@name .*?(\*/|-->|--\}\})\r?\n?", re.S)


def error_marker(expression: str, message: str) -> str:
    """Inline HTML comment emitted in place of a failed expression."""
    return f'<!-- Error: Handlebar "{expression}": {message} -->'


class HandlebarEngine:
    """Expand ``{{expression}}`` and ``{{#block}}...{{/block}}`` markers.

    Rendering is fail-soft: a missing path renders "", an unknown helper
    renders "", a failing expression renders an inline error comment, and
    malformed markers are left in the output unchanged.

    The engine holds no per-request state; everything a pass needs lives in
    the context mapping and a RenderState created per top-level call.
    """

    def __init__(
        self,
        helpers: HelperRegistry,
        resolver: PathResolver | None = None,
        cache: FileCache | None = None,
        max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
    ):
        """Initialize engine.

        Args:
            helpers: Helper registry consulted on every call
            resolver: Path resolver for file helpers and includes
            cache: Include cache (a disabled cache is used if omitted)
            max_include_depth: Maximum nesting of file includes
        """
        self.helpers = helpers
        self.resolver = resolver
        self.cache = cache or FileCache(enabled=False)
        self.max_include_depth = max_include_depth

    async def expand_handlebars(
        self,
        request: RequestInfo | None,
        template: str,
        context: dict[str, Any] | None = None,
    ) -> str:
        """Expand a template for one request.

        Args:
            request: Current request, if any
            template: Template source
            context: Expansion context; the caller's mapping is not mutated

        Returns:
            Expanded text
        """
        ctx = dict(context or {})
        ctx["vars"] = dict(ctx.get("vars") or {})
        ctx.setdefault("components", {})
        state = RenderState(request=request)
        return await self.expand_text(template, ctx, state)

    async def expand_text(self, text: str, context: dict[str, Any], state: RenderState) -> str:
        """Expand text within an existing pass."""
        if "{{" not in text:
            return text
        text = _COMPONENT_TRAILING_SPACE.sub(r"\1", strip_comments(text))
        tags = scan_tags(text)

        out: list[str] = []
        pos = 0
        i = 0
        while i < len(tags):
            tag = tags[i]
            out.append(text[pos : tag.start])
            pos = tag.end

            if tag.kind == TagKind.OPEN:
                close = find_block_end(tags, i)
                if close is None:
                    # Unclosed block: keep the marker, keep expanding after it
                    out.append(text[tag.start : tag.end])
                    i += 1
                    continue
                body = text[tag.end : tags[close].start]
                out.append(await self._render_block(tag.name, tag.params, body, context, state))
                pos = tags[close].end
                i = close + 1
                continue

            if tag.kind == TagKind.EXPR:
                out.append(await self._render_expression(tag.params, context, state))
            else:
                # Stray {{/x}}, {{else}} outside a block, malformed markers
                out.append(text[tag.start : tag.end])
            i += 1

        out.append(text[pos:])
        return "".join(out)

    async def evaluate(self, expression: str, context: dict[str, Any], state: RenderState) -> Any:
        """Evaluate one expression to a value (not stringified).

        Handles helper calls, components, dotted paths and literals.
        """
        tokens = tokenize_args(expression.strip())
        if not tokens:
            return None

        head = tokens[0]
        if head.kind != ArgKind.WORD or head.key is not None:
            return await self._value(head, context, state)

        name = head.text
        if name.startswith("components."):
            return await self._call_component(name, tokens[1:], expression, context, state)

        entry = self.helpers.get(name)
        if entry is not None:
            scope = HelperScope(self, context, state)
            params = expression.strip()[len(name) :].strip()
            args = await self._build_args(entry, tokens[1:], params, context, state)
            return await entry.invoke(args, scope, None)

        if len(tokens) == 1:
            return await self._value(head, context, state)

        logger.debug(f"Unknown helper '{name}' in expression: {expression}")
        return None

    async def evaluate_condition(self, expression: str, context: dict[str, Any], state: RenderState) -> bool:
        """Truthiness of an expression; a leading ``!`` negates."""
        expression = expression.strip()
        if expression.startswith("!"):
            return not await self.evaluate_condition(expression[1:], context, state)
        return is_truthy(await self.evaluate(expression, context, state))

    async def include_file(
        self,
        relative_path: str,
        context: dict[str, Any],
        state: RenderState,
    ) -> str:
        """Resolve, read and expand a template fragment.

        Raises:
            JPulseError(PATH_PROHIBITED): Absolute path or ".." segment
            JPulseError(INCLUDE_DEPTH_EXCEEDED): Nesting beyond max_include_depth
            JPulseError(RESOLUTION_FAILED): File not found in any layer
        """
        if not relative_path or relative_path.startswith("/") or is_traversal(relative_path):
            raise create_error("PATH_PROHIBITED", path=relative_path)
        rel = relative_path if relative_path.startswith("view/") else f"view/{relative_path}"

        if state.depth >= self.max_include_depth:
            chain = " -> ".join([*state.include_stack, rel])
            logger.warning(f"Include depth {self.max_include_depth} exceeded: {chain}")
            raise create_error("INCLUDE_DEPTH_EXCEEDED", max_depth=self.max_include_depth, chain=chain, path=rel)

        if self.resolver is None:
            raise create_error("RESOLUTION_FAILED", path=rel, detail="No path resolver configured")
        resolved = self.resolver.resolve_with_plugins(rel)
        content = _HEADER_COMMENT.sub("", await self.cache.read(resolved.absolute_path), count=1)

        state.include_stack.append(rel)
        try:
            return await self.expand_text(content, context, state)
        finally:
            state.include_stack.pop()

    def register_component(self, state: RenderState, name: str, template: str, defaults: dict[str, Any]) -> str:
        """Store a component for this pass; returns its usage name.

        Kebab-case segments become camelCase: "icons.config-svg" -> "icons.configSvg".
        """
        usage = ".".join(
            re.sub(r"-([a-zA-Z0-9])", lambda m: m.group(1).upper(), segment) for segment in name.split(".")
        )
        state.components[usage] = ComponentDef(name=name, template=template, defaults=defaults)
        logger.debug(f"Component registered: {name} (use as components.{usage})")
        return usage

    async def _render_expression(self, expression: str, context: dict[str, Any], state: RenderState) -> str:
        try:
            return stringify(await self.evaluate(expression, context, state))
        except JPulseError as e:
            logger.warning(f"Expression failed: {expression}: {e.message}")
            return error_marker(expression, e.message)
        except Exception as e:
            logger.warning(f"Expression failed: {expression}: {e}", exc_info=True)
            return error_marker(expression, str(e) or type(e).__name__)

    async def _render_block(
        self,
        name: str,
        params: str,
        body: str,
        context: dict[str, Any],
        state: RenderState,
    ) -> str:
        label = f"#{name} {params}".strip()
        try:
            entry = self.helpers.get(name)
            if entry is None:
                logger.debug(f"Unknown block helper '{name}'")
                return ""

            scope = HelperScope(self, context, state)
            args = await self._build_args(entry, tokenize_args(params), params, context, state)
            if entry.type == HelperType.BLOCK:
                return stringify(await entry.invoke(args, scope, body))

            # A regular helper in block position is a condition
            then_part, else_part = split_else(body)
            chosen = then_part if is_truthy(await entry.invoke(args, scope)) else else_part
            return await self.expand_text(chosen, context, state) if chosen else ""
        except JPulseError as e:
            logger.warning(f"Block failed: {label}: {e.message}")
            return error_marker(label, e.message)
        except Exception as e:
            logger.warning(f"Block failed: {label}: {e}", exc_info=True)
            return error_marker(label, str(e) or type(e).__name__)

    async def _build_args(
        self,
        entry: HelperEntry,
        tokens: list[ArgToken],
        raw: str,
        context: dict[str, Any],
        state: RenderState,
    ) -> HelperArgs:
        """Evaluate argument tokens depth-first, left to right."""
        args = HelperArgs(name=entry.name, raw=raw)
        if entry.lazy_args:
            # Helper evaluates its own parameter text
            return args
        for token in tokens:
            value = await self._value(token, context, state)
            if token.key is not None:
                args.named[token.key] = value
            else:
                args.positional.append(value)
        return args

    async def _value(self, token: ArgToken, context: dict[str, Any], state: RenderState) -> Any:
        if token.kind == ArgKind.STRING:
            return token.text
        if token.kind == ArgKind.SUBEXPR:
            return await self.evaluate(token.text, context, state)

        word = token.text
        if word in _LITERALS:
            return _LITERALS[word]
        if _NUMBER.match(word):
            return float(word) if "." in word else int(word)
        return lookup_path(context, word)

    async def _call_component(
        self,
        name: str,
        tokens: list[ArgToken],
        expression: str,
        context: dict[str, Any],
        state: RenderState,
    ) -> Any:
        usage = name[len("components.") :]
        component = state.components.get(usage)
        if component is None:
            # Namespaces published by file.includeComponents
            published = lookup_path(context, name)
            if published is not None:
                return published
            raise create_error(
                "TEMPLATE_ERROR",
                reason=f'Component "{usage}" not found. Did you forget to include the component library?',
            )
        if usage in state.component_stack:
            chain = " -> ".join([*state.component_stack, usage])
            raise create_error("TEMPLATE_ERROR", reason=f"Circular component reference detected: {chain}")

        params = dict(component.defaults)
        inline = False
        for token in tokens:
            value = await self._value(token, context, state)
            if token.key == "_inline":
                inline = is_truthy(value) and value != "false"
            elif token.key is not None:
                params[token.key] = value

        state.component_stack.append(usage)
        try:
            expanded = await self.expand_text(component.template, {**context, **params}, state)
        finally:
            state.component_stack.pop()

        if inline:
            expanded = re.sub(r"\s+", " ", expanded)
        return expanded

