"""Template engine type definitions."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from jpulse_core.types import RequestInfo

from .values import lookup_path, stringify

if TYPE_CHECKING:
    from .engine import HandlebarEngine


@dataclass
class HelperArgs:
    """Evaluated arguments of one helper call.

    ``{{string.padLeft user.id 5 "0"}}`` gives name="string.padLeft",
    positional=[<user.id>, 5, "0"]; ``key=value`` pairs land in ``named``.
    """

    name: str
    positional: list[Any] = field(default_factory=list)
    named: dict[str, Any] = field(default_factory=dict)
    raw: str = ""  # Parameter text after the helper name, unparsed

    @property
    def target(self) -> Any:
        """First positional argument, or None."""
        return self.positional[0] if self.positional else None

    def get(self, key: str, default: Any = None) -> Any:
        """Named parameter lookup."""
        return self.named.get(key, default)

    def text(self) -> str:
        """All positional arguments rendered and concatenated."""
        return "".join(stringify(arg) for arg in self.positional)


@dataclass
class ComponentDef:
    """A reusable snippet registered by {{#component}}."""

    name: str
    template: str
    defaults: dict[str, Any] = field(default_factory=dict)


@dataclass
class RenderState:
    """Per top-level expansion bookkeeping, shared by nested expansions.

    ``include_stack`` only bounds recursion depth; it is not cycle detection.
    """

    request: RequestInfo | None = None
    include_stack: list[str] = field(default_factory=list)
    components: dict[str, ComponentDef] = field(default_factory=dict)
    component_stack: list[str] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return len(self.include_stack)


@dataclass
class HelperScope:
    """Handed to every helper: the current context plus a way to expand text."""

    engine: "HandlebarEngine"
    context: dict[str, Any]
    state: RenderState

    @property
    def request(self) -> RequestInfo | None:
        return self.state.request

    @property
    def vars(self) -> dict[str, Any]:
        """The pass-wide ``vars`` scratch mapping."""
        scratch = self.context.get("vars")
        if not isinstance(scratch, dict):
            scratch = {}
            self.context["vars"] = scratch
        return scratch

    def lookup(self, path: str) -> Any:
        """Dotted-path lookup in the current context."""
        return lookup_path(self.context, path)

    async def expand(self, text: str, context: dict[str, Any] | None = None) -> str:
        """Expand ``text`` within the same pass (shares vars and components)."""
        return await self.engine.expand_text(text, self.context if context is None else context, self.state)

    async def evaluate(self, expression: str, context: dict[str, Any] | None = None) -> Any:
        """Evaluate an expression (path, literal or helper call) to a value."""
        return await self.engine.evaluate(expression, self.context if context is None else context, self.state)

    async def evaluate_condition(self, expression: str) -> bool:
        """Truthiness of an expression; a leading ``!`` negates."""
        return await self.engine.evaluate_condition(expression, self.context, self.state)

    def derive(self, **overrides: Any) -> dict[str, Any]:
        """Shallow copy of the context with overrides; vars stays shared."""
        return {**self.context, **overrides}
