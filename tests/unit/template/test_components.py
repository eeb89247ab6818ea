"""Unit tests for {{#component}} definitions and components.* calls."""

import pytest

ICON = '{{#component "icons.config-svg" size="64"}}<svg width="{{size}}">{{label}}</svg>{{/component}}'


class TestComponents:
    """Tests for component definition and use."""

    @pytest.mark.asyncio
    async def test_definition_produces_no_output(self, render) -> None:
        """Definitions render nothing, including trailing whitespace."""
        assert await render(ICON + "\n\n  after") == "after"

    @pytest.mark.asyncio
    async def test_kebab_name_becomes_camel_case(self, render) -> None:
        """icons.config-svg is called as components.icons.configSvg."""
        result = await render(ICON + '{{components.icons.configSvg label="gear"}}')

        assert result == '<svg width="64">gear</svg>'

    @pytest.mark.asyncio
    async def test_parameters_override_defaults(self, render) -> None:
        """Call parameters win over definition defaults."""
        result = await render(ICON + '{{components.icons.configSvg size="16" label=name}}', {"name": "n"})

        assert result == '<svg width="16">n</svg>'

    @pytest.mark.asyncio
    async def test_component_sees_outer_context(self, render) -> None:
        """The surrounding context is visible inside the component."""
        template = '{{#component "greet"}}Hi {{user.firstName}}{{/component}}{{components.greet}}'

        assert await render(template, {"user": {"firstName": "Ann"}}) == "Hi Ann"

    @pytest.mark.asyncio
    async def test_inline_collapses_whitespace(self, render) -> None:
        """_inline=true collapses whitespace runs to single spaces."""
        template = '{{#component "para"}}<p>\n    {{text}}\n</p>{{/component}}{{components.para text="x" _inline=true}}'

        assert await render(template) == "<p> x </p>"

    @pytest.mark.asyncio
    async def test_components_nest(self, render) -> None:
        """A component may call another component."""
        template = (
            '{{#component "inner"}}({{v}}){{/component}}'
            '{{#component "outer"}}[{{components.inner v=v}}]{{/component}}'
            '{{components.outer v="1"}}'
        )

        assert await render(template) == "[(1)]"

    @pytest.mark.asyncio
    async def test_unknown_component(self, render) -> None:
        """Calling an undefined component renders an error marker."""
        result = await render("{{components.nope}}")

        assert result.startswith('<!-- Error: Handlebar "components.nope": Component "nope" not found.')

    @pytest.mark.asyncio
    async def test_circular_reference(self, render) -> None:
        """Self-reference is detected instead of recursing."""
        result = await render('{{#component "loop"}}[{{components.loop}}]{{/component}}{{components.loop}}')

        assert "Circular component reference detected: loop -> loop" in result
        assert result.startswith("[") and result.endswith("]")

    @pytest.mark.asyncio
    async def test_invalid_name(self, render) -> None:
        """Names must start with a letter."""
        result = await render('{{#component "9lives"}}x{{/component}}')

        assert 'Invalid component name "9lives"' in result

    @pytest.mark.asyncio
    async def test_inline_definition_rejected(self, render) -> None:
        """component must be a block."""
        result = await render('{{component "x"}}')

        assert "component must be used as a block" in result

    @pytest.mark.asyncio
    async def test_components_scoped_to_pass(self, engine) -> None:
        """Definitions do not survive into the next expansion."""
        await engine.expand_handlebars(None, '{{#component "once"}}1{{/component}}', {})

        result = await engine.expand_handlebars(None, "{{components.once}}", {})

        assert "not found" in result
