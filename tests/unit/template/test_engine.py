"""Unit tests for HandlebarEngine expansion."""

from types import SimpleNamespace

import pytest

from jpulse_core.template import HandlebarEngine, HelperRegistry, error_marker
from jpulse_core.template.engine import DEFAULT_MAX_INCLUDE_DEPTH


class TestInlineExpressions:
    """Tests for {{expression}} evaluation."""

    @pytest.mark.asyncio
    async def test_dotted_path(self, render) -> None:
        """Dotted paths resolve into nested mappings."""
        result = await render("Hi {{user.profile.firstName}}!", {"user": {"profile": {"firstName": "Ann"}}})
        assert result == "Hi Ann!"

    @pytest.mark.asyncio
    async def test_missing_path_is_empty(self, render) -> None:
        """A missing segment anywhere yields an empty string."""
        result = await render("[{{a.b.c.d}}][{{user.missing.deep}}]", {"user": {"name": "x"}})
        assert result == "[][]"

    @pytest.mark.asyncio
    async def test_booleans_stringify(self, render) -> None:
        """Booleans print as true/false."""
        assert await render("{{yes}} {{no}}", {"yes": True, "no": False}) == "true false"

    @pytest.mark.asyncio
    async def test_numbers_and_literals(self, render) -> None:
        """Numeric and string literals evaluate to themselves."""
        assert await render('{{42}} {{"text"}} {{null}}') == "42 text "

    @pytest.mark.asyncio
    async def test_whole_float_prints_as_int(self, render) -> None:
        """4.0 prints as 4."""
        assert await render("{{math.add 1.5 2.5}}") == "4"

    @pytest.mark.asyncio
    async def test_list_index_path(self, render) -> None:
        """Numeric segments index into lists."""
        assert await render("{{items.1.name}}", {"items": [{"name": "a"}, {"name": "b"}]}) == "b"

    @pytest.mark.asyncio
    async def test_empty_expression(self, render) -> None:
        """Whitespace-only markers render as empty strings."""
        assert await render("a{{ }}b{{}}c") == "abc"

    @pytest.mark.asyncio
    async def test_unknown_helper_is_empty(self, render) -> None:
        """Unknown helpers render nothing."""
        assert await render('[{{nope.helper "x" 1}}]') == "[]"

    @pytest.mark.asyncio
    async def test_quoted_argument_with_spaces(self, render) -> None:
        """Quoted spans are single arguments; other quotes inside are kept."""
        result = await render("""{{string.concat "it's " 'a "test"'}}""")
        assert result == 'it\'s a "test"'

    @pytest.mark.asyncio
    async def test_escaped_quote(self, render) -> None:
        """Backslash escapes inside quotes."""
        assert await render(r'{{string.concat "say \"hi\""}}') == 'say "hi"'

    @pytest.mark.asyncio
    async def test_subexpressions_evaluated_first(self, render) -> None:
        """Nested calls are evaluated depth-first and passed as arguments."""
        result = await render("{{math.add (math.multiply 2 3) (math.subtract 10 4)}}")
        assert result == "12"

    @pytest.mark.asyncio
    async def test_concatenation_convention(self, render) -> None:
        """Text helpers transform the concatenation of all arguments."""
        result = await render('{{string.uppercase "a-" name "-c"}}', {"name": "b"})
        assert result == "A-B-C"

    @pytest.mark.asyncio
    async def test_mapping_renders_as_json(self, render) -> None:
        """Mappings and lists print as compact JSON."""
        assert await render("{{data}}", {"data": {"a": [1, 2]}}) == '{"a":[1,2]}'

    @pytest.mark.asyncio
    async def test_comments_removed(self, render) -> None:
        """Both comment forms produce no output."""
        assert await render("a{{! short }}b{{!-- long {{x}} --}}c") == "abc"

    @pytest.mark.asyncio
    async def test_object_attributes(self, render) -> None:
        """Public attributes of plain objects resolve; methods do not."""
        profile = SimpleNamespace(name="Ann", shout=lambda: "HI")

        assert await render("[{{p.name}}][{{p.shout}}]", {"p": profile}) == "[Ann][]"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["p.__dict__", "p._secret", "p.__class__", "p.name.__class__.__name__"])
    async def test_underscore_attributes_hidden(self, render, path: str) -> None:
        """Attributes starting with an underscore are never reachable."""
        profile = SimpleNamespace(name="Ann", _secret="s3cret")

        assert await render(f"[{{{{{path}}}}}]", {"p": profile}) == "[]"

    @pytest.mark.asyncio
    async def test_underscore_mapping_keys(self, render) -> None:
        """Mapping keys starting with an underscore still resolve."""
        assert await render("{{data._id}}", {"data": {"_id": "42"}}) == "42"

    @pytest.mark.asyncio
    async def test_caller_context_not_mutated(self, engine: HandlebarEngine) -> None:
        """Expansion works on a copy of the caller's context."""
        context = {"vars": {"a": 1}}

        await engine.expand_handlebars(None, "{{let a=2 b=3}}", context)

        assert context == {"vars": {"a": 1}}


class TestMalformedMarkers:
    """Tests for graceful handling of bad syntax."""

    @pytest.mark.asyncio
    async def test_unterminated_marker_kept(self, render) -> None:
        """An opening marker without a close is left verbatim."""
        assert await render("Hello {{user.name", {"user": {"name": "x"}}) == "Hello {{user.name"

    @pytest.mark.asyncio
    async def test_nested_open_marker_kept(self, render) -> None:
        """A stray {{ before a complete marker stays literal."""
        assert await render("a {{ b {{name}}", {"name": "N"}) == "a {{ b N"

    @pytest.mark.asyncio
    async def test_unclosed_block_kept(self, render) -> None:
        """An unclosed block marker stays, later markers still expand."""
        result = await render("{{#if flag}}yes {{name}}", {"flag": True, "name": "N"})
        assert result == "{{#if flag}}yes N"

    @pytest.mark.asyncio
    async def test_stray_close_and_else_kept(self, render) -> None:
        """Close and else markers outside a block are emitted unchanged."""
        assert await render("a{{/if}}b{{else}}c") == "a{{/if}}b{{else}}c"

    @pytest.mark.asyncio
    async def test_triple_braces_keep_outer_braces(self, render) -> None:
        """Only the inner {{raw}} is a marker; the extra braces stay."""
        assert await render("{{{raw}}}", {"raw": "<b>"}) == "{<b>}"

    @pytest.mark.asyncio
    async def test_quadruple_braces(self, render) -> None:
        """Each extra brace pair is kept around the innermost marker."""
        assert await render("x{{{{raw}}}}y", {"raw": "R"}) == "x{{R}}y"

    @pytest.mark.asyncio
    async def test_plain_text_untouched(self, render) -> None:
        """Text without markers is returned as-is."""
        assert await render("no markers } here {") == "no markers } here {"


class TestBlocks:
    """Tests for block dispatch."""

    @pytest.mark.asyncio
    async def test_unknown_block_is_empty(self, render) -> None:
        """Unknown block helpers render nothing."""
        assert await render("a{{#mystery x}}body{{/mystery}}b") == "ab"

    @pytest.mark.asyncio
    async def test_regular_helper_as_condition(self, render) -> None:
        """A regular helper in block position selects then/else."""
        template = "{{#eq a 1}}one{{else}}other{{/eq}}"
        assert await render(template, {"a": 1}) == "one"
        assert await render(template, {"a": 2}) == "other"

    @pytest.mark.asyncio
    async def test_sibling_blocks(self, render) -> None:
        """Consecutive blocks of the same name pair independently."""
        result = await render("{{#if a}}A{{/if}}-{{#if b}}B{{/if}}", {"a": True, "b": True})
        assert result == "A-B"

    @pytest.mark.asyncio
    async def test_custom_block_helper_gets_raw_body(self, helpers: HelperRegistry, render) -> None:
        """Block helpers receive the unexpanded body."""
        seen: list[str | None] = []

        def capture(args, block, scope):
            seen.append(block)
            return "done"

        helpers.register("capture", capture, source="test")

        assert await render("{{#capture}}{{name}}{{/capture}}", {"name": "x"}) == "done"
        assert seen == ["{{name}}"]

    @pytest.mark.asyncio
    async def test_async_block_helper_repeats_in_order(self, helpers: HelperRegistry, render) -> None:
        """Async helpers are awaited; repeated expansions keep iteration order."""

        async def repeat(args, block, scope):
            count = int(args.target or 0)
            out = []
            for index in range(count):
                out.append(await scope.expand(block, scope.derive(n=index)))
            return "".join(out)

        helpers.register("repeat", repeat, source="test")

        assert await render("{{#repeat 3}}[{{n}}]{{/repeat}}") == "[0][1][2]"

    @pytest.mark.asyncio
    async def test_block_helper_used_inline(self, helpers: HelperRegistry, render) -> None:
        """Inline use of a block helper passes block=None."""
        helpers.register("kind", lambda args, block, scope: "inline" if block is None else "block")

        assert await render("{{kind}} {{#kind}}x{{/kind}}") == "inline block"


class TestErrorMarkers:
    """Tests for fail-soft error handling."""

    def test_error_marker_format(self) -> None:
        """Markers are HTML comments naming the expression."""
        assert error_marker("x y", "boom") == '<!-- Error: Handlebar "x y": boom -->'

    @pytest.mark.asyncio
    async def test_failing_helper_renders_marker(self, helpers: HelperRegistry, render) -> None:
        """An exception in a helper is contained to its expression."""

        def explode(args, scope):
            raise RuntimeError("boom")

        helpers.register("explode", explode)

        result = await render("before {{explode 1}} after")

        assert result == 'before <!-- Error: Handlebar "explode 1": boom --> after'

    @pytest.mark.asyncio
    async def test_failing_block_renders_marker(self, helpers: HelperRegistry, render) -> None:
        """Block failures render a marker labelled with the block."""

        def explode(args, block, scope):
            raise ValueError("bad block")

        helpers.register("explode", explode)

        result = await render("{{#explode now}}x{{/explode}}")

        assert result == '<!-- Error: Handlebar "#explode now": bad block -->'


class TestIncludes:
    """Tests for include_file through file.include."""

    @pytest.mark.asyncio
    async def test_include_expands_in_context(self, render) -> None:
        """Included files are expanded with the current context."""
        result = await render(
            '{{file.include "jpulse-footer.tmpl"}}', {"appConfig": {"system": {"defaultTheme": "dark"}}}
        )
        assert result == "<footer>dark</footer>"

    @pytest.mark.asyncio
    async def test_include_named_params(self, engine: HandlebarEngine, webapp_tree) -> None:
        """Named parameters are visible inside the included file only."""
        (webapp_tree / "webapp" / "view" / "card.tmpl").write_text("<h2>{{title}}</h2>")

        result = await engine.expand_handlebars(None, '{{file.include "card.tmpl" title="Hi"}}[{{title}}]', {})

        assert result == "<h2>Hi</h2>[]"

    @pytest.mark.asyncio
    async def test_self_include_hits_depth_limit(self, render) -> None:
        """Self-inclusion stops at the depth limit with an inline marker."""
        result = await render('{{file.include "self.tmpl"}}')

        assert result.startswith("xxxxx")
        assert "Maximum include depth (5) exceeded" in result
        assert "<!-- Error: Handlebar" in result

    @pytest.mark.asyncio
    async def test_missing_include_renders_marker(self, render) -> None:
        """A missing fragment does not abort the page."""
        result = await render('a{{file.include "nope.tmpl"}}b')

        assert result.startswith("a<!-- Error:")
        assert "view/nope.tmpl" in result
        assert result.endswith("b")

    @pytest.mark.asyncio
    async def test_traversal_include_rejected(self, render) -> None:
        """Parent directory segments are refused."""
        result = await render('{{file.include "../translations/en.yaml"}}')

        assert "Path not allowed" in result

    @pytest.mark.asyncio
    async def test_header_comment_stripped(self, engine: HandlebarEngine, webapp_tree) -> None:
        """The source banner comment of an included file is dropped."""
        (webapp_tree / "webapp" / "view" / "banner.tmpl").write_text(
            "<!--\n * @name            jPulse Framework / View / Banner\n * @file x\n -->\nbody"
        )

        assert await engine.expand_handlebars(None, '{{file.include "banner.tmpl"}}', {}) == "body"

    @pytest.mark.asyncio
    async def test_site_override_included(self, render) -> None:
        """Includes resolve through the site layer first."""
        assert await render('{{file.include "examples/beta.shtml"}}') == "beta (site)"

    def test_default_depth(self) -> None:
        """Default include depth."""
        assert HandlebarEngine(HelperRegistry()).max_include_depth == DEFAULT_MAX_INCLUDE_DEPTH == 16
