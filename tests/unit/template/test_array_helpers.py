"""Unit tests for array.* helpers."""

import pytest


@pytest.fixture
def data() -> dict:
    return {
        "fruits": ["banana", "apple", "cherry"],
        "nums": [10, 2, 33],
        "empty": [],
        "prefs": {"theme": "dark"},
        "people": [
            {"name": "Cleo", "age": 41},
            {"name": "Abe", "age": None},
            {"name": "Bo", "age": 7},
        ],
    }


class TestAccessors:
    """Tests for at, first, last and length."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("template", "expected"),
        [
            ("{{array.at fruits 1}}", "apple"),
            ("{{array.at fruits 5}}", ""),
            ("{{array.at fruits -1}}", ""),
            ("{{array.at prefs 0}}", ""),
            ("{{array.first fruits}}", "banana"),
            ("{{array.last fruits}}", "cherry"),
            ("{{array.first empty}}", ""),
            ("{{array.length fruits}}", "3"),
            ("{{array.length prefs}}", "1"),
            ("{{array.length missing}}", "0"),
        ],
    )
    async def test_accessors(self, render, data, template, expected) -> None:
        """Out-of-range and non-list input render empty."""
        assert await render(template, data) == expected


class TestPredicates:
    """Tests for includes and isEmpty."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("template", "expected"),
        [
            ('{{array.includes fruits "apple"}}', "true"),
            ('{{array.includes nums "10"}}', "true"),
            ('{{array.includes fruits "kiwi"}}', "false"),
            ('{{array.includes prefs "theme"}}', "false"),
            ("{{array.isEmpty empty}}", "true"),
            ("{{array.isEmpty fruits}}", "false"),
            ("{{array.isEmpty prefs}}", "false"),
            ("{{array.isEmpty missing}}", "true"),
        ],
    )
    async def test_predicates(self, render, data, template, expected) -> None:
        """Loose equality and collection emptiness."""
        assert await render(template, data) == expected


class TestTransforms:
    """Tests for join, concat, reverse and sort."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("template", "expected"),
        [
            ("{{array.join fruits}}", "banana,apple,cherry"),
            ('{{array.join fruits " | "}}', "banana | apple | cherry"),
            ("{{array.join missing}}", ""),
            ('{{array.join (array.concat fruits nums "x")}}', "banana,apple,cherry,10,2,33"),
            ("{{array.join (array.reverse nums)}}", "33,2,10"),
            ("{{array.reverse prefs}}", "[]"),
            ("{{array.join (array.sort fruits)}}", "apple,banana,cherry"),
            ("{{array.join (array.sort nums)}}", "2,10,33"),
            ("{{array.join (array.sort nums reverse=true)}}", "33,10,2"),
            ('{{array.join (array.sort nums sortAs="string")}}', "10,2,33"),
        ],
    )
    async def test_transforms(self, render, data, template, expected) -> None:
        """Transforms return new lists; non-lists give empty results."""
        assert await render(template, data) == expected

    @pytest.mark.asyncio
    async def test_sort_by_property_nulls_last(self, render, data) -> None:
        """sortBy orders mappings; missing values go last in both directions."""
        ascending = '{{#each (array.sort people sortBy="age")}}{{this.name}} {{/each}}'
        descending = '{{#each (array.sort people sortBy="age" reverse=true)}}{{this.name}} {{/each}}'

        assert await render(ascending, data) == "Bo Cleo Abe "
        assert await render(descending, data) == "Cleo Bo Abe "

    @pytest.mark.asyncio
    async def test_sort_does_not_mutate(self, render, data) -> None:
        """The input list keeps its order."""
        await render("{{array.sort fruits}}", data)

        assert data["fruits"] == ["banana", "apple", "cherry"]
