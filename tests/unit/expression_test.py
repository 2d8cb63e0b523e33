"""Tests for the sandboxed expression evaluator."""

from __future__ import annotations

from typing import Any

import pytest

from json_pilot.core.errors import QueryFailure
from json_pilot.core.expression import UNDEFINED, evaluate_expression, to_json_value

DATA: dict[str, Any] = {
    "items": [
        {"name": "apple", "price": 3, "tags": ["fruit"]},
        {"name": "steak", "price": 25, "tags": ["meat", "bbq"]},
        {"name": "bread", "price": 4, "tags": []},
    ],
    "owner": {"name": "Ada", "email": None},
    "count": 3,
}


def _eval(expression: str, data: Any = DATA) -> Any:
    return to_json_value(evaluate_expression(expression, data))


class TestAccess:
    def test_member_chain(self) -> None:
        assert _eval("data.owner.name") == "Ada"

    def test_leading_dot_binds_data(self) -> None:
        assert _eval(".owner.name") == "Ada"

    def test_leading_bracket_binds_data(self) -> None:
        assert _eval('["owner"]["name"]') == "Ada"

    def test_index_access(self) -> None:
        assert _eval("data.items[1].name") == "steak"

    def test_length(self) -> None:
        assert _eval("data.items.length") == 3
        assert _eval("data.owner.name.length") == 3

    def test_missing_member_is_undefined(self) -> None:
        assert evaluate_expression("data.nope", DATA) is UNDEFINED

    def test_optional_chaining(self) -> None:
        assert evaluate_expression("data.nope?.deeper", DATA) is UNDEFINED

    def test_reading_from_undefined_fails(self) -> None:
        with pytest.raises(QueryFailure, match="Cannot read properties of undefined"):
            evaluate_expression("data.nope.deeper", DATA)

    def test_trailing_semicolon(self) -> None:
        assert _eval("data.count;") == 3


class TestArrayMethods:
    def test_filter(self) -> None:
        assert _eval(".filter(i => i > 1)", [1, 2, 3]) == [2, 3]

    def test_filter_and_map(self) -> None:
        assert _eval("data.items.filter(i => i.price > 3).map(i => i.name)") == ["steak", "bread"]

    def test_find(self) -> None:
        assert _eval('data.items.find(i => i.name === "bread").price') == 4

    def test_find_missing(self) -> None:
        assert evaluate_expression("data.items.find(i => i.price > 100)", DATA) is UNDEFINED

    def test_some_every(self) -> None:
        assert _eval("data.items.some(i => i.price > 20)") is True
        assert _eval("data.items.every(i => i.price > 20)") is False

    def test_reduce(self) -> None:
        assert _eval("data.items.reduce((sum, i) => sum + i.price, 0)") == 32

    def test_flat_map(self) -> None:
        assert _eval("data.items.flatMap(i => i.tags)") == ["fruit", "meat", "bbq"]

    def test_join_and_includes(self) -> None:
        assert _eval('data.items.map(i => i.name).join("|")') == "apple|steak|bread"
        assert _eval('data.items.map(i => i.name).includes("steak")') is True

    def test_sort_with_comparator(self) -> None:
        assert _eval("data.items.map(i => i.price).sort((a, b) => b - a)") == [25, 4, 3]

    def test_slice_and_at(self) -> None:
        assert _eval("data.items.slice(1).map(i => i.name)") == ["steak", "bread"]
        assert _eval("data.items.at(-1).name") == "bread"

    def test_function_expression(self) -> None:
        assert _eval("data.items.map(function (i) { return i.price * 2; })") == [6, 50, 8]


class TestOperators:
    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("1 + 2 * 3", 7),
            ('"a" + 1', "a1"),
            ("7 / 2", 3.5),
            ("7 % 4", 3),
            ("2 ** 10", 1024),
            ('1 == "1"', True),
            ('1 === "1"', False),
            ("null ?? 5", 5),
            ("0 || 5", 5),
            ("0 && 5", 0),
            ("!data.count", False),
            ("typeof data.owner", "object"),
            ("data.count > 2 ? 'many' : 'few'", "many"),
            ('"owner" in data', True),
            ("-data.count", -3),
        ],
    )
    def test_binary_and_unary(self, expression: str, expected: Any) -> None:
        assert _eval(expression) == expected

    def test_string_methods(self) -> None:
        assert _eval("data.owner.name.toUpperCase()") == "ADA"
        assert _eval('"a,b".split(",")') == ["a", "b"]
        assert _eval('"  x ".trim()') == "x"

    def test_string_escapes(self) -> None:
        assert _eval(r'"tab\there A"') == "tab\there A"


class TestNumbers:
    def test_huge_power_overflows_to_infinity(self) -> None:
        assert _eval("9 ** 9 ** 9") is None
        assert _eval("String(9 ** 9 ** 9)") == "Infinity"

    def test_power_beyond_safe_integers_is_a_double(self) -> None:
        result = _eval("2 ** 64")
        assert isinstance(result, float)
        assert result == 2.0**64
        assert _eval("String(2 ** 64)") == "18446744073709552000"

    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("(-2) ** 3", -8),
            ("4 ** 0.5", 2),
            ("(-8) ** (1 / 3)", "NaN"),
            ("0 ** -1", "Infinity"),
            ("(-10) ** 309", "-Infinity"),
            ("1 ** (0 / 0)", "NaN"),
        ],
    )
    def test_power_edge_cases(self, expression: str, expected: Any) -> None:
        if isinstance(expected, str):
            assert _eval(f"String({expression})") == expected
        else:
            assert _eval(expression) == expected

    def test_small_products_stay_integers(self) -> None:
        result = _eval("6 * 7")
        assert result == 42
        assert isinstance(result, int)

    def test_product_overflows_to_infinity(self) -> None:
        assert _eval("String(1e308 * 10)") == "Infinity"

    def test_repeated_squaring_finishes(self) -> None:
        assert _eval("data.reduce(acc => acc * acc, 3)", list(range(40))) is None

    def test_rounding_keeps_infinity(self) -> None:
        assert _eval("String(Math.floor(9 ** 9 ** 9))") == "Infinity"

    @pytest.mark.parametrize("text", ["1_000", "inf", "nan", "infinity", "-inf"])
    def test_number_conversion_rejects_non_js_spellings(self, text: str) -> None:
        assert _eval(f'String(Number("{text}"))') == "NaN"

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("Infinity", "Infinity"), ("-Infinity", "-Infinity"), (" 42 ", "42"), ("0x10", "16"), ("1e3", "1000")],
    )
    def test_number_conversion(self, text: str, expected: str) -> None:
        assert _eval(f'String(Number("{text}"))') == expected

    def test_loose_equality_uses_js_number_parsing(self) -> None:
        assert _eval('"1_000" == 1000') is False


class TestGlobals:
    def test_math(self) -> None:
        assert _eval("Math.max(...data.items.map(i => i.price))") == 25

    def test_object_keys(self) -> None:
        assert _eval("Object.keys(data.owner)") == ["name", "email"]

    def test_json_stringify(self) -> None:
        assert _eval("JSON.stringify(data.owner)") == '{"name":"Ada","email":null}'

    def test_object_and_array_literals(self) -> None:
        assert _eval("({ total: data.count, names: [data.owner.name] })") == {"total": 3, "names": ["Ada"]}


class TestFunctionResult:
    def test_function_result_is_called_with_data(self) -> None:
        assert _eval("d => d.count + 1") == 4

    def test_arrow_with_filter_is_not_mistaken_for_function(self) -> None:
        assert _eval("data.items.filter(i => i.price < 4).length") == 1


class TestSandbox:
    @pytest.mark.parametrize(
        "expression",
        [
            "__import__('os')",
            "data.__class__",
            "globalThis",
            "process.exit()",
            "require('fs')",
            "eval('1')",
        ],
    )
    def test_unknown_names_and_attributes(self, expression: str) -> None:
        try:
            result = evaluate_expression(expression, DATA)
        except QueryFailure:
            return
        assert result is UNDEFINED

    @pytest.mark.parametrize(
        "expression",
        [
            "data.count = 5",
            "new Date()",
            "data.items.map(i => { const x = 1; return x; })",
            "`template ${data.count}`",
        ],
    )
    def test_unsupported_syntax(self, expression: str) -> None:
        with pytest.raises(QueryFailure):
            evaluate_expression(expression, DATA)

    def test_syntax_error(self) -> None:
        with pytest.raises(QueryFailure, match="Invalid expression"):
            evaluate_expression("data.items.filter(", DATA)

    def test_empty_expression(self) -> None:
        with pytest.raises(QueryFailure):
            evaluate_expression("   ", DATA)

    def test_calling_non_function(self) -> None:
        with pytest.raises(QueryFailure, match="is not a function"):
            evaluate_expression("data.count()", DATA)


class TestToJsonValue:
    def test_undefined_in_containers(self) -> None:
        assert to_json_value([UNDEFINED, 1]) == [None, 1]
        assert to_json_value({"a": UNDEFINED, "b": 2}) == {"b": 2}

    def test_non_finite_numbers(self) -> None:
        assert to_json_value(float("nan")) is None
        assert to_json_value(2.0) == 2
