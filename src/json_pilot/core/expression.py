"""Sandboxed evaluator for query expressions.

Expressions use a small JavaScript-like syntax (``data.items.filter(i =>
i.price > 10)``). They are parsed with tree-sitter's JavaScript grammar and
interpreted by walking the syntax tree. Only the node types handled here are
accepted, and values never expose Python attributes, so an expression can
reach nothing but the document it is given and the whitelisted helpers below.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Sequence
from functools import cmp_to_key, partial
from typing import Any

from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from json_pilot.core.errors import QueryFailure

logger = logging.getLogger(__name__)

BOUND_NAME = "data"

MAX_SAFE_INTEGER = 2**53 - 1


class _Undefined:
    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


class _Namespace:
    def __init__(self, name: str, members: dict[str, Any]) -> None:
        self.name = name
        self.members = members


# ---------------------------------------------------------------------------
# Value semantics
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_function(value: Any) -> bool:
    return callable(value) and not isinstance(value, _Namespace)


def truthy(value: Any) -> bool:
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def _format_number(value: int | float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        mantissa, _, exponent = repr(abs(value)).partition("e")
        if not exponent:
            return str(int(value))
        whole, _, fraction = mantissa.partition(".")
        digits = whole + fraction + "0" * (int(exponent) - len(fraction))
        return "-" + digits if value < 0 else digits
    return repr(value)


def to_js_string(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return _format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ",".join("" if v is None or v is UNDEFINED else to_js_string(v) for v in value)
    if _is_function(value):
        return "function"
    return "[object Object]"


def to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        return int(value)
    if _is_number(value):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0
        if "_" in stripped:
            return math.nan
        unsigned = stripped.lstrip("+-")
        if unsigned == "Infinity":
            return -math.inf if stripped.startswith("-") else math.inf
        if unsigned[:3].lower() in ("inf", "nan"):
            return math.nan
        try:
            return int(stripped, 0) if stripped.lower().startswith(("0x", "0o", "0b")) else int(stripped)
        except ValueError:
            pass
        try:
            return float(stripped)
        except ValueError:
            return math.nan
    if isinstance(value, list):
        return to_number(to_js_string(value))
    return math.nan


def _to_int(value: Any, default: int) -> int:
    if value is UNDEFINED:
        return default
    number = to_number(value)
    if isinstance(number, float):
        if math.isnan(number):
            return 0
        if math.isinf(number):
            return default if number > 0 else 0
    return int(number)


def typeof(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if _is_function(value):
        return "function"
    return "object"


def strict_equals(left: Any, right: Any) -> bool:
    if left is UNDEFINED or right is UNDEFINED:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return left is right


def loose_equals(left: Any, right: Any) -> bool:
    nullish = (None, UNDEFINED)
    if left in nullish or right in nullish:
        return left in nullish and right in nullish
    if isinstance(left, str) and (_is_number(right) or isinstance(right, bool)):
        return to_number(left) == to_number(right)
    if isinstance(right, str) and (_is_number(left) or isinstance(left, bool)):
        return to_number(left) == to_number(right)
    if isinstance(left, bool) or isinstance(right, bool):
        if isinstance(left, (dict, list)) or isinstance(right, (dict, list)):
            return False
        return to_number(left) == to_number(right)
    return strict_equals(left, right)


def _compare(left: Any, right: Any, op: Callable[[Any, Any], bool]) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        return op(left, right)
    a, b = to_number(left), to_number(right)
    if math.isnan(a) or math.isnan(b):
        return False
    return op(a, b)


def _add(left: Any, right: Any) -> Any:
    if isinstance(left, (str, list, dict)) or isinstance(right, (str, list, dict)):
        return to_js_string(left) + to_js_string(right)
    return to_number(left) + to_number(right)


def _divide(left: Any, right: Any) -> int | float:
    a, b = to_number(left), to_number(right)
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a)
    return a / b


def _modulo(left: Any, right: Any) -> int | float:
    a, b = to_number(left), to_number(right)
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    result = math.fmod(a, b)
    return int(result) if isinstance(a, int) and isinstance(b, int) else result


def _as_float(value: Any) -> float:
    number = to_number(value)
    try:
        return float(number)
    except OverflowError:
        return math.inf if number > 0 else -math.inf


def _numeric(value: float) -> int | float:
    """Integral results inside the safe-integer range come back as ints."""
    if value.is_integer() and abs(value) <= MAX_SAFE_INTEGER:
        return int(value)
    return value


def _multiply(left: Any, right: Any) -> int | float:
    return _numeric(_as_float(left) * _as_float(right))


def _power(left: Any, right: Any) -> int | float:
    base, exponent = _as_float(left), _as_float(right)
    if math.isnan(exponent) or (abs(base) == 1 and math.isinf(exponent)):
        return math.nan
    odd = exponent.is_integer() and exponent % 2 == 1
    try:
        return _numeric(math.pow(base, exponent))
    except OverflowError:
        return -math.inf if base < 0 and odd else math.inf
    except ValueError:
        # zero to a negative power; a negative base to a fractional one
        if base == 0:
            return -math.inf if math.copysign(1, base) < 0 and odd else math.inf
        return math.nan


def _contains(left: Any, right: Any) -> bool:
    if isinstance(right, dict):
        return to_js_string(left) in right
    if isinstance(right, list):
        index = to_number(left)
        return isinstance(index, int) and 0 <= index < len(right) or to_js_string(left) == "length"
    raise QueryFailure(f"Cannot use 'in' operator to search for '{to_js_string(left)}' in {to_js_string(right)}")


_BINARY_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "+": _add,
    "-": lambda a, b: to_number(a) - to_number(b),
    "*": _multiply,
    "/": _divide,
    "%": _modulo,
    "**": _power,
    "===": strict_equals,
    "!==": lambda a, b: not strict_equals(a, b),
    "==": loose_equals,
    "!=": lambda a, b: not loose_equals(a, b),
    "<": lambda a, b: _compare(a, b, lambda x, y: x < y),
    "<=": lambda a, b: _compare(a, b, lambda x, y: x <= y),
    ">": lambda a, b: _compare(a, b, lambda x, y: x > y),
    ">=": lambda a, b: _compare(a, b, lambda x, y: x >= y),
    "in": _contains,
}


def to_json_value(value: Any) -> Any:
    """Convert an evaluation result to plain JSON data (``UNDEFINED`` when there is none)."""
    if value is UNDEFINED or _is_function(value) or isinstance(value, _Namespace):
        return UNDEFINED
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return _numeric(value)
    if isinstance(value, list):
        items = (to_json_value(item) for item in value)
        return [None if item is UNDEFINED else item for item in items]
    if isinstance(value, dict):
        converted = {key: to_json_value(item) for key, item in value.items()}
        return {key: item for key, item in converted.items() if item is not UNDEFINED}
    return value


# ---------------------------------------------------------------------------
# Whitelisted methods and globals
# ---------------------------------------------------------------------------


def _invoke(fn: Any, *args: Any) -> Any:
    if not _is_function(fn):
        raise QueryFailure(f"{to_js_string(fn)} is not a function")
    return fn(*args)


def _flatten(items: Sequence[Any], depth: int) -> list[Any]:
    result: list[Any] = []
    for item in items:
        if isinstance(item, list) and depth > 0:
            result.extend(_flatten(item, depth - 1))
        else:
            result.append(item)
    return result


def _reduce(arr: list[Any], fn: Any, *initial: Any) -> Any:
    if initial:
        acc, start = initial[0], 0
    elif arr:
        acc, start = arr[0], 1
    else:
        raise QueryFailure("Reduce of empty array with no initial value")
    for index in range(start, len(arr)):
        acc = _invoke(fn, acc, arr[index], index, arr)
    return acc


def _sort(arr: list[Any], fn: Any = UNDEFINED) -> list[Any]:
    if fn is UNDEFINED:
        return sorted(arr, key=to_js_string)
    return sorted(arr, key=cmp_to_key(lambda a, b: to_number(_invoke(fn, a, b))))


def _at(seq: Sequence[Any], index: Any = 0) -> Any:
    position = _to_int(index, 0)
    if position < 0:
        position += len(seq)
    return seq[position] if 0 <= position < len(seq) else UNDEFINED


def _slice(seq: Sequence[Any], start: Any = UNDEFINED, end: Any = UNDEFINED) -> Any:
    return seq[_to_int(start, 0) : _to_int(end, len(seq))]


def _index_of(arr: list[Any], needle: Any) -> int:
    return next((i for i, item in enumerate(arr) if strict_equals(item, needle)), -1)


def _concat(arr: list[Any], *items: Any) -> list[Any]:
    result = list(arr)
    for item in items:
        if isinstance(item, list):
            result.extend(item)
        else:
            result.append(item)
    return result


def _split(text: str, separator: Any = UNDEFINED) -> list[str]:
    if separator is UNDEFINED:
        return [text]
    separator = to_js_string(separator)
    return list(text) if separator == "" else text.split(separator)


_ARRAY_METHODS: dict[str, Callable[..., Any]] = {
    "filter": lambda arr, fn: [v for i, v in enumerate(arr) if truthy(_invoke(fn, v, i, arr))],
    "map": lambda arr, fn: [_invoke(fn, v, i, arr) for i, v in enumerate(arr)],
    "find": lambda arr, fn: next((v for i, v in enumerate(arr) if truthy(_invoke(fn, v, i, arr))), UNDEFINED),
    "findIndex": lambda arr, fn: next((i for i, v in enumerate(arr) if truthy(_invoke(fn, v, i, arr))), -1),
    "some": lambda arr, fn: any(truthy(_invoke(fn, v, i, arr)) for i, v in enumerate(arr)),
    "every": lambda arr, fn: all(truthy(_invoke(fn, v, i, arr)) for i, v in enumerate(arr)),
    "includes": lambda arr, needle: any(strict_equals(v, needle) for v in arr),
    "indexOf": _index_of,
    "join": lambda arr, sep=",": to_js_string(sep).join(
        "" if v is None or v is UNDEFINED else to_js_string(v) for v in arr
    ),
    "slice": _slice,
    "concat": _concat,
    "flat": lambda arr, depth=1: _flatten(arr, _to_int(depth, 1)),
    "flatMap": lambda arr, fn: _flatten([_invoke(fn, v, i, arr) for i, v in enumerate(arr)], 1),
    "reduce": _reduce,
    "reverse": lambda arr: list(reversed(arr)),
    "sort": _sort,
    "at": _at,
}

_STRING_METHODS: dict[str, Callable[..., Any]] = {
    "toUpperCase": lambda s: s.upper(),
    "toLowerCase": lambda s: s.lower(),
    "trim": lambda s: s.strip(),
    "includes": lambda s, sub: to_js_string(sub) in s,
    "startsWith": lambda s, prefix: s.startswith(to_js_string(prefix)),
    "endsWith": lambda s, suffix: s.endswith(to_js_string(suffix)),
    "split": _split,
    "slice": _slice,
    "indexOf": lambda s, sub: s.find(to_js_string(sub)),
    "replace": lambda s, old, new: s.replace(to_js_string(old), to_js_string(new), 1),
    "at": _at,
    "concat": lambda s, *parts: s + "".join(to_js_string(p) for p in parts),
}


def _object_keys(value: Any) -> list[str]:
    if isinstance(value, dict):
        return list(value)
    if isinstance(value, (list, str)):
        return [str(i) for i in range(len(value))]
    return []


def _object_values(value: Any) -> list[Any]:
    if isinstance(value, dict):
        return list(value.values())
    if isinstance(value, list):
        return list(value)
    return []


def _json_stringify(value: Any, _replacer: Any = UNDEFINED, indent: Any = UNDEFINED) -> Any:
    converted = to_json_value(value)
    if converted is UNDEFINED:
        return UNDEFINED
    if indent is UNDEFINED or indent is None:
        return json.dumps(converted, separators=(",", ":"), ensure_ascii=False)
    spacing: int | str = indent if isinstance(indent, str) else _to_int(indent, 0)
    return json.dumps(converted, indent=spacing or None, ensure_ascii=False)


def _json_parse(text: Any) -> Any:
    try:
        return json.loads(to_js_string(text))
    except ValueError as exc:
        raise QueryFailure(f"JSON.parse: {exc}") from exc


def _math_reduce(pick: Callable[..., Any], empty: float) -> Callable[..., Any]:
    def _apply(*args: Any) -> Any:
        numbers = [to_number(a) for a in args]
        if not numbers:
            return empty
        if any(math.isnan(n) for n in numbers):
            return math.nan
        return pick(numbers)

    return _apply


def _rounding(fn: Callable[[float], int]) -> Callable[..., Any]:
    def _apply(x: Any = UNDEFINED) -> int | float:
        number = to_number(x)
        if isinstance(number, float) and not math.isfinite(number):
            return number
        return fn(number)

    return _apply


def _global_scope() -> dict[str, Any]:
    return {
        "Math": _Namespace(
            "Math",
            {
                "max": _math_reduce(max, -math.inf),
                "min": _math_reduce(min, math.inf),
                "abs": lambda x=UNDEFINED: abs(to_number(x)),
                "round": _rounding(lambda n: math.floor(n + 0.5)),
                "floor": _rounding(math.floor),
                "ceil": _rounding(math.ceil),
                "sqrt": lambda x=UNDEFINED: math.sqrt(to_number(x)) if to_number(x) >= 0 else math.nan,
                "PI": math.pi,
            },
        ),
        "Object": _Namespace(
            "Object",
            {
                "keys": _object_keys,
                "values": _object_values,
                "entries": lambda value: [[k, v] for k, v in zip(_object_keys(value), _object_values(value))],
                "fromEntries": lambda pairs: {to_js_string(p[0]): p[1] for p in pairs if isinstance(p, list) and p},
            },
        ),
        "JSON": _Namespace("JSON", {"stringify": _json_stringify, "parse": _json_parse}),
        "Array": _Namespace("Array", {"isArray": lambda value=UNDEFINED: isinstance(value, list)}),
        "Number": lambda value=0: to_number(value),
        "String": lambda value="": to_js_string(value),
        "Boolean": lambda value=UNDEFINED: truthy(value),
    }


def get_member(target: Any, key: Any) -> Any:
    """Property access with JavaScript semantics, restricted to JSON data and whitelisted helpers."""
    if target is None or target is UNDEFINED:
        raise QueryFailure(
            f"Cannot read properties of {to_js_string(target)} (reading '{to_js_string(key)}')"
        )
    if isinstance(target, _Namespace):
        return target.members.get(to_js_string(key), UNDEFINED)
    if isinstance(target, dict):
        return target.get(key if isinstance(key, str) else to_js_string(key), UNDEFINED)
    if isinstance(target, (list, str)):
        if _is_number(key):
            return _at(target, key) if float(key).is_integer() and key >= 0 else UNDEFINED
        name = to_js_string(key)
        if name == "length":
            return len(target)
        if name.isdigit():
            return _at(target, int(name))
        methods = _ARRAY_METHODS if isinstance(target, list) else _STRING_METHODS
        if name in methods:
            return partial(methods[name], target)
    return UNDEFINED


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------


_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


def _unescape(sequence: str) -> str:
    body = sequence[1:]
    if not body:
        return ""
    head = body[0]
    if head == "u":
        return chr(int(body[1:].strip("{}"), 16))
    if head == "x":
        return chr(int(body[1:], 16))
    if head in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[head]
    if head in "\r\n\u2028\u2029":
        return ""
    return body


class _Function:
    """A function value defined inside an expression."""

    def __init__(self, interpreter: "_Interpreter", params: list[str], body: Node, scope: dict[str, Any]) -> None:
        self._interpreter = interpreter
        self._params = params
        self._body = body
        self._scope = scope

    def __call__(self, *args: Any) -> Any:
        scope = dict(self._scope)
        for index, name in enumerate(self._params):
            scope[name] = args[index] if index < len(args) else UNDEFINED
        if self._body.type == "statement_block":
            return self._interpreter.run_block(self._body, scope)
        return self._interpreter.eval(self._body, scope)


class _Interpreter:
    def __init__(self, source: bytes) -> None:
        self._source = source

    def text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    @staticmethod
    def named(node: Node) -> list[Node]:
        return [child for child in node.named_children if child.type != "comment"]

    def unsupported(self, node: Node) -> QueryFailure:
        return QueryFailure(f"Unsupported syntax: {node.type} ({self.text(node)!r})")

    def eval(self, node: Node, scope: dict[str, Any]) -> Any:
        handler = getattr(self, f"_eval_{node.type}", None)
        if handler is None:
            raise self.unsupported(node)
        return handler(node, scope)

    def run_block(self, block: Node, scope: dict[str, Any]) -> Any:
        statements = [s for s in self.named(block) if s.type != "empty_statement"]
        if len(statements) != 1 or statements[0].type != "return_statement":
            raise QueryFailure("Function bodies may only contain a single return statement")
        values = self.named(statements[0])
        return self.eval(values[0], scope) if values else UNDEFINED

    def _single(self, node: Node) -> Node:
        children = self.named(node)
        if len(children) != 1:
            raise self.unsupported(node)
        return children[0]

    # -- structure --

    def _eval_program(self, node: Node, scope: dict[str, Any]) -> Any:
        return self.eval(self._single(node), scope)

    def _eval_expression_statement(self, node: Node, scope: dict[str, Any]) -> Any:
        return self.eval(self._single(node), scope)

    def _eval_parenthesized_expression(self, node: Node, scope: dict[str, Any]) -> Any:
        return self.eval(self._single(node), scope)

    # -- literals --

    def _eval_number(self, node: Node, _scope: dict[str, Any]) -> Any:
        return to_number(self.text(node).replace("_", ""))

    def _eval_string(self, node: Node, _scope: dict[str, Any]) -> str:
        parts = []
        for child in node.named_children:
            if child.type == "escape_sequence":
                parts.append(_unescape(self.text(child)))
            else:
                parts.append(self.text(child))
        return "".join(parts)

    def _eval_true(self, _node: Node, _scope: dict[str, Any]) -> bool:
        return True

    def _eval_false(self, _node: Node, _scope: dict[str, Any]) -> bool:
        return False

    def _eval_null(self, _node: Node, _scope: dict[str, Any]) -> None:
        return None

    def _eval_undefined(self, _node: Node, _scope: dict[str, Any]) -> Any:
        return UNDEFINED

    def _eval_identifier(self, node: Node, scope: dict[str, Any]) -> Any:
        name = self.text(node)
        if name == "undefined":
            return UNDEFINED
        if name not in scope:
            raise QueryFailure(f"{name} is not defined")
        return scope[name]

    def _eval_array(self, node: Node, scope: dict[str, Any]) -> list[Any]:
        items: list[Any] = []
        for child in self.named(node):
            if child.type == "spread_element":
                spread = self.eval(self._single(child), scope)
                if not isinstance(spread, (list, str)):
                    raise QueryFailure(f"{to_js_string(spread)} is not iterable")
                items.extend(spread)
            else:
                items.append(self.eval(child, scope))
        return items

    def _eval_object(self, node: Node, scope: dict[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for child in self.named(node):
            if child.type == "pair":
                key_node = child.child_by_field_name("key")
                value_node = child.child_by_field_name("value")
                if key_node is None or value_node is None:
                    raise self.unsupported(child)
                result[self._property_name(key_node, scope)] = self.eval(value_node, scope)
            elif child.type == "shorthand_property_identifier":
                result[self.text(child)] = self._eval_identifier(child, scope)
            elif child.type == "spread_element":
                spread = self.eval(self._single(child), scope)
                if isinstance(spread, dict):
                    result.update(spread)
            else:
                raise self.unsupported(child)
        return result

    def _property_name(self, node: Node, scope: dict[str, Any]) -> str:
        if node.type == "property_identifier":
            return self.text(node)
        if node.type == "computed_property_name":
            return to_js_string(self.eval(self._single(node), scope))
        return to_js_string(self.eval(node, scope))

    # -- access and calls --

    def _eval_member_expression(self, node: Node, scope: dict[str, Any]) -> Any:
        target = self.eval(node.child_by_field_name("object"), scope)
        if node.child_by_field_name("optional_chain") is not None and target in (None, UNDEFINED):
            return UNDEFINED
        prop = node.child_by_field_name("property")
        if prop is None or prop.type != "property_identifier":
            raise self.unsupported(node)
        return get_member(target, self.text(prop))

    def _eval_subscript_expression(self, node: Node, scope: dict[str, Any]) -> Any:
        target = self.eval(node.child_by_field_name("object"), scope)
        if node.child_by_field_name("optional_chain") is not None and target in (None, UNDEFINED):
            return UNDEFINED
        return get_member(target, self.eval(node.child_by_field_name("index"), scope))

    def _eval_call_expression(self, node: Node, scope: dict[str, Any]) -> Any:
        fn_node = node.child_by_field_name("function")
        args_node = node.child_by_field_name("arguments")
        if args_node is None or args_node.type != "arguments":
            raise self.unsupported(node)
        fn = self.eval(fn_node, scope)
        if node.child_by_field_name("optional_chain") is not None and fn in (None, UNDEFINED):
            return UNDEFINED
        if not _is_function(fn):
            raise QueryFailure(f"{self.text(fn_node)} is not a function")
        args: list[Any] = []
        for child in self.named(args_node):
            if child.type == "spread_element":
                spread = self.eval(self._single(child), scope)
                if not isinstance(spread, list):
                    raise QueryFailure(f"{to_js_string(spread)} is not iterable")
                args.extend(spread)
            else:
                args.append(self.eval(child, scope))
        try:
            return fn(*args)
        except TypeError as exc:
            raise QueryFailure(f"Invalid arguments for {self.text(fn_node)}: {exc}") from exc

    # -- functions --

    def _params(self, node: Node) -> list[str]:
        names = []
        for child in self.named(node):
            if child.type != "identifier":
                raise self.unsupported(child)
            names.append(self.text(child))
        return names

    def _eval_arrow_function(self, node: Node, scope: dict[str, Any]) -> _Function:
        single = node.child_by_field_name("parameter")
        if single is not None:
            params = [self.text(single)]
        else:
            parameters = node.child_by_field_name("parameters")
            params = self._params(parameters) if parameters is not None else []
        return _Function(self, params, node.child_by_field_name("body"), scope)

    def _eval_function_expression(self, node: Node, scope: dict[str, Any]) -> _Function:
        parameters = node.child_by_field_name("parameters")
        params = self._params(parameters) if parameters is not None else []
        return _Function(self, params, node.child_by_field_name("body"), scope)

    _eval_function = _eval_function_expression

    # -- operators --

    def _eval_unary_expression(self, node: Node, scope: dict[str, Any]) -> Any:
        operator = node.child_by_field_name("operator").type
        value = self.eval(node.child_by_field_name("argument"), scope)
        if operator == "!":
            return not truthy(value)
        if operator == "-":
            return -to_number(value)
        if operator == "+":
            return to_number(value)
        if operator == "typeof":
            return typeof(value)
        raise self.unsupported(node)

    def _eval_binary_expression(self, node: Node, scope: dict[str, Any]) -> Any:
        operator = node.child_by_field_name("operator").type
        left = self.eval(node.child_by_field_name("left"), scope)
        right_node = node.child_by_field_name("right")
        if operator == "&&":
            return self.eval(right_node, scope) if truthy(left) else left
        if operator == "||":
            return left if truthy(left) else self.eval(right_node, scope)
        if operator == "??":
            return self.eval(right_node, scope) if left in (None, UNDEFINED) else left
        fn = _BINARY_OPERATORS.get(operator)
        if fn is None:
            raise self.unsupported(node)
        return fn(left, self.eval(right_node, scope))

    def _eval_ternary_expression(self, node: Node, scope: dict[str, Any]) -> Any:
        condition = self.eval(node.child_by_field_name("condition"), scope)
        branch = "consequence" if truthy(condition) else "alternative"
        return self.eval(node.child_by_field_name(branch), scope)


def _prepare(expression: str) -> str:
    source = expression.strip().rstrip(";").strip()
    if source.startswith((".", "[")):
        source = BOUND_NAME + source
    return source


def evaluate_expression(expression: str, data: Any) -> Any:
    """Evaluate ``expression`` with ``data`` bound to the name ``data``.

    A leading ``.`` or ``[`` is read as access on ``data``; an expression that
    evaluates to a function is called with ``data``. Returns ``UNDEFINED`` when
    the expression yields no value. Raises ``QueryFailure`` on any error.
    """
    source = _prepare(expression)
    if not source:
        raise QueryFailure("Expression is empty")
    encoded = f"(\n{source}\n)".encode()
    tree = get_parser("javascript").parse(encoded)
    if tree.root_node.has_error:
        raise QueryFailure(f"Invalid expression: {expression.strip()}")

    interpreter = _Interpreter(encoded)
    scope = {**_global_scope(), BOUND_NAME: data}
    try:
        result = interpreter.eval(tree.root_node, scope)
        if _is_function(result):
            result = result(data)
    except QueryFailure:
        raise
    except RecursionError as exc:
        raise QueryFailure("Maximum call stack size exceeded") from exc
    except (TypeError, ValueError, ArithmeticError, KeyError, IndexError) as exc:
        logger.debug("Expression %r failed", expression, exc_info=True)
        raise QueryFailure(str(exc)) from exc
    return result
