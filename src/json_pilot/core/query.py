import json
from functools import lru_cache
from typing import Any

from jsonpath_ng.ext import parse as parse_jsonpath
from jsonpath_ng.jsonpath import DatumInContext, Fields, Index, JSONPath, Slice

from json_pilot.core.errors import QueryFailure
from json_pilot.core.expression import UNDEFINED, evaluate_expression, to_json_value
from json_pilot.models import QueryKind, QueryResult


class Wildcard(JSONPath):
    """``[*]`` and ``.*``: every member of an object or array, nothing for a scalar."""

    def find(self, datum):
        datum = DatumInContext.wrap(datum)
        if isinstance(datum.value, dict):
            return [DatumInContext(value, path=Fields(key), context=datum) for key, value in datum.value.items()]
        if isinstance(datum.value, list):
            return [DatumInContext(value, path=Index(i), context=datum) for i, value in enumerate(datum.value)]
        return []

    def __eq__(self, other):
        return isinstance(other, Wildcard)

    def __str__(self):
        return "[*]"

    def __repr__(self):
        return "Wildcard()"


class ArraySlice(Slice):
    """A bounded slice that only applies to arrays."""

    def find(self, datum):
        datum = DatumInContext.wrap(datum)
        if not isinstance(datum.value, list):
            return []
        return super().find(datum)


def _standardize(node: JSONPath) -> JSONPath:
    # jsonpath-ng wraps objects and scalars in a one-element list before slicing
    if isinstance(node, Slice):
        if node.start is None and node.end is None and node.step is None:
            return Wildcard()
        return ArraySlice(node.start, node.end, node.step)
    if isinstance(node, Fields) and node.fields == ("*",):
        return Wildcard()
    for name, value in vars(node).items():
        if isinstance(value, JSONPath):
            setattr(node, name, _standardize(value))
        elif isinstance(value, list):
            setattr(node, name, [_standardize(item) if isinstance(item, JSONPath) else item for item in value])
    return node


@lru_cache(maxsize=256)
def _compile_jsonpath(query: str) -> JSONPath:
    return _standardize(parse_jsonpath(query))


def query_structural_path(data: Any, query: str) -> QueryResult:
    """Evaluate a JSONPath query; zero, one and several matches map to none, single and many."""
    try:
        expr = _compile_jsonpath(query.strip())
    except Exception as exc:
        raise QueryFailure(f"Invalid JSONPath expression: {exc}") from exc
    try:
        matches = [match.value for match in expr.find(data)]
    except Exception as exc:
        raise QueryFailure(f"Error executing JSONPath: {exc}") from exc

    if not matches:
        return QueryResult.none()
    if len(matches) == 1:
        return QueryResult.single(matches[0])
    return QueryResult.many(matches)


def query_expression(data: Any, query: str) -> QueryResult:
    result = to_json_value(evaluate_expression(query, data))
    if result is UNDEFINED:
        return QueryResult.none()
    return QueryResult.single(result)


def run_query(data: Any, query: str, kind: QueryKind | str) -> QueryResult:
    try:
        kind = QueryKind(kind)
    except ValueError as exc:
        raise QueryFailure(f"Unknown query kind: {kind!r}") from exc
    if kind is QueryKind.JSONPATH:
        return query_structural_path(data, query)
    return query_expression(data, query)


def render_result(result: QueryResult) -> str:
    """Pretty-print a result for display with a fixed 2-space indent."""
    if result.kind == "none":
        return ""
    return json.dumps(result.value, indent=2, ensure_ascii=False)
