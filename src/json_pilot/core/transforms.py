"""Whole-document rewrites: key sorting and string escaping."""

import json
from typing import Any, Literal

from json_pilot.core.parser import parse_value
from json_pilot.models import FormattingOptions

SortDirection = Literal["asc", "desc"]


def sort_value(data: Any, direction: SortDirection = "asc") -> Any:
    if isinstance(data, list):
        return [sort_value(item, direction) for item in data]
    if isinstance(data, dict):
        keys = sorted(data, key=str.casefold, reverse=direction == "desc")
        return {key: sort_value(data[key], direction) for key in keys}
    return data


def sort_keys(text: str, direction: SortDirection = "asc", formatting: FormattingOptions | None = None) -> str:
    """Re-serialize the document with object keys sorted recursively.

    Raises ``ParseFailure`` when the document has no JSON value.
    """
    formatting = formatting or FormattingOptions()
    return json.dumps(sort_value(parse_value(text), direction), indent=formatting.indent_unit, ensure_ascii=False)


def escape_document(text: str) -> str:
    """Turn the whole document into one JSON string literal."""
    return json.dumps(text, ensure_ascii=False)


def unescape_document(text: str) -> tuple[str, bool]:
    """Undo ``escape_document``.

    Returns the new text and whether the input was a string literal. Input that
    is valid JSON but not a string is compacted instead. Raises ``ValueError``
    for anything else.
    """
    value = json.loads(text)
    if isinstance(value, str):
        return value, True
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False), False
