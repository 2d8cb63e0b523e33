"""Expand embedded-JSON strings and collapse containers into strings."""

from __future__ import annotations

import json
from collections.abc import Sequence

from json_pilot.core.errors import InvalidEmbeddedJSON
from json_pilot.core.overlay import embedded_json
from json_pilot.core.parser import ParseNode, find_node_at_path, node_value, parse
from json_pilot.core.positions import line_ending, line_indent
from json_pilot.models import FormattingOptions, StructuralPath, TextEdit

EXPAND_ERROR = "Failed to expand JSON: The string is not valid JSON."


def expand_string(text: str, node: ParseNode, formatting: FormattingOptions) -> list[TextEdit]:
    """Replace a string node by the object/array it serializes, pretty-printed in place."""
    value = embedded_json(node)
    if value is None:
        raise InvalidEmbeddedJSON(EXPAND_ERROR)
    serialized = json.dumps(value, indent=formatting.indent_unit, ensure_ascii=False)
    newline = line_ending(text, node.offset)
    base_indent = line_indent(text, node.offset)
    if base_indent or newline != "\n":
        serialized = serialized.replace("\n", newline + base_indent)
    return [TextEdit(offset=node.offset, length=node.length, content=serialized)]


def collapse_container(text: str, node: ParseNode) -> list[TextEdit]:
    """Replace an object/array node by a JSON string literal holding its compact form.

    When the node is a property value the whole property is rewritten, keeping
    the original key text verbatim.
    """
    compact = json.dumps(node_value(node), separators=(",", ":"), ensure_ascii=False)
    literal = json.dumps(compact, ensure_ascii=False)
    parent = node.parent
    if parent is not None and parent.type == "property":
        key = parent.children[0]
        key_text = text[key.offset : key.end]
        return [TextEdit(offset=parent.offset, length=parent.length, content=f"{key_text}: {literal}")]
    return [TextEdit(offset=node.offset, length=node.length, content=literal)]


def toggle_at_path(text: str, path: StructuralPath, formatting: FormattingOptions | None = None) -> list[TextEdit]:
    """Compute the edits that expand or collapse the node at ``path``.

    Returns no edits when the node cannot be toggled. Raises
    ``InvalidEmbeddedJSON`` when an expand target does not hold an object or
    array.
    """
    root = parse(text)
    if root is None:
        return []
    node = find_node_at_path(root, path)
    if node is None or node.parent is None or node.parent.type not in ("property", "array"):
        return []
    if node.type == "string":
        return expand_string(text, node, formatting or FormattingOptions())
    if node.type in ("object", "array"):
        return collapse_container(text, node)
    return []


def apply_edits(text: str, edits: Sequence[TextEdit]) -> str:
    """Apply non-overlapping edits, last offset first."""
    for edit in sorted(edits, key=lambda e: e.offset, reverse=True):
        text = text[: edit.offset] + edit.content + text[edit.offset + edit.length :]
    return text
