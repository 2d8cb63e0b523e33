"""Structural JSON parse on top of tree-sitter's JSON grammar.

The grammar accepts comments and recovers from syntax errors, so a tree is
produced for documents that are being edited. Node offsets are character
offsets into the parsed ``str``.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

from tree_sitter import Node, Tree
from tree_sitter_language_pack import get_parser

from json_pilot.core.errors import ParseFailure
from json_pilot.core.positions import LineIndex
from json_pilot.models import Diagnostic, StructuralPath

NodeType = Literal["object", "array", "string", "number", "boolean", "null", "property"]

_SCALAR_TYPES: dict[str, NodeType] = {
    "string": "string",
    "number": "number",
    "true": "boolean",
    "false": "boolean",
    "null": "null",
}
_VALUE_TYPES = frozenset({"object", "array", *_SCALAR_TYPES})


@dataclass(eq=False)
class ParseNode:
    type: NodeType
    offset: int
    length: int
    children: list["ParseNode"] = field(default_factory=list)
    parent: "ParseNode | None" = field(default=None, repr=False)
    value: Any = None

    @property
    def end(self) -> int:
        return self.offset + self.length

    def contains(self, offset: int, include_right_bound: bool = False) -> bool:
        return self.offset <= offset < self.end or (include_right_bound and offset == self.end)


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogatepass")


def _char_offsets(text: str) -> Callable[[int], int]:
    """Build a byte-offset -> character-offset mapping for ``text``."""
    if text.isascii():
        return lambda byte_offset: byte_offset
    table: list[int] = []
    for index, ch in enumerate(text):
        table.extend([index] * len(_encode(ch)))
    table.append(len(text))
    return table.__getitem__


def parse_tree(source: bytes) -> Tree:
    return get_parser("json").parse(source)


def _decode_string(raw: str) -> str | None:
    try:
        decoded = json.loads(raw, strict=False)
    except ValueError:
        return None
    return decoded if isinstance(decoded, str) else None


def _decode_number(raw: str) -> int | float | None:
    try:
        return json.loads(raw)
    except ValueError:
        pass
    try:
        return int(raw, 0)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return None


class _Converter:
    def __init__(self, text: str) -> None:
        self._text = text
        self._to_char = _char_offsets(text)

    def _make(self, node_type: NodeType, ts_node: Node, parent: ParseNode | None) -> ParseNode:
        start = self._to_char(ts_node.start_byte)
        end = self._to_char(ts_node.end_byte)
        return ParseNode(type=node_type, offset=start, length=end - start, parent=parent)

    def convert(self, ts_node: Node, parent: ParseNode | None) -> ParseNode | None:
        if ts_node.is_missing or ts_node.type not in _VALUE_TYPES:
            return None

        if ts_node.type == "object":
            node = self._make("object", ts_node, parent)
            for child in ts_node.named_children:
                if child.type == "pair":
                    prop = self._convert_pair(child, node)
                    if prop is not None:
                        node.children.append(prop)
            return node

        if ts_node.type == "array":
            node = self._make("array", ts_node, parent)
            for child in ts_node.named_children:
                item = self.convert(child, node)
                if item is not None:
                    node.children.append(item)
            return node

        node = self._make(_SCALAR_TYPES[ts_node.type], ts_node, parent)
        raw = self._text[node.offset : node.end]
        if node.type == "string":
            node.value = _decode_string(raw)
        elif node.type == "number":
            node.value = _decode_number(raw)
        elif node.type == "boolean":
            node.value = ts_node.type == "true"
        return node

    def _convert_pair(self, ts_node: Node, parent: ParseNode) -> ParseNode | None:
        key = ts_node.child_by_field_name("key")
        if key is None or key.is_missing:
            return None
        prop = self._make("property", ts_node, parent)
        key_node = self.convert(key, prop)
        if key_node is None:
            return None
        prop.children.append(key_node)
        value = ts_node.child_by_field_name("value")
        if value is not None:
            value_node = self.convert(value, prop)
            if value_node is not None:
                prop.children.append(value_node)
        return prop


def parse(text: str) -> ParseNode | None:
    """Parse ``text`` into a ``ParseNode`` tree.

    Returns ``None`` when the document holds no JSON value at all.
    """
    tree = parse_tree(_encode(text))
    converter = _Converter(text)
    for child in tree.root_node.named_children:
        root = converter.convert(child, None)
        if root is not None:
            return root
    return None


def parse_value(text: str) -> Any:
    """Parse ``text`` and return its JSON value, raising ``ParseFailure`` when there is none."""
    root = parse(text)
    if root is None:
        raise ParseFailure("Document does not contain a JSON value.")
    return node_value(root)


def node_value(node: ParseNode) -> Any:
    if node.type == "object":
        result: dict[str, Any] = {}
        for prop in node.children:
            if len(prop.children) == 2 and isinstance(prop.children[0].value, str):
                result[prop.children[0].value] = node_value(prop.children[1])
        return result
    if node.type == "array":
        return [node_value(child) for child in node.children]
    return node.value


def property_key(prop: ParseNode) -> str | None:
    if prop.type != "property" or not prop.children:
        return None
    key = prop.children[0].value
    return key if isinstance(key, str) else None


def find_node_at_path(root: ParseNode, path: StructuralPath) -> ParseNode | None:
    node = root
    for segment in path:
        if isinstance(segment, str):
            if node.type != "object":
                return None
            for prop in node.children:
                if len(prop.children) == 2 and property_key(prop) == segment:
                    node = prop.children[1]
                    break
            else:
                return None
        elif isinstance(segment, int) and not isinstance(segment, bool):
            if node.type != "array" or not 0 <= segment < len(node.children):
                return None
            node = node.children[segment]
        else:
            return None
    return node


def find_node_at_offset(root: ParseNode, offset: int, include_right_bound: bool = False) -> ParseNode | None:
    """Return the innermost node whose range contains ``offset``."""
    if not root.contains(offset, include_right_bound):
        return None
    for child in root.children:
        if child.offset > offset:
            break
        found = find_node_at_offset(child, offset, include_right_bound)
        if found is not None:
            return found
    return root


def path_of(node: ParseNode) -> StructuralPath:
    """Reconstruct the structural path of ``node`` from its parent links."""
    path: StructuralPath = []
    current = node
    while current.parent is not None:
        parent = current.parent
        if parent.type == "property":
            key = property_key(parent)
            if key is not None:
                path.append(key)
        elif parent.type == "array":
            path.append(next(i for i, child in enumerate(parent.children) if child is current))
        current = parent
    path.reverse()
    return path


def _iter_problem_nodes(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_error or current.is_missing:
            yield current
            continue
        if current.has_error:
            stack.extend(reversed(current.children))


def collect_diagnostics(text: str) -> list[Diagnostic]:
    """Report syntax problems as diagnostics, in document order."""
    tree = parse_tree(_encode(text))
    to_char = _char_offsets(text)
    index = LineIndex(text)
    diagnostics: list[Diagnostic] = []
    for problem in _iter_problem_nodes(tree.root_node):
        start = index.position_at(to_char(problem.start_byte))
        end = index.position_at(to_char(problem.end_byte))
        message = f"Missing {problem.type}" if problem.is_missing else "Unexpected token"
        diagnostics.append(
            Diagnostic(
                start_line=start.row,
                start_column=start.column,
                end_line=end.row,
                end_column=end.column,
                message=message,
            )
        )
    return diagnostics
