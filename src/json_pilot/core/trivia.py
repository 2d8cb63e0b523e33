from tree_sitter import Node

from json_pilot.core.parser import parse_tree

_ATOMIC_TYPES = frozenset({"string", "comment"})


def _tokens(root: Node) -> list[Node]:
    """Leaf tokens in document order; strings and comments are single tokens."""
    tokens: list[Node] = []
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        if node.type in _ATOMIC_TYPES or node.child_count == 0:
            if node.end_byte > node.start_byte:
                tokens.append(node)
            continue
        stack.extend(reversed(node.children))
    return tokens


def trivia_ranges(source: bytes) -> list[tuple[int, int]]:
    """Byte ranges holding whitespace or comments."""
    ranges: list[tuple[int, int]] = []
    cursor = 0
    for token in _tokens(parse_tree(source).root_node):
        if token.start_byte > cursor and source[cursor : token.start_byte].isspace():
            ranges.append((cursor, token.start_byte))
        if token.type == "comment":
            ranges.append((token.start_byte, token.end_byte))
        cursor = max(cursor, token.end_byte)
    if cursor < len(source) and source[cursor:].isspace():
        ranges.append((cursor, len(source)))
    return ranges


def compress_trivia(text: str) -> str:
    """Remove whitespace and comments without touching any other token."""
    source = text.encode("utf-8", "surrogatepass")
    for start, end in reversed(trivia_ranges(source)):
        source = source[:start] + source[end:]
    return source.decode("utf-8", "surrogatepass")
