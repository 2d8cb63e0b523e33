import re
from bisect import bisect_right
from collections.abc import Callable, Sequence

from json_pilot.models import Position, RangeEdit, TextEdit

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class LineIndex:
    """Offset <-> (row, column) conversion for one text snapshot.

    Rows and columns are 0-based; columns count characters. ``\\r\\n``, ``\\r``
    and ``\\n`` all end a line.
    """

    def __init__(self, text: str) -> None:
        self._length = len(text)
        starts = [0]
        i = 0
        while i < self._length:
            ch = text[i]
            if ch == "\r" and i + 1 < self._length and text[i + 1] == "\n":
                i += 1
            if ch in "\r\n":
                starts.append(i + 1)
            i += 1
        self._line_starts = starts

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(offset, self._length))
        row = bisect_right(self._line_starts, offset) - 1
        return Position(row=row, column=offset - self._line_starts[row])

    def offset_at(self, position: Position) -> int:
        if position.row < 0:
            return 0
        if position.row >= len(self._line_starts):
            return self._length
        offset = self._line_starts[position.row] + max(0, position.column)
        next_start = (
            self._line_starts[position.row + 1] if position.row + 1 < len(self._line_starts) else self._length
        )
        return min(offset, next_start)


def to_range_edits(position_at: Callable[[int], Position], edits: Sequence[TextEdit]) -> list[RangeEdit]:
    """Address offset-based edits in (row, column) space using ``position_at``."""
    return [
        RangeEdit(
            start=position_at(edit.offset),
            end=position_at(edit.offset + edit.length),
            text=edit.content,
        )
        for edit in edits
    ]


def line_indent(text: str, offset: int) -> str:
    """Return the leading whitespace of the line containing ``offset``."""
    start = max(text.rfind("\n", 0, offset), text.rfind("\r", 0, offset)) + 1
    end = start
    while end < len(text) and text[end] in " \t":
        end += 1
    return text[start:end]


def line_ending(text: str, offset: int) -> str:
    """Return the line break nearest after ``offset`` (else before it), ``\\n`` when there is none."""
    match = _LINE_BREAK.search(text, offset)
    if match is not None:
        return match.group()
    breaks = _LINE_BREAK.findall(text, 0, offset)
    return breaks[-1] if breaks else "\n"
