from collections.abc import Callable, Sequence
from dataclasses import dataclass

from json_pilot.core.parser import collect_diagnostics
from json_pilot.core.positions import LineIndex
from json_pilot.models import Diagnostic, OverlayMarker, Position, RangeEdit


@dataclass(frozen=True)
class InMemoryNotification:
    level: str
    message: str


class InMemoryNotifier:
    def __init__(self) -> None:
        self.notifications: list[InMemoryNotification] = []

    def success(self, message: str) -> None:
        self.notifications.append(InMemoryNotification("success", message))

    def error(self, message: str) -> None:
        self.notifications.append(InMemoryNotification("error", message))

    def info(self, message: str) -> None:
        self.notifications.append(InMemoryNotification("info", message))

    def messages(self, level: str | None = None) -> list[str]:
        return [n.message for n in self.notifications if level is None or n.level == level]


class InMemorySurface:
    """Text buffer standing in for an editor widget.

    Diagnostics come from the structural parser; actions are registered by id.
    """

    def __init__(self, text: str = "", actions: dict[str, Callable[[], None]] | None = None) -> None:
        self._text = text
        self._index: LineIndex | None = None
        self.markers: list[OverlayMarker] = []
        self.actions: dict[str, Callable[[], None]] = dict(actions or {})
        self.edit_batches: list[list[RangeEdit]] = []

    def _line_index(self) -> LineIndex:
        if self._index is None:
            self._index = LineIndex(self._text)
        return self._index

    def get_text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        self._text = text
        self._index = None

    def set_markers(self, markers: Sequence[OverlayMarker]) -> None:
        self.markers = list(markers)

    def apply_edits(self, edits: Sequence[RangeEdit]) -> None:
        index = self._line_index()
        spans = sorted(
            ((index.offset_at(e.start), index.offset_at(e.end), e.text) for e in edits),
            key=lambda span: span[0],
            reverse=True,
        )
        text = self._text
        for start, end, replacement in spans:
            text = text[:start] + replacement + text[end:]
        self.edit_batches.append(list(edits))
        self.set_text(text)

    def position_at(self, offset: int) -> Position:
        return self._line_index().position_at(offset)

    def offset_at(self, position: Position) -> int:
        return self._line_index().offset_at(position)

    def diagnostics(self) -> list[Diagnostic]:
        return collect_diagnostics(self._text)

    def get_action(self, action_id: str) -> Callable[[], None] | None:
        return self.actions.get(action_id)
