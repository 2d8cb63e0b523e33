from collections.abc import Callable, Sequence
from typing import Protocol

from json_pilot.models import Diagnostic, OverlayMarker, Position, RangeEdit


class RenderingSurface(Protocol):
    def get_text(self) -> str: ...

    def set_text(self, text: str) -> None: ...

    def set_markers(self, markers: Sequence[OverlayMarker]) -> None: ...

    def apply_edits(self, edits: Sequence[RangeEdit]) -> None: ...

    def position_at(self, offset: int) -> Position: ...

    def offset_at(self, position: Position) -> int: ...

    def diagnostics(self) -> list[Diagnostic]: ...

    def get_action(self, action_id: str) -> Callable[[], None] | None: ...
