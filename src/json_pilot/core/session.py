"""Editor session: the state an editor host threads through engine operations.

The session owns no document text. Every operation reads the current text from
the rendering surface, computes, and writes the result back; the overlay is
recomputed only when the host calls ``refresh_overlay``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from json_pilot.core.codec import path_from_identifier
from json_pilot.core.errors import ActionUnavailable, DecodeFailure, InvalidEmbeddedJSON, ParseFailure, QueryFailure
from json_pilot.core.overlay import compute_overlay_for_text
from json_pilot.core.parser import parse_value
from json_pilot.core.ports.notifier import Notifier
from json_pilot.core.ports.surface import RenderingSurface
from json_pilot.core.positions import to_range_edits
from json_pilot.core.query import run_query as _run_query
from json_pilot.core.toggle import toggle_at_path
from json_pilot.core.transforms import SortDirection, escape_document, unescape_document
from json_pilot.core.transforms import sort_keys as _sort_keys
from json_pilot.core.trivia import compress_trivia
from json_pilot.models import Diagnostic, FormattingOptions, OverlayMarker, QueryKind, QueryResult, StructuralPath

logger = logging.getLogger(__name__)

FORMAT_ACTION = "editor.action.formatDocument"
FOLD_ALL_ACTION = "editor.foldAll"
UNFOLD_ALL_ACTION = "editor.unfoldAll"


@dataclass
class EditorSession:
    surface: RenderingSurface
    notifier: Notifier
    formatting: FormattingOptions = field(default_factory=FormattingOptions)
    markers: list[OverlayMarker] = field(default_factory=list)
    query_result: QueryResult | None = None

    # -- overlay --

    def refresh_overlay(self) -> list[OverlayMarker]:
        self.markers = compute_overlay_for_text(self.surface.get_text())
        self.surface.set_markers(self.markers)
        return self.markers

    def clear_markers(self) -> None:
        self.markers = []
        self.surface.set_markers([])

    def handle_marker_click(self, identifier: str) -> bool:
        """Toggle the node named by a marker identifier; malformed identifiers are ignored."""
        try:
            path = path_from_identifier(identifier)
        except DecodeFailure:
            logger.warning("Failed to decode path from marker identifier %r", identifier)
            return False
        return self.toggle_path(path)

    def toggle_path(self, path: StructuralPath) -> bool:
        text = self.surface.get_text()
        try:
            edits = toggle_at_path(text, path, self.formatting)
        except InvalidEmbeddedJSON as exc:
            logger.info("Expansion failed at %s: %s", path, exc)
            self.notifier.error(str(exc))
            return False
        if not edits:
            return False
        self.surface.apply_edits(to_range_edits(self.surface.position_at, edits))
        return True

    # -- guards --

    def _checked_value(self, verb: str) -> tuple[bool, Any]:
        text = self.surface.get_text()
        if not text.strip():
            self.notifier.info(f"Nothing to {verb}.")
            return False, None
        if self.surface.diagnostics():
            self.notifier.error(f"Cannot {verb} invalid JSON. Please fix errors first.")
            return False, None
        try:
            return True, parse_value(text)
        except ParseFailure as exc:
            self.notifier.error(str(exc))
            return False, None

    def first_error(self) -> Diagnostic | None:
        diagnostics = self.surface.diagnostics()
        return diagnostics[0] if diagnostics else None

    # -- query --

    def run_query(self, query: str, kind: QueryKind | str) -> QueryResult | None:
        """Run a query; on failure the previous result is kept and ``None`` returned."""
        ok, data = self._checked_value("query")
        if not ok:
            return None
        try:
            result = _run_query(data, query, kind)
        except QueryFailure as exc:
            logger.info("Query %r failed: %s", query, exc)
            self.notifier.error(f"Query failed: {exc}")
            return None
        self.query_result = result
        self.notifier.success("Query executed successfully.")
        return result

    def dismiss_query(self) -> None:
        self.query_result = None

    # -- document transforms --

    def compress(self) -> None:
        text = self.surface.get_text()
        if not text:
            return
        self.surface.set_text(compress_trivia(text))
        self.notifier.success("JSON compressed successfully!")

    def sort_keys(self, direction: SortDirection = "asc") -> None:
        ok, _ = self._checked_value("sort")
        if not ok:
            return
        self.surface.set_text(_sort_keys(self.surface.get_text(), direction, self.formatting))
        self.notifier.success(f"Keys sorted {'ascending' if direction == 'asc' else 'descending'}.")

    def escape(self) -> None:
        text = self.surface.get_text()
        if not text:
            return
        self.surface.set_text(escape_document(text))
        self.notifier.success("Content escaped successfully!")

    def unescape(self) -> None:
        text = self.surface.get_text()
        if not text:
            return
        try:
            new_text, was_string = unescape_document(text)
        except ValueError:
            self.notifier.error("Failed to unescape: Invalid escaped string.")
            return
        self.surface.set_text(new_text)
        if was_string:
            self.notifier.success("Content unescaped successfully!")
        else:
            self.notifier.info("Content was already valid JSON. Formatted instead.")

    def clear(self) -> None:
        self.surface.set_text("")
        self.clear_markers()
        self.notifier.info("Content cleared.")

    # -- surface actions --

    def require_action(self, action_id: str, unavailable: str) -> Callable[[], None]:
        action = self.surface.get_action(action_id)
        if action is None:
            raise ActionUnavailable(unavailable)
        return action

    def _run_action(self, action_id: str, success: str, unavailable: str) -> bool:
        try:
            action = self.require_action(action_id, unavailable)
        except ActionUnavailable as exc:
            self.notifier.error(str(exc))
            return False
        action()
        self.notifier.success(success)
        return True

    def format_document(self) -> bool:
        return self._run_action(FORMAT_ACTION, "JSON formatted successfully!", "Formatting action is not available.")

    def fold_all(self) -> bool:
        return self._run_action(FOLD_ALL_ACTION, "All folded successfully!", "Fold action is not available.")

    def unfold_all(self) -> bool:
        return self._run_action(UNFOLD_ALL_ACTION, "All unfolded successfully!", "Unfold action is not available.")
