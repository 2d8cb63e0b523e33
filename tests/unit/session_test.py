"""Tests for the editor session operations."""

from __future__ import annotations

import logging

import pytest

from json_pilot.core.codec import encode_path, marker_identifier
from json_pilot.core.session import FOLD_ALL_ACTION, FORMAT_ACTION, UNFOLD_ALL_ACTION, EditorSession
from json_pilot.core.toggle import EXPAND_ERROR
from json_pilot.models import FormattingOptions, MarkerKind, QueryKind, QueryResult
from json_pilot.surface import InMemoryNotifier, InMemorySurface


def _session(text: str) -> tuple[EditorSession, InMemorySurface, InMemoryNotifier]:
    surface = InMemorySurface(text)
    notifier = InMemoryNotifier()
    return EditorSession(surface=surface, notifier=notifier), surface, notifier


class TestOverlay:
    def test_refresh_publishes_markers(self) -> None:
        session, surface, _ = _session('{"a": [1]}')
        markers = session.refresh_overlay()
        assert len(markers) == 2
        assert surface.markers == markers
        assert session.markers == markers

    def test_clear_markers(self) -> None:
        session, surface, _ = _session("[1]")
        session.refresh_overlay()
        session.clear_markers()
        assert surface.markers == []
        assert session.markers == []


class TestToggle:
    def test_marker_click_expands(self) -> None:
        session, surface, _ = _session('{"payload": "{\\"x\\":1}"}')
        expandable = [m for m in session.refresh_overlay() if m.kind is MarkerKind.EXPANDABLE][0]
        assert session.handle_marker_click(expandable.identifier) is True
        assert surface.get_text() == '{"payload": {\n  "x": 1\n}}'
        assert len(surface.edit_batches) == 1

    def test_marker_click_with_bad_identifier_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        session, surface, notifier = _session('{"a": [1]}')
        with caplog.at_level(logging.WARNING):
            assert session.handle_marker_click("json-path-@@@") is False
        assert surface.get_text() == '{"a": [1]}'
        assert notifier.notifications == []
        assert "Failed to decode path" in caplog.text

    def test_toggle_collapse(self) -> None:
        session, surface, _ = _session('{"a": [1, 2]}')
        assert session.toggle_path(["a"]) is True
        assert surface.get_text() == '{"a": "[1,2]"}'

    def test_toggle_invalid_embedded_json_notifies(self) -> None:
        session, surface, notifier = _session('{"a": "plain"}')
        assert session.toggle_path(["a"]) is False
        assert notifier.messages("error") == [EXPAND_ERROR]
        assert surface.get_text() == '{"a": "plain"}'

    def test_toggle_uses_session_formatting(self) -> None:
        session, surface, _ = _session('["[1]"]')
        session.formatting = FormattingOptions(tab_size=4)
        session.toggle_path([0])
        assert surface.get_text() == "[[\n    1\n]]"

    def test_toggle_nothing(self) -> None:
        session, surface, _ = _session('{"a": 1}')
        assert session.handle_marker_click(marker_identifier(encode_path(["a"]))) is False
        assert surface.edit_batches == []


class TestQuery:
    def test_success(self) -> None:
        session, _, notifier = _session('{"b": [1, 2]}')
        result = session.run_query("$.b[*]", QueryKind.JSONPATH)
        assert result == QueryResult.many([1, 2])
        assert session.query_result == result
        assert notifier.messages("success") == ["Query executed successfully."]

    def test_failure_keeps_previous_result(self) -> None:
        session, _, notifier = _session("[1, 2, 3]")
        first = session.run_query(".filter(i => i > 1)", "expression")
        assert session.run_query("data.nope.x", "expression") is None
        assert session.query_result == first
        assert notifier.messages("error")[0].startswith("Query failed: ")

    def test_empty_document(self) -> None:
        session, _, notifier = _session("  ")
        assert session.run_query("$.a", QueryKind.JSONPATH) is None
        assert notifier.messages("info") == ["Nothing to query."]

    def test_invalid_document(self) -> None:
        session, _, notifier = _session('{"a": 1,,}')
        assert session.run_query("$.a", QueryKind.JSONPATH) is None
        assert notifier.messages("error") == ["Cannot query invalid JSON. Please fix errors first."]

    def test_dismiss(self) -> None:
        session, _, notifier = _session('{"a": 1}')
        session.run_query("$.a", QueryKind.JSONPATH)
        assert session.query_result == QueryResult.single(1)
        session.dismiss_query()
        assert session.query_result is None
        assert notifier.messages("error") == []

    def test_dismiss_without_result(self) -> None:
        session, _, _ = _session("[]")
        session.dismiss_query()
        assert session.query_result is None

    def test_unknown_kind_notifies(self) -> None:
        session, _, notifier = _session('{"a": 1}')
        assert session.run_query("$.a", "xpath") is None
        assert session.query_result is None
        assert notifier.messages("error") == ["Query failed: Unknown query kind: 'xpath'"]

    def test_wildcard_over_object(self) -> None:
        session, _, _ = _session('{"b": {"x": 1, "y": 2}}')
        assert session.run_query("$.b[*]", QueryKind.JSONPATH) == QueryResult.many([1, 2])


class TestTransforms:
    def test_compress(self) -> None:
        session, surface, notifier = _session('{\n  "a": 1 // comment\n}')
        session.compress()
        assert surface.get_text() == '{"a":1}'
        assert notifier.messages("success") == ["JSON compressed successfully!"]

    def test_compress_empty_is_silent(self) -> None:
        session, _, notifier = _session("")
        session.compress()
        assert notifier.notifications == []

    def test_sort_keys(self) -> None:
        session, surface, notifier = _session('{"b": 1, "a": 2}')
        session.sort_keys("desc")
        assert surface.get_text() == '{\n  "b": 1,\n  "a": 2\n}'
        assert notifier.messages("success") == ["Keys sorted descending."]

    def test_sort_keys_invalid(self) -> None:
        session, surface, notifier = _session('{"b": 1,, "a": 2}')
        session.sort_keys()
        assert surface.get_text() == '{"b": 1,, "a": 2}'
        assert notifier.messages("error") == ["Cannot sort invalid JSON. Please fix errors first."]

    def test_escape_unescape(self) -> None:
        session, surface, notifier = _session('{"a": 1}')
        session.escape()
        assert surface.get_text() == '"{\\"a\\": 1}"'
        session.unescape()
        assert surface.get_text() == '{"a": 1}'
        assert notifier.messages("success") == ["Content escaped successfully!", "Content unescaped successfully!"]

    def test_unescape_plain_json_formats(self) -> None:
        session, surface, notifier = _session('{ "a" : 1 }')
        session.unescape()
        assert surface.get_text() == '{"a":1}'
        assert notifier.messages("info") == ["Content was already valid JSON. Formatted instead."]

    def test_unescape_invalid(self) -> None:
        session, surface, notifier = _session("not json")
        session.unescape()
        assert surface.get_text() == "not json"
        assert notifier.messages("error") == ["Failed to unescape: Invalid escaped string."]

    def test_clear(self) -> None:
        session, surface, _ = _session("[1]")
        session.refresh_overlay()
        session.clear()
        assert surface.get_text() == ""
        assert surface.markers == []


class TestActions:
    @pytest.mark.parametrize(
        ("method", "action_id", "message"),
        [
            ("format_document", FORMAT_ACTION, "JSON formatted successfully!"),
            ("fold_all", FOLD_ALL_ACTION, "All folded successfully!"),
            ("unfold_all", UNFOLD_ALL_ACTION, "All unfolded successfully!"),
        ],
    )
    def test_runs_surface_action(self, method: str, action_id: str, message: str) -> None:
        calls: list[str] = []
        surface = InMemorySurface("[1]", actions={action_id: lambda: calls.append(action_id)})
        notifier = InMemoryNotifier()
        session = EditorSession(surface=surface, notifier=notifier)
        assert getattr(session, method)() is True
        assert calls == [action_id]
        assert notifier.messages("success") == [message]

    def test_missing_action(self) -> None:
        session, _, notifier = _session("[1]")
        assert session.format_document() is False
        assert notifier.messages("error") == ["Formatting action is not available."]


class TestFirstError:
    def test_none_for_valid(self, session: EditorSession) -> None:
        assert session.first_error() is None

    def test_reports_first(self) -> None:
        session, _, _ = _session('{"a": 1,,}')
        error = session.first_error()
        assert error is not None
        assert error.start_line == 0
