"""Tests for the structural path codec."""

from __future__ import annotations

import pytest

from json_pilot.core.codec import (
    decode_path,
    decode_tooltip,
    encode_path,
    find_path_identifier,
    marker_identifier,
    path_from_identifier,
    tooltip_identifier,
)
from json_pilot.core.errors import DecodeFailure


class TestEncodePath:
    @pytest.mark.parametrize(
        "path",
        [
            [],
            ["a"],
            ["payload", 0, "x"],
            ["key with spaces", "dots.in.key", 'quote"key'],
            ["ünïcødé", "日本語", "emoji 🎉"],
            [0, 1, 2, 10_000],
        ],
    )
    def test_decode_inverts_encode(self, path: list[str | int]) -> None:
        assert decode_path(encode_path(path)) == path

    def test_token_has_no_forbidden_characters(self) -> None:
        token = encode_path(["a.b", "c d", "e\tf", "g'h", 'i"j', "k/l+m"])
        for forbidden in ". \t\n'\"=+/":
            assert forbidden not in token

    def test_string_and_integer_segments_stay_distinct(self) -> None:
        assert encode_path(["0"]) != encode_path([0])
        assert decode_path(encode_path(["0"])) == ["0"]
        assert decode_path(encode_path([0])) == [0]

    def test_empty_path_roundtrips(self) -> None:
        assert decode_path(encode_path([])) == []


class TestDecodePath:
    @pytest.mark.parametrize(
        "token",
        ["not a token", "a.b", "@@@", "x", "e30", "InN0cmluZyI"],
        ids=["spaces", "dot", "symbols", "bad-length", "object", "string"],
    )
    def test_rejects_malformed_tokens(self, token: str) -> None:
        with pytest.raises(DecodeFailure):
            decode_path(token)

    def test_rejects_non_segment_values(self) -> None:
        # [true]
        with pytest.raises(DecodeFailure):
            decode_path(encode_path([True]))  # type: ignore[list-item]

    def test_rejects_float_segments(self) -> None:
        with pytest.raises(DecodeFailure):
            decode_path(encode_path([1.5]))  # type: ignore[list-item]


class TestIdentifiers:
    def test_marker_identifier_prefix(self) -> None:
        token = encode_path(["a"])
        assert marker_identifier(token) == f"json-path-{token}"

    def test_path_from_identifier(self) -> None:
        ident = marker_identifier(encode_path(["a", 1]))
        assert path_from_identifier(ident) == ["a", 1]

    def test_path_from_identifier_rejects_other_prefix(self) -> None:
        with pytest.raises(DecodeFailure):
            path_from_identifier("tooltip-abc")

    def test_find_path_identifier_in_class_list(self) -> None:
        ident = marker_identifier(encode_path(["x"]))
        assert find_path_identifier(f"json-value-expandable {ident}") == ident

    def test_find_path_identifier_missing(self) -> None:
        assert find_path_identifier("json-value-expandable other") is None

    def test_tooltip_roundtrip(self) -> None:
        ident = tooltip_identifier("Click to expand ✨")
        assert ident.startswith("tooltip-")
        assert decode_tooltip(ident) == "Click to expand ✨"

    def test_decode_tooltip_rejects_path_identifier(self) -> None:
        with pytest.raises(DecodeFailure):
            decode_tooltip(marker_identifier(encode_path(["a"])))
