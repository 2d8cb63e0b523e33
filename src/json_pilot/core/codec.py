"""Reversible encoding of structural paths into marker-safe tokens.

Tokens are URL-safe base64 (padding stripped) of the canonical JSON array of
the path segments, so they never contain ``.``, whitespace or quotes.
"""

from __future__ import annotations

import base64
import binascii
import json
import re

from json_pilot.core.errors import DecodeFailure
from json_pilot.models import PATH_PREFIX, TOOLTIP_PREFIX, StructuralPath

_TOKEN_ALPHABET = re.compile(r"^[A-Za-z0-9_-]*$")


def _b64encode(payload: bytes) -> str:
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def _b64decode(token: str) -> bytes:
    if not _TOKEN_ALPHABET.match(token) or len(token) % 4 == 1:
        raise DecodeFailure(f"Malformed token: {token!r}")
    padded = token + "=" * (-len(token) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, ValueError) as exc:
        raise DecodeFailure(f"Malformed token: {token!r}") from exc


def encode_path(path: StructuralPath) -> str:
    """Encode a structural path into an opaque token."""
    payload = json.dumps(list(path), separators=(",", ":"), ensure_ascii=False)
    return _b64encode(payload.encode("utf-8"))


def decode_path(token: str) -> StructuralPath:
    """Decode a token produced by ``encode_path``.

    Raises ``DecodeFailure`` if the token is malformed.
    """
    raw = _b64decode(token)
    try:
        segments = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise DecodeFailure(f"Token does not hold a path: {token!r}") from exc
    if not isinstance(segments, list):
        raise DecodeFailure(f"Token does not hold a path: {token!r}")
    for segment in segments:
        if isinstance(segment, bool) or not isinstance(segment, (str, int)):
            raise DecodeFailure(f"Invalid path segment {segment!r} in token {token!r}")
    return segments


def marker_identifier(token: str) -> str:
    return f"{PATH_PREFIX}{token}"


def path_from_identifier(identifier: str) -> StructuralPath:
    """Decode the path carried by a ``json-path-`` marker identifier."""
    if not identifier.startswith(PATH_PREFIX):
        raise DecodeFailure(f"Not a path marker identifier: {identifier!r}")
    return decode_path(identifier[len(PATH_PREFIX) :])


def find_path_identifier(class_names: str) -> str | None:
    """Return the first path identifier in a whitespace-separated class list."""
    return next((c for c in class_names.split() if c.startswith(PATH_PREFIX)), None)


def tooltip_identifier(text: str) -> str:
    return f"{TOOLTIP_PREFIX}{_b64encode(text.encode('utf-8'))}"


def decode_tooltip(identifier: str) -> str:
    if not identifier.startswith(TOOLTIP_PREFIX):
        raise DecodeFailure(f"Not a tooltip identifier: {identifier!r}")
    raw = _b64decode(identifier[len(TOOLTIP_PREFIX) :])
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeFailure(f"Tooltip is not UTF-8: {identifier!r}") from exc
