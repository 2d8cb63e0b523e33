from __future__ import annotations

import json
import logging
from typing import Any

from json_pilot.core.codec import encode_path
from json_pilot.core.parser import ParseNode, parse, path_of, property_key
from json_pilot.models import MarkerKind, OverlayMarker

logger = logging.getLogger(__name__)


def embedded_json(node: ParseNode) -> Any | None:
    """Return the object/array serialized inside a string node, or ``None``."""
    if node.type != "string" or not isinstance(node.value, str):
        return None
    try:
        parsed = json.loads(node.value)
    except ValueError:
        return None
    return parsed if isinstance(parsed, (dict, list)) else None


def _is_property_name(node: ParseNode) -> bool:
    parent = node.parent
    return parent is not None and parent.type == "property" and parent.children[0] is node


def compute_overlay(root: ParseNode) -> list[OverlayMarker]:
    """Compute collapse/expand markers for a parsed document, in document order."""
    markers: list[OverlayMarker] = []

    def visit(node: ParseNode) -> None:
        try:
            if node.type in ("object", "array"):
                markers.append(
                    OverlayMarker(anchor_offset=node.offset, kind=MarkerKind.COLLAPSIBLE, token=encode_path(path_of(node)))
                )
            elif not _is_property_name(node) and embedded_json(node) is not None:
                markers.append(
                    OverlayMarker(anchor_offset=node.offset, kind=MarkerKind.EXPANDABLE, token=encode_path(path_of(node)))
                )
        except (ValueError, TypeError, RecursionError):
            logger.debug("Skipping marker for %s node at offset %d", node.type, node.offset, exc_info=True)
        seen: set[str] = set()
        for child in node.children:
            if child.type == "property" and len(child.children) == 2:
                key = property_key(child)
                if key in seen:
                    # a repeated key resolves to its first occurrence
                    continue
                if key is not None:
                    seen.add(key)
            visit(child)

    visit(root)
    return markers


def compute_overlay_for_text(text: str) -> list[OverlayMarker]:
    """Parse ``text`` and compute its overlay; an unparseable document has none."""
    root = parse(text)
    if root is None:
        return []
    return compute_overlay(root)
