"""FastMCP server exposing json-pilot document tools."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP

from json_pilot.core.codec import decode_path
from json_pilot.core.config import load_formatting_options
from json_pilot.core.session import EditorSession
from json_pilot.models import QueryKind
from json_pilot.surface import InMemoryNotifier, InMemorySurface


def _session(text: str) -> tuple[EditorSession, InMemoryNotifier]:
    notifier = InMemoryNotifier()
    session = EditorSession(surface=InMemorySurface(text), notifier=notifier, formatting=load_formatting_options())
    return session, notifier


def _failure(notifier: InMemoryNotifier) -> str | None:
    errors = notifier.messages("error")
    return f"Error: {errors[0]}" if errors else None


def create_mcp_server() -> FastMCP:
    """Create a FastMCP server with the overlay, toggle, query and compress tools."""

    mcp = FastMCP("json-pilot", instructions="Inspect, query and reshape JSON documents.")

    @mcp.tool()
    async def overlay(text: str) -> list[dict[str, Any]]:
        """List collapse/expand markers for a JSON document."""
        session, _ = _session(text)
        return [
            {
                "anchor_offset": m.anchor_offset,
                "kind": m.kind.value,
                "path": decode_path(m.token),
                "identifier": m.identifier,
            }
            for m in session.refresh_overlay()
        ]

    @mcp.tool()
    async def toggle(text: str, path: list[str | int]) -> str:
        """Expand the embedded-JSON string or collapse the container at ``path``; returns the new text."""
        session, notifier = _session(text)
        changed = session.toggle_path(path)
        if (failure := _failure(notifier)) is not None:
            return failure
        if not changed:
            return "Error: nothing to toggle at that path."
        return session.surface.get_text()

    @mcp.tool()
    async def query(text: str, query: str, kind: str = QueryKind.JSONPATH.value) -> dict[str, Any] | str:
        """Run a JSONPath query (kind='jsonpath') or an expression (kind='expression')."""
        try:
            query_kind = QueryKind(kind)
        except ValueError:
            return f"Error: unknown query kind {kind!r}."
        session, notifier = _session(text)
        result = session.run_query(query, query_kind)
        if result is None:
            return _failure(notifier) or "Error: Nothing to query."
        return {"kind": result.kind, "value": result.value}

    @mcp.tool()
    async def compress(text: str) -> str:
        """Strip whitespace and comments from a JSON document."""
        session, _ = _session(text)
        session.compress()
        return session.surface.get_text()

    return mcp
