import json
from typing import Annotated

import typer

from json_pilot.cli.common import console, emit_document, formatting_options, open_session, render_table
from json_pilot.core.codec import decode_path

_DOCUMENT = Annotated[str, typer.Argument(help="Path to a JSON document, or '-' for stdin.")]


def overlay(
    path: _DOCUMENT,
    as_json: Annotated[bool, typer.Option("--json", help="Print markers as JSON.")] = False,
) -> None:
    """List the collapse/expand markers of a document."""
    session, _ = open_session(path)
    markers = session.refresh_overlay()
    surface = session.surface

    if as_json:
        payload = [
            {
                "anchor_offset": m.anchor_offset,
                "kind": m.kind.value,
                "path": decode_path(m.token),
                "identifier": m.identifier,
            }
            for m in markers
        ]
        typer.echo(json.dumps(payload, ensure_ascii=False))
        return

    rows = []
    for m in markers:
        pos = surface.position_at(m.anchor_offset)
        rows.append(
            (pos.row + 1, pos.column + 1, m.kind.value, json.dumps(decode_path(m.token), ensure_ascii=False))
        )
    render_table(["line", "column", "kind", "path"], rows)


def toggle(
    path: _DOCUMENT,
    node_path: Annotated[
        str | None, typer.Option("--path", help='Structural path as a JSON array, e.g. \'["payload"]\'.')
    ] = None,
    identifier: Annotated[str | None, typer.Option("--identifier", help="Marker identifier (json-path-...).")] = None,
    tab_size: Annotated[int | None, typer.Option(help="Indentation width for expanded JSON.")] = None,
    use_tabs: Annotated[bool | None, typer.Option("--tabs/--spaces", help="Indent with tabs or spaces.")] = None,
    write: Annotated[bool, typer.Option("--write", "-w", help="Write the result back to the file.")] = False,
) -> None:
    """Expand an embedded-JSON string or collapse a container into a string."""
    if (node_path is None) == (identifier is None):
        raise typer.BadParameter("Provide exactly one of --path or --identifier.")

    session, notifier = open_session(path, formatting_options(tab_size, use_tabs))
    if identifier is not None:
        changed = session.handle_marker_click(identifier)
    else:
        try:
            segments = json.loads(node_path) if node_path else []
            if not isinstance(segments, list):
                raise ValueError("path must be a JSON array")
        except ValueError as exc:
            raise typer.BadParameter(f"Invalid --path: {exc}") from None
        changed = session.toggle_path(segments)

    if not changed and not notifier.failed:
        console.print("[yellow]Nothing to toggle at that location.[/yellow]")
        raise typer.Exit(code=1)
    emit_document(session, notifier, path, write)


def diagnostics(path: _DOCUMENT) -> None:
    """Report syntax problems in a document."""
    session, _ = open_session(path)
    found = session.surface.diagnostics()
    render_table(
        ["line", "column", "message"],
        [(d.start_line + 1, d.start_column + 1, d.message) for d in found],
    )
    if found:
        raise typer.Exit(code=1)
