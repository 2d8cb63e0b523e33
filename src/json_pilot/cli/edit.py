from typing import Annotated

import typer

from json_pilot.cli.common import emit_document, formatting_options, open_session

_DOCUMENT = Annotated[str, typer.Argument(help="Path to a JSON document, or '-' for stdin.")]
_WRITE = Annotated[bool, typer.Option("--write", "-w", help="Write the result back to the file.")]


def compress(path: _DOCUMENT, write: _WRITE = False) -> None:
    """Strip whitespace and comments."""
    session, notifier = open_session(path)
    session.compress()
    emit_document(session, notifier, path, write)


def sort_keys(
    path: _DOCUMENT,
    descending: Annotated[bool, typer.Option("--desc", help="Sort keys in descending order.")] = False,
    tab_size: Annotated[int | None, typer.Option(help="Indentation width.")] = None,
    use_tabs: Annotated[bool | None, typer.Option("--tabs/--spaces", help="Indent with tabs or spaces.")] = None,
    write: _WRITE = False,
) -> None:
    """Sort object keys recursively and reformat."""
    session, notifier = open_session(path, formatting_options(tab_size, use_tabs))
    session.sort_keys("desc" if descending else "asc")
    emit_document(session, notifier, path, write)


def escape(path: _DOCUMENT, write: _WRITE = False) -> None:
    """Turn the document into a single JSON string literal."""
    session, notifier = open_session(path)
    session.escape()
    emit_document(session, notifier, path, write)


def unescape(path: _DOCUMENT, write: _WRITE = False) -> None:
    """Undo 'escape'."""
    session, notifier = open_session(path)
    session.unescape()
    emit_document(session, notifier, path, write)
