import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from json_pilot.core.config import load_formatting_options
from json_pilot.core.session import EditorSession
from json_pilot.models import FormattingOptions
from json_pilot.surface import InMemorySurface

console = Console()
logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """Prints errors to stderr and logs everything else.

    Remembers whether an error was reported so the command can exit non-zero.
    """

    def __init__(self) -> None:
        self.failed = False
        self._console = Console(stderr=True)

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        self.failed = True
        logger.info("Reported error: %s", message)
        self._console.print(Text(message, style="red"))

    def info(self, message: str) -> None:
        logger.info(message)


def read_document(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise typer.BadParameter(f"File not found: {path}") from None


def formatting_options(tab_size: int | None, use_tabs: bool | None) -> FormattingOptions:
    options = load_formatting_options()
    if tab_size is not None:
        options = options.model_copy(update={"tab_size": tab_size})
    if use_tabs is not None:
        options = options.model_copy(update={"insert_spaces": not use_tabs})
    return options


def open_session(path: str, formatting: FormattingOptions | None = None) -> tuple[EditorSession, ConsoleNotifier]:
    notifier = ConsoleNotifier()
    session = EditorSession(
        surface=InMemorySurface(read_document(path)),
        notifier=notifier,
        formatting=formatting or load_formatting_options(),
    )
    return session, notifier


def emit_document(session: EditorSession, notifier: ConsoleNotifier, path: str, write: bool) -> None:
    """Print the session's text, or write it back to ``path``; exit 1 if an error was reported."""
    if notifier.failed:
        raise typer.Exit(code=1)
    text = session.surface.get_text()
    if write and path != "-":
        Path(path).write_text(text, encoding="utf-8")
        console.print(f"[green]Wrote[/green] {path}")
    else:
        typer.echo(text)


def render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(Text(str(v)) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")
