import asyncio
from collections import Counter
from pathlib import Path
from typing import Annotated

import typer

from json_pilot.cli.common import console
from json_pilot.core.config import load_debounce_ms
from json_pilot.core.overlay import compute_overlay_for_text
from json_pilot.core.parser import collect_diagnostics
from json_pilot.watcher.watchfiles_adapter import WatchfilesWatcher


def summarize(path: Path) -> str:
    text = path.read_text(encoding="utf-8")
    problems = collect_diagnostics(text)
    counts = Counter(m.kind.value for m in compute_overlay_for_text(text))
    summary = f"{path}: {counts['collapsible']} collapsible, {counts['expandable']} expandable"
    if problems:
        summary += f", {len(problems)} syntax problem(s)"
    return summary


def watch(
    path: Annotated[str, typer.Argument(help="JSON document or directory to watch.")],
    debounce_ms: Annotated[int | None, typer.Option(help="Milliseconds to wait for edits to settle.")] = None,
) -> None:
    """Recompute the overlay whenever watched documents change."""

    async def _on_change(paths: set[Path]) -> None:
        for changed in sorted(paths):
            if changed.exists():
                console.print(summarize(changed), markup=False, highlight=False)

    async def _run() -> None:
        watcher = WatchfilesWatcher(path, _on_change, debounce_ms or load_debounce_ms())
        await watcher.start()
        console.print(f"[green]Watching[/green] {path} (Ctrl-C to stop)")
        try:
            await asyncio.Event().wait()
        finally:
            await watcher.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Stopped.")
