from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path

from watchfiles import awatch

from json_pilot.core.ports.watcher import DocumentChangeHandler

logger = logging.getLogger(__name__)

_JSON_SUFFIXES: frozenset[str] = frozenset({".json", ".jsonc"})


def _is_supported_file(path: Path) -> bool:
    return path.suffix.lower() in _JSON_SUFFIXES


class WatchfilesWatcher:
    """Watch JSON documents and trigger a callback once rapid edits settle.

    ``debounce_ms`` coalesces bursts of writes into a single callback, which is
    where overlay recomputation is scheduled for file-backed documents.
    """

    def __init__(
        self,
        target: str | Path,
        on_change: DocumentChangeHandler,
        debounce_ms: int = 500,
    ) -> None:
        self._target = Path(target)
        self._on_change = on_change
        self._debounce_ms = debounce_ms
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watcher started for %s", self._target)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Watcher stopped for %s", self._target)

    async def _watch(self) -> None:
        async for changes in awatch(self._target, debounce=self._debounce_ms):
            paths = {Path(p) for _, p in changes if _is_supported_file(Path(p))}
            if paths:
                logger.info("Detected changes in %d document(s)", len(paths))
                try:
                    await self._on_change(paths)
                except Exception:
                    logger.exception("Error in watcher callback")
