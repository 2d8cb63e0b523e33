from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, Protocol

DocumentChangeHandler = Callable[[set[Path]], Coroutine[Any, Any, None]]


class FileWatcherPort(Protocol):
    """Notifies a ``DocumentChangeHandler`` once edits to watched JSON documents settle."""

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
