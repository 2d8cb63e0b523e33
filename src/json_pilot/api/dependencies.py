from __future__ import annotations

from fastapi import HTTPException, status

from json_pilot.core.config import load_formatting_options
from json_pilot.core.session import EditorSession
from json_pilot.models import FormattingOptions
from json_pilot.surface import InMemoryNotifier, InMemorySurface


def get_formatting_options() -> FormattingOptions:
    """Server-wide formatting defaults, read from the environment per request."""
    return load_formatting_options()


def resolve_formatting(
    defaults: FormattingOptions, tab_size: int | None, insert_spaces: bool | None
) -> FormattingOptions:
    update: dict[str, int | bool] = {}
    if tab_size is not None:
        update["tab_size"] = tab_size
    if insert_spaces is not None:
        update["insert_spaces"] = insert_spaces
    return defaults.model_copy(update=update) if update else defaults


def open_session(text: str, formatting: FormattingOptions) -> tuple[EditorSession, InMemoryNotifier]:
    notifier = InMemoryNotifier()
    return EditorSession(surface=InMemorySurface(text), notifier=notifier, formatting=formatting), notifier


def raise_for_errors(notifier: InMemoryNotifier) -> None:
    """Turn errors the session reported into a 422 response."""
    errors = notifier.messages("error")
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors[0])
