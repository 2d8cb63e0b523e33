from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from json_pilot.api.dependencies import get_formatting_options, open_session, raise_for_errors, resolve_formatting
from json_pilot.api.schemas import (
    DocumentRequest,
    DocumentResponse,
    MarkerOut,
    OverlayResponse,
    SortKeysRequest,
    ToggleRequest,
    ToggleResponse,
)
from json_pilot.core.codec import decode_path, path_from_identifier
from json_pilot.core.errors import DecodeFailure
from json_pilot.core.session import EditorSession
from json_pilot.models import FormattingOptions

router = APIRouter(tags=["documents"])


def _markers(session: EditorSession) -> list[MarkerOut]:
    out = []
    for m in session.refresh_overlay():
        pos = session.surface.position_at(m.anchor_offset)
        out.append(
            MarkerOut(
                anchor_offset=m.anchor_offset,
                row=pos.row,
                column=pos.column,
                kind=m.kind,
                path=decode_path(m.token),
                identifier=m.identifier,
                hover_message=m.hover_message,
            )
        )
    return out


@router.post("/overlay", response_model=OverlayResponse)
async def overlay(
    body: DocumentRequest,
    formatting: FormattingOptions = Depends(get_formatting_options),
) -> OverlayResponse:
    session, _ = open_session(body.text, formatting)
    return OverlayResponse(markers=_markers(session), diagnostics=session.surface.diagnostics())


@router.post("/toggle", response_model=ToggleResponse)
async def toggle(
    body: ToggleRequest,
    formatting: FormattingOptions = Depends(get_formatting_options),
) -> ToggleResponse:
    if (body.path is None) == (body.identifier is None):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Provide exactly one of path or identifier.")
    path = body.path
    if body.identifier is not None:
        try:
            path = path_from_identifier(body.identifier)
        except DecodeFailure as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    session, notifier = open_session(body.text, resolve_formatting(formatting, body.tab_size, body.insert_spaces))
    changed = session.toggle_path(path or [])
    raise_for_errors(notifier)
    return ToggleResponse(text=session.surface.get_text(), changed=changed, markers=_markers(session))


@router.post("/compress", response_model=DocumentResponse)
async def compress(
    body: DocumentRequest,
    formatting: FormattingOptions = Depends(get_formatting_options),
) -> DocumentResponse:
    session, notifier = open_session(body.text, formatting)
    session.compress()
    return DocumentResponse(text=session.surface.get_text(), messages=notifier.messages())


@router.post("/sort-keys", response_model=DocumentResponse)
async def sort_keys(
    body: SortKeysRequest,
    formatting: FormattingOptions = Depends(get_formatting_options),
) -> DocumentResponse:
    session, notifier = open_session(body.text, resolve_formatting(formatting, body.tab_size, body.insert_spaces))
    session.sort_keys(body.direction)
    raise_for_errors(notifier)
    return DocumentResponse(text=session.surface.get_text(), messages=notifier.messages())
