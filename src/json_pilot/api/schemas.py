from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from json_pilot.models import Diagnostic, MarkerKind, QueryKind


class HealthResponse(BaseModel):
    status: str = "ok"


class DocumentRequest(BaseModel):
    text: str


class FormattedDocumentRequest(DocumentRequest):
    tab_size: int | None = Field(default=None, ge=1)
    insert_spaces: bool | None = None


class DocumentResponse(BaseModel):
    text: str
    messages: list[str] = []


class MarkerOut(BaseModel):
    anchor_offset: int
    row: int
    column: int
    kind: MarkerKind
    path: list[str | int]
    identifier: str
    hover_message: str


class OverlayResponse(BaseModel):
    markers: list[MarkerOut]
    diagnostics: list[Diagnostic]


class ToggleRequest(FormattedDocumentRequest):
    """Target a node either by structural path or by marker identifier."""

    path: list[str | int] | None = None
    identifier: str | None = None


class ToggleResponse(BaseModel):
    text: str
    changed: bool
    markers: list[MarkerOut]


class QueryRequest(DocumentRequest):
    query: str
    kind: QueryKind = QueryKind.JSONPATH


class QueryResponse(BaseModel):
    kind: Literal["single", "many", "none"]
    value: Any = None
    rendered: str


class SortKeysRequest(FormattedDocumentRequest):
    direction: Literal["asc", "desc"] = "asc"
