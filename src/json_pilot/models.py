from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

StructuralPath = list[str | int]

PATH_PREFIX = "json-path-"
TOOLTIP_PREFIX = "tooltip-"


class Position(BaseModel):
    row: int
    column: int


class MarkerKind(str, Enum):
    COLLAPSIBLE = "collapsible"
    EXPANDABLE = "expandable"


class OverlayMarker(BaseModel):
    model_config = ConfigDict(frozen=True)

    anchor_offset: int
    kind: MarkerKind
    token: str

    @property
    def identifier(self) -> str:
        return f"{PATH_PREFIX}{self.token}"

    @property
    def class_names(self) -> str:
        return f"json-value-{self.kind.value} {self.identifier}"

    @property
    def hover_message(self) -> str:
        return "Click to expand" if self.kind is MarkerKind.EXPANDABLE else "Click to collapse"


class TextEdit(BaseModel):
    """A replacement of ``length`` characters starting at ``offset``."""

    offset: int
    length: int
    content: str


class RangeEdit(BaseModel):
    """A replacement addressed in (row, column) space, as the surface expects."""

    start: Position
    end: Position
    text: str


class Diagnostic(BaseModel):
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    message: str


class FormattingOptions(BaseModel):
    tab_size: int = Field(default=2, ge=1)
    insert_spaces: bool = True

    @property
    def indent_unit(self) -> str:
        return " " * self.tab_size if self.insert_spaces else "\t"


class QueryKind(str, Enum):
    JSONPATH = "jsonpath"
    EXPRESSION = "expression"


class QueryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["single", "many", "none"]
    value: Any = None

    @classmethod
    def none(cls) -> "QueryResult":
        return cls(kind="none")

    @classmethod
    def single(cls, value: Any) -> "QueryResult":
        return cls(kind="single", value=value)

    @classmethod
    def many(cls, values: list[Any]) -> "QueryResult":
        return cls(kind="many", value=list(values))
