from collections.abc import Iterator
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: int
    column: int

    def __str__(self) -> str:
        return f"{self.row + 1},{self.column + 1}"


class TextSpan(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    @model_validator(mode="after")
    def _check_order(self) -> "TextSpan":
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span [{self.start}, {self.end})")
        return self

    def __len__(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TextSpan") -> bool:
        return self.start < other.end and other.start < self.end


class SyntaxNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    start_byte: int
    end_byte: int
    start_point: Position
    end_point: Position
    is_named: bool = True
    children: tuple["SyntaxNode", ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children


SyntaxNode.model_rebuild()  # necessary for recursive types


class CommentPlacement(StrEnum):
    LEADING = "leading"
    TRAILING = "trailing"


class CommentRecord(BaseModel):
    """A ``/** ... */`` comment recovered from the buffer and the declaration it documents.

    ``node`` is a lookup reference into the owning ``SourceUnit`` tree.
    """

    model_config = ConfigDict(frozen=True)

    node: SyntaxNode
    span: TextSpan
    placement: CommentPlacement = CommentPlacement.LEADING


class Severity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    offset: int
    position: Position | None = None
    severity: Severity = Severity.WARNING

    def format(self, path: str | None = None) -> str:
        location = f"({self.position})" if self.position is not None else f"(@{self.offset})"
        return f"{path or '<comment>'}{location}: [TSDoc] {self.message}"


class DiagnosticLog:
    """Ordered diagnostics produced by one parse call."""

    def __init__(self, diagnostics: list[Diagnostic] | None = None) -> None:
        self._diagnostics: list[Diagnostic] = list(diagnostics or [])

    def add(self, diagnostic: Diagnostic) -> None:
        self._diagnostics.append(diagnostic)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __bool__(self) -> bool:
        return bool(self._diagnostics)

    def __repr__(self) -> str:
        return f"DiagnosticLog({self._diagnostics!r})"

    @property
    def messages(self) -> tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    def with_code(self, code: str) -> list[Diagnostic]:
        return [diagnostic for diagnostic in self._diagnostics if diagnostic.code == code]

    def of_severity(self, severity: Severity) -> list[Diagnostic]:
        return [diagnostic for diagnostic in self._diagnostics if diagnostic.severity == severity]
