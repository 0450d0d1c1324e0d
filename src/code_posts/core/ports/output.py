from pathlib import Path
from typing import Protocol


class MarkupConverter(Protocol):
    def convert(self, markdown: str) -> str: ...


class DocumentWriter(Protocol):
    def write(self, source_path: Path, content: str) -> Path: ...
