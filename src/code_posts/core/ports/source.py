from pathlib import Path
from typing import Protocol


class SourceReader(Protocol):
    def __call__(self, path: Path) -> bytes: ...
