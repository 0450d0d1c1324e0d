import logging
from collections.abc import Iterable
from pathlib import Path

from code_posts.errors import OutputWriteError, SourceReadError

logger = logging.getLogger(__name__)


def discover_files(directory: str | Path, extensions: Iterable[str]) -> list[Path]:
    """Top-level files of ``directory`` whose suffix is one of ``extensions``, sorted by name."""
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {directory}")
    wanted = {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions}
    return sorted(path for path in root.iterdir() if path.is_file() and path.suffix.lower() in wanted)


def read_source(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise SourceReadError(str(path), exc.strerror or str(exc)) from exc


def output_path_for(source_path: Path, suffix: str = ".html") -> Path:
    return source_path.with_name(source_path.name + suffix)


class HtmlFileWriter:
    """Write converted pages next to their sources, overwriting earlier output.

    Implements the ``DocumentWriter`` protocol.
    """

    def __init__(self, suffix: str = ".html") -> None:
        self._suffix = suffix

    def write(self, source_path: Path, content: str) -> Path:
        target = output_path_for(source_path, self._suffix)
        try:
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise OutputWriteError(str(target), exc.strerror or str(exc)) from exc
        logger.info("Wrote %s", target)
        return target
