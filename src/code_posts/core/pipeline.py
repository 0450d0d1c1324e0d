import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from code_posts.config import Settings
from code_posts.core.comments import find_doc_comments
from code_posts.core.doc_parser import parse_comment_record
from code_posts.core.doc_tree import DocComment
from code_posts.core.languages import detect_language_from_path
from code_posts.core.ports.output import DocumentWriter, MarkupConverter
from code_posts.core.ports.source import SourceReader
from code_posts.core.render import SUMMARY_ONLY, RenderTarget, render_document
from code_posts.core.source import SourceUnit, parse_source
from code_posts.core.tags import TagRegistry
from code_posts.errors import OutputWriteError, ParseError, SourceReadError
from code_posts.models import CommentRecord, Diagnostic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractedDocument:
    record: CommentRecord
    document: DocComment
    diagnostics: tuple[Diagnostic, ...]
    rendered: str


@dataclass(frozen=True)
class UnitDocuments:
    unit: SourceUnit
    documents: tuple[ExtractedDocument, ...]

    @property
    def rendered(self) -> list[str]:
        return [document.rendered for document in self.documents]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [diagnostic for document in self.documents for diagnostic in document.diagnostics]


class UnitStatus(StrEnum):
    CONVERTED = "converted"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class UnitResult:
    path: Path
    status: UnitStatus
    rendered: tuple[str, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    output_path: Path | None = None
    error: str | None = None


@dataclass(frozen=True)
class BatchReport:
    results: tuple[UnitResult, ...]

    def _count(self, status: UnitStatus) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def converted(self) -> int:
        return self._count(UnitStatus.CONVERTED)

    @property
    def empty(self) -> int:
        return self._count(UnitStatus.EMPTY)

    @property
    def failed(self) -> int:
        return self._count(UnitStatus.FAILED)

    @property
    def succeeded(self) -> int:
        return len(self.results) - self.failed

    @property
    def all_failed(self) -> bool:
        return bool(self.results) and self.failed == len(self.results)


def extract_documents(
    unit: SourceUnit,
    registry: TagRegistry,
    targets: Iterable[RenderTarget] = SUMMARY_ONLY,
) -> UnitDocuments:
    """Locate, parse and render every doc comment of ``unit`` in declaration order."""
    targets = tuple(targets)
    documents: list[ExtractedDocument] = []
    for record in find_doc_comments(unit):
        result = parse_comment_record(record, unit, registry)
        documents.append(
            ExtractedDocument(
                record=record,
                document=result.document,
                diagnostics=result.log.messages,
                rendered=render_document(result.document, targets),
            )
        )
    return UnitDocuments(unit=unit, documents=tuple(documents))


def _log_diagnostics(path: Path, diagnostics: Sequence[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        logger.warning(diagnostic.format(str(path)))


def process_unit(
    path: Path,
    registry: TagRegistry,
    settings: Settings,
    reader: SourceReader,
    converter: MarkupConverter,
    writer: DocumentWriter,
) -> UnitResult:
    """Turn one source file into one output page. Failures stay inside the returned result."""
    try:
        unit = parse_source(reader(path), detect_language_from_path(path), path=str(path))
    except (SourceReadError, ParseError, ValueError) as exc:
        logger.warning("Skipping %s: %s", path, exc)
        return UnitResult(path=path, status=UnitStatus.FAILED, error=str(exc))

    extracted = extract_documents(unit, registry, settings.render_targets)
    _log_diagnostics(path, extracted.diagnostics)
    if not extracted.documents:
        logger.info("No doc comments were found in %s", path)

    markup = converter.convert(settings.document_separator.join(extracted.rendered))
    try:
        output_path = writer.write(path, markup)
    except OutputWriteError as exc:
        logger.warning("Could not write output for %s: %s", path, exc)
        return UnitResult(
            path=path,
            status=UnitStatus.FAILED,
            rendered=tuple(extracted.rendered),
            diagnostics=tuple(extracted.diagnostics),
            error=str(exc),
        )

    logger.info("Converted %s (%d doc comment(s))", path, len(extracted.documents))
    return UnitResult(
        path=path,
        status=UnitStatus.CONVERTED if extracted.documents else UnitStatus.EMPTY,
        rendered=tuple(extracted.rendered),
        diagnostics=tuple(extracted.diagnostics),
        output_path=output_path,
    )


async def run_batch(
    paths: Sequence[Path],
    registry: TagRegistry,
    settings: Settings,
    reader: SourceReader,
    converter: MarkupConverter,
    writer: DocumentWriter,
) -> BatchReport:
    """Process ``paths`` concurrently; results come back in the order of ``paths``."""
    semaphore = asyncio.Semaphore(settings.max_workers)

    async def _run(path: Path) -> UnitResult:
        async with semaphore:
            try:
                return await asyncio.to_thread(process_unit, path, registry, settings, reader, converter, writer)
            except Exception as exc:
                logger.exception("Unexpected error while processing %s", path)
                return UnitResult(path=path, status=UnitStatus.FAILED, error=f"{type(exc).__name__}: {exc}")

    results = await asyncio.gather(*(_run(path) for path in paths))
    return BatchReport(results=tuple(results))
