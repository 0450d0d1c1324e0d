"""Parse the text of one ``/** ... */`` comment into a ``DocComment`` tree.

Parsing never raises for malformed content. Every problem becomes a
``Diagnostic`` in the returned log and the parser resumes at the next
recognizable boundary.
"""

import re
from bisect import bisect_right
from dataclasses import dataclass

from code_posts.core.doc_tree import Block, DocComment, Excerpt, ExcerptKind, InlineTag, Paragraph, Section
from code_posts.core.source import LineIndex, SourceUnit
from code_posts.core.tags import TagDefinition, TagRegistry, TagSyntaxKind
from code_posts.models import CommentRecord, Diagnostic, DiagnosticLog, Position, Severity

_TAG_NAME_RE = re.compile(r"@[A-Za-z][A-Za-z0-9]*")
_PARAM_NAME_RE = re.compile(r"\[[^\]\n]*\]|[A-Za-z_$][\w$.]*")
_PLAIN_RE = re.compile(r"[^\\{@`\n]+")
_ESCAPABLE = frozenset("\\{}@`")
_SPACE = " \t"
_WHITESPACE = " \t\n"


@dataclass(frozen=True)
class DocParseResult:
    document: DocComment
    log: DiagnosticLog


class _CommentParser:
    def __init__(self, text: str, registry: TagRegistry, origin: int, line_index: LineIndex | None) -> None:
        self._text = text
        self._registry = registry
        self._origin = origin
        self._line_index = line_index
        self._local_index: LineIndex | None = None
        self._log = DiagnosticLog()

        self._seen: dict[str, int] = {}
        self._modifiers: list[str] = []
        self._summary: Section | None = None
        self._blocks: list[Block] = []
        self._open_block: tuple[TagDefinition, Excerpt, list[Excerpt], str | None] | None = None
        self._pieces: list[Excerpt | InlineTag] = []
        self._pending: list[str] = []
        self._pending_start = 0

        self._body = ""
        self._body_starts: list[int] = [0]
        self._text_starts: list[int] = [0]

    # -- positions ---------------------------------------------------------

    def _text_index(self, body_index: int) -> int:
        line = bisect_right(self._body_starts, body_index) - 1
        return self._text_starts[line] + (body_index - self._body_starts[line])

    def _offset_of_text(self, text_index: int) -> int:
        prefix = self._text[:text_index]
        return self._origin + (text_index if prefix.isascii() else len(prefix.encode("utf-8")))

    def _offset(self, body_index: int) -> int:
        return self._offset_of_text(self._text_index(body_index))

    def _position(self, offset: int) -> Position:
        if self._line_index is not None:
            return self._line_index.position_at(offset)
        if self._local_index is None:
            self._local_index = LineIndex(self._text.encode("utf-8"))
        return self._local_index.position_at(offset - self._origin)

    def _report_text(self, code: str, message: str, text_index: int, severity: Severity) -> None:
        offset = self._offset_of_text(text_index)
        self._log.add(
            Diagnostic(code=code, message=message, offset=offset, position=self._position(offset), severity=severity)
        )

    def _report(self, code: str, message: str, body_index: int, severity: Severity = Severity.WARNING) -> None:
        self._report_text(code, message, self._text_index(body_index), severity)

    # -- decoration --------------------------------------------------------

    def _strip_delimiters(self) -> tuple[int, int]:
        text = self._text
        start, end = 0, len(text)
        if text.startswith("/**"):
            start = 3
        else:
            self._report_text(
                "tsdoc-comment-missing-opening-delimiter", "Expecting a leading '/**'", 0, Severity.ERROR
            )
            if text.startswith("/*"):
                start = 2
        if len(text) - start >= 2 and text.endswith("*/"):
            end = len(text) - 2
        else:
            self._report_text(
                "tsdoc-comment-missing-closing-delimiter", "Expecting a trailing '*/'", len(text), Severity.ERROR
            )
        return start, end

    def _strip_decoration(self, start: int, end: int) -> None:
        text = self._text
        lines: list[tuple[str, int]] = []
        pos = start
        while True:
            newline = text.find("\n", pos, end)
            line_end = end if newline == -1 else newline
            i = pos
            while i < line_end and text[i] in _SPACE:
                i += 1
            if i < line_end and text[i] == "*":
                i += 1
                if i < line_end and text[i] == " ":
                    i += 1
            lines.append((text[i:line_end].rstrip(), i))
            if newline == -1:
                break
            pos = newline + 1

        while lines and not lines[0][0]:
            lines.pop(0)
        while lines and not lines[-1][0]:
            lines.pop()
        if not lines:
            self._text_starts = [start]
            return

        body_starts: list[int] = []
        cursor = 0
        for content, _ in lines:
            body_starts.append(cursor)
            cursor += len(content) + 1
        self._body = "\n".join(content for content, _ in lines)
        self._body_starts = body_starts
        self._text_starts = [text_start for _, text_start in lines]

    # -- section assembly --------------------------------------------------

    def _add_text(self, content: str, at: int) -> None:
        if not self._pending:
            self._pending_start = at
        self._pending.append(content)

    def _flush_text(self) -> None:
        if self._pending:
            content = "".join(self._pending)
            self._pieces.append(
                Excerpt(kind=ExcerptKind.PLAIN_TEXT, content=content, offset=self._offset(self._pending_start))
            )
            self._pending = []

    def _excerpt(self, kind: ExcerptKind, content: str, at: int) -> Excerpt:
        return Excerpt(kind=kind, content=content, offset=self._offset(at))

    def _emit(self, node: Excerpt | InlineTag) -> None:
        self._flush_text()
        self._pieces.append(node)

    def _finish_section(self) -> Section:
        self._flush_text()
        pieces = self._pieces
        self._pieces = []

        while pieces:
            last = pieces[-1]
            if not isinstance(last, Excerpt):
                break
            if last.kind in (ExcerptKind.SOFT_BREAK, ExcerptKind.SPACING):
                pieces.pop()
            elif last.kind == ExcerptKind.PLAIN_TEXT and last.content != last.content.rstrip():
                trimmed = last.content.rstrip()
                pieces.pop()
                if trimmed:
                    pieces.append(last.model_copy(update={"content": trimmed}))
            else:
                break

        paragraphs: list[Paragraph] = []
        current: list[Excerpt | InlineTag] = []
        breaks = 0
        for piece in pieces:
            if isinstance(piece, Excerpt) and piece.kind == ExcerptKind.SOFT_BREAK:
                current.append(piece)
                breaks += 1
                continue
            if breaks >= 2 and current:
                paragraphs.append(Paragraph(nodes=tuple(current)))
                current = []
            breaks = 0
            current.append(piece)
        if current:
            paragraphs.append(Paragraph(nodes=tuple(current)))
        return Section(paragraphs=tuple(paragraphs))

    def _close_current(self) -> None:
        section = self._finish_section()
        if self._open_block is None:
            self._summary = section
            return
        definition, tag, header, parameter_name = self._open_block
        self._blocks.append(
            Block(
                tag_name=definition.name,
                tag=tag,
                header=tuple(header),
                parameter_name=parameter_name,
                content=section,
            )
        )

    # -- tags --------------------------------------------------------------

    def _note_occurrence(self, definition: TagDefinition, at: int) -> None:
        count = self._seen.get(definition.key, 0) + 1
        self._seen[definition.key] = count
        if count > 1 and not definition.allow_multiple:
            self._report(
                "tsdoc-tag-not-repeatable",
                f"The {definition.name} tag may only be used once per comment",
                at,
            )

    def _add_modifier(self, definition: TagDefinition) -> None:
        if definition.name not in self._modifiers:
            self._modifiers.append(definition.name)

    def _consume_spacing(self, index: int, into: list[Excerpt]) -> int:
        end = index
        while end < len(self._body) and self._body[end] in _WHITESPACE:
            end += 1
        if end > index:
            into.append(self._excerpt(ExcerptKind.SPACING, self._body[index:end], index))
        return end

    def _parse_inline_tag(self, index: int) -> int:
        body = self._body
        close = body.find("}", index)
        reopen = body.find("{", index + 1)
        name_match = _TAG_NAME_RE.match(body, index + 1)

        if close == -1 or (reopen != -1 and reopen < close):
            self._report(
                "tsdoc-inline-tag-missing-right-brace",
                "The inline tag is missing its closing '}'",
                index,
                Severity.ERROR,
            )
            end = name_match.end() if name_match else index + 2
            self._add_text(body[index:end], index)
            return end

        if name_match is None or (name_match.end() < close and body[name_match.end()] not in _WHITESPACE):
            self._report(
                "tsdoc-malformed-inline-tag-name",
                "Expecting a tag name like '@link' after '{'",
                index + 1,
                Severity.ERROR,
            )
            self._add_text(body[index : close + 1], index)
            return close + 1

        name = name_match.group()
        definition = self._registry.lookup(name)
        if definition is None:
            self._add_text(body[index : close + 1], index)
            return close + 1

        if definition.syntax_kind != TagSyntaxKind.INLINE:
            self._report(
                "tsdoc-tag-should-not-be-inline",
                f"The {definition.name} tag is a {definition.syntax_kind} tag and must not be wrapped in braces",
                index,
            )
            if definition.syntax_kind == TagSyntaxKind.MODIFIER:
                self._note_occurrence(definition, index + 1)
                self._add_modifier(definition)
            else:
                self._add_text(body[index : close + 1], index)
            return close + 1

        self._note_occurrence(definition, index + 1)
        rest = body[name_match.end() : close]
        content = rest.lstrip(_WHITESPACE)
        excerpts = [
            self._excerpt(ExcerptKind.DELIMITER, "{", index),
            self._excerpt(ExcerptKind.TAG_NAME, name, index + 1),
        ]
        if len(content) < len(rest):
            excerpts.append(self._excerpt(ExcerptKind.SPACING, rest[: len(rest) - len(content)], name_match.end()))
        if content:
            excerpts.append(self._excerpt(ExcerptKind.TAG_CONTENT, content, close - len(content)))
        excerpts.append(self._excerpt(ExcerptKind.DELIMITER, "}", close))
        self._emit(
            InlineTag(
                tag_name=definition.name,
                content=content.strip(),
                offset=self._offset(index),
                excerpts=tuple(excerpts),
            )
        )
        return close + 1

    def _parse_block_parameter(
        self, definition: TagDefinition, index: int, header: list[Excerpt]
    ) -> tuple[int, str | None]:
        body = self._body
        match = _PARAM_NAME_RE.match(body, index)
        if match is None:
            self._report(
                "tsdoc-param-tag-missing-name",
                f"The {definition.name} block should be followed by a parameter name",
                index,
            )
            return index, None

        raw_name = match.group()
        header.append(self._excerpt(ExcerptKind.PARAMETER_NAME, raw_name, index))
        end = match.end()
        hyphen = end
        while hyphen < len(body) and body[hyphen] in _SPACE:
            hyphen += 1
        if hyphen < len(body) and body[hyphen] == "-":
            if hyphen > end:
                header.append(self._excerpt(ExcerptKind.SPACING, body[end:hyphen], end))
            header.append(self._excerpt(ExcerptKind.DELIMITER, "-", hyphen))
            end = hyphen + 1
        end = self._consume_spacing(end, header)
        return end, raw_name.strip("[]").split("=")[0].strip()

    def _start_block(self, definition: TagDefinition, name: str, index: int, end: int) -> int:
        self._close_current()
        tag = self._excerpt(ExcerptKind.TAG_NAME, name, index)
        header: list[Excerpt] = []
        end = self._consume_spacing(end, header)
        parameter_name = None
        if definition.takes_parameter:
            end, parameter_name = self._parse_block_parameter(definition, end, header)
        self._open_block = (definition, tag, header, parameter_name)
        return end

    def _parse_at_sign(self, index: int) -> int:
        body = self._body
        match = _TAG_NAME_RE.match(body, index)
        if match is None:
            self._add_text("@", index)
            return index + 1

        name, end = match.group(), match.end()
        definition = self._registry.lookup(name)
        if definition is None:
            self._add_text(name, index)
            return end

        if index > 0 and body[index - 1] not in _WHITESPACE:
            self._report(
                "tsdoc-at-sign-without-whitespace",
                f"The {definition.name} tag must be preceded by whitespace",
                index,
                Severity.ERROR,
            )
            self._add_text(name, index)
            return end

        if definition.syntax_kind == TagSyntaxKind.INLINE:
            self._report(
                "tsdoc-inline-tag-missing-braces",
                f"The {definition.name} tag is an inline tag and must be wrapped in '{{' and '}}'",
                index,
            )
            self._add_text(name, index)
            return end

        self._note_occurrence(definition, index)
        if definition.syntax_kind == TagSyntaxKind.MODIFIER:
            self._add_modifier(definition)
            while end < len(body) and body[end] in _SPACE:
                end += 1
            return end

        return self._start_block(definition, name, index, end)

    # -- literal constructs ------------------------------------------------

    def _parse_escape(self, index: int) -> int:
        body = self._body
        if index + 1 < len(body) and body[index + 1] in _ESCAPABLE:
            self._emit(self._excerpt(ExcerptKind.ESCAPED_TEXT, body[index : index + 2], index))
            return index + 2
        self._add_text("\\", index)
        return index + 1

    def _parse_code(self, index: int) -> int:
        body = self._body
        if (index == 0 or body[index - 1] == "\n") and body.startswith("```", index):
            close = body.find("\n```", index + 3)
            if close == -1:
                self._report(
                    "tsdoc-code-fence-missing-closing",
                    "The code fence is missing its closing '```'",
                    index,
                    Severity.ERROR,
                )
                end = len(body)
            else:
                line_end = body.find("\n", close + 4)
                end = len(body) if line_end == -1 else line_end
            self._emit(self._excerpt(ExcerptKind.FENCED_CODE, body[index:end], index))
            return end

        # Code spans end on the line they start on.
        line_end = body.find("\n", index)
        close = body.find("`", index + 1, len(body) if line_end == -1 else line_end)
        if close == -1:
            self._add_text("`", index)
            return index + 1
        self._emit(self._excerpt(ExcerptKind.CODE_SPAN, body[index : close + 1], index))
        return close + 1

    # -- driver ------------------------------------------------------------

    def parse(self) -> DocParseResult:
        start, end = self._strip_delimiters()
        self._strip_decoration(start, end)

        body = self._body
        index = 0
        while index < len(body):
            char = body[index]
            if char == "\n":
                self._emit(self._excerpt(ExcerptKind.SOFT_BREAK, "\n", index))
                index += 1
            elif char == "\\":
                index = self._parse_escape(index)
            elif char == "`":
                index = self._parse_code(index)
            elif char == "{" and body.startswith("{@", index):
                index = self._parse_inline_tag(index)
            elif char == "@":
                index = self._parse_at_sign(index)
            else:
                match = _PLAIN_RE.match(body, index)
                end = match.end() if match else index + 1
                self._add_text(body[index:end], index)
                index = end

        self._close_current()
        document = DocComment(
            summary=self._summary or Section(),
            blocks=tuple(self._blocks),
            modifiers=frozenset(self._modifiers),
        )
        return DocParseResult(document=document, log=self._log)


def parse_doc_comment(
    text: str,
    registry: TagRegistry,
    origin: int = 0,
    line_index: LineIndex | None = None,
) -> DocParseResult:
    """Parse one comment, delimiters included.

    ``origin`` is the byte offset of ``text`` in its source buffer and
    ``line_index`` maps buffer offsets to positions for diagnostics. Without a
    line index, positions are relative to the comment itself.
    """
    return _CommentParser(text, registry, origin, line_index).parse()


def parse_comment_record(record: CommentRecord, unit: SourceUnit, registry: TagRegistry) -> DocParseResult:
    assert record.span.end <= len(unit.buffer), f"comment span {record.span} outside of {unit.path or 'unit'}"
    return parse_doc_comment(unit.slice(record.span), registry, origin=record.span.start, line_index=unit.line_index)
