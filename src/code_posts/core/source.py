import logging
from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from tree_sitter import Node
from tree_sitter_language_pack import SupportedLanguage, get_parser

from code_posts.core.languages import normalize_language, resolve_language
from code_posts.errors import ParseError
from code_posts.models import Position, SyntaxNode, TextSpan

logger = logging.getLogger(__name__)

# Comment tokens are trivia; the tree keeps declarations only.
_COMMENT_NODE_TYPES = frozenset({"comment", "html_comment"})


class LineIndex:
    """Maps byte offsets of a buffer to 0-based ``Position`` values."""

    def __init__(self, buffer: bytes) -> None:
        starts = [0]
        index = buffer.find(b"\n")
        while index != -1:
            starts.append(index + 1)
            index = buffer.find(b"\n", index + 1)
        self._line_starts = tuple(starts)
        self._size = len(buffer)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def position_at(self, offset: int) -> Position:
        if offset < 0 or offset > self._size:
            raise IndexError(f"Offset {offset} outside buffer of {self._size} bytes")
        row = bisect_right(self._line_starts, offset) - 1
        return Position(row=row, column=offset - self._line_starts[row])


@dataclass(frozen=True)
class SourceUnit:
    buffer: bytes
    text: str
    root: SyntaxNode
    language: str
    line_index: LineIndex
    path: str | None = None
    has_syntax_errors: bool = False

    def slice(self, span: TextSpan) -> str:
        assert span.end <= len(self.buffer), f"span {span} outside buffer of {len(self.buffer)} bytes"
        return self.buffer[span.start : span.end].decode("utf-8")

    def position_at(self, offset: int) -> Position:
        return self.line_index.position_at(offset)


def _to_model(node: Node, children: tuple[SyntaxNode, ...]) -> SyntaxNode:
    return SyntaxNode(
        type=node.type,
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        start_point=Position(row=node.start_point[0], column=node.start_point[1]),
        end_point=Position(row=node.end_point[0], column=node.end_point[1]),
        is_named=node.is_named,
        children=children,
    )


def _node_to_model(root: Node) -> SyntaxNode:
    """Convert bottom-up with an explicit stack; expression chains nest far deeper than the recursion limit."""
    converted: list[SyntaxNode] = []
    stack: list[tuple[Node, list[Node] | None]] = [(root, None)]
    while stack:
        node, children = stack.pop()
        if children is None:
            children = [child for child in node.children if child.type not in _COMMENT_NODE_TYPES]
            stack.append((node, children))
            stack.extend((child, None) for child in reversed(children))
            continue
        first = len(converted) - len(children)
        model = _to_model(node, tuple(converted[first:]))
        del converted[first:]
        converted.append(model)
    return converted[0]


def parse_source(source: str | bytes, language: str = "typescript", path: str | None = None) -> SourceUnit:
    """Build a ``SourceUnit`` whose tree covers the whole of ``source``.

    Raises ``ParseError`` when the bytes are not valid UTF-8. Syntax errors in
    otherwise readable text are logged and flagged on the unit, not raised.
    """
    resolved_language = normalize_language(language)
    if isinstance(source, str):
        source_bytes = source.encode("utf-8")
        text = source
    else:
        source_bytes = source
        try:
            text = source_bytes.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"{path or '<source>'}: not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc

    parser = get_parser(cast(SupportedLanguage, resolved_language))
    tree = parser.parse(source_bytes)
    root = tree.root_node

    if root.has_error:
        logger.info("%s: source contains syntax errors; continuing with partial tree", path or "<source>")

    line_index = LineIndex(source_bytes)
    syntax_root = _node_to_model(root)
    if syntax_root.start_byte != 0 or syntax_root.end_byte != len(source_bytes):
        # tree-sitter trims leading/trailing trivia from the root span.
        syntax_root = syntax_root.model_copy(
            update={
                "start_byte": 0,
                "end_byte": len(source_bytes),
                "start_point": Position(row=0, column=0),
                "end_point": line_index.position_at(len(source_bytes)),
            }
        )

    return SourceUnit(
        buffer=source_bytes,
        text=text,
        root=syntax_root,
        language=resolved_language,
        line_index=line_index,
        path=path,
        has_syntax_errors=root.has_error,
    )


def parse_file(path: str, language: str | None = None) -> SourceUnit:
    file_path = Path(path)
    resolved_language = resolve_language(language, file_path)

    try:
        source_bytes = file_path.read_bytes()
    except FileNotFoundError:
        raise FileNotFoundError(f"File not found: {path}") from None

    return parse_source(source_bytes, resolved_language, path=path)
