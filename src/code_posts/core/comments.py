from bisect import bisect_right
from collections.abc import Iterator, Sequence

from code_posts.core.classifier import is_documentable, reads_trailing_comments
from code_posts.core.source import SourceUnit
from code_posts.core.trivia import is_doc_comment, leading_comment_ranges, trailing_comment_ranges
from code_posts.models import CommentPlacement, CommentRecord, SyntaxNode, TextSpan


def _iter_token_ends(root: SyntaxNode) -> Iterator[int]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            yield node.end_byte
        else:
            stack.extend(reversed(node.children))


def _full_start(node: SyntaxNode, token_ends: Sequence[int]) -> int:
    """End of the token preceding ``node``, i.e. where its leading trivia begins."""
    index = bisect_right(token_ends, node.start_byte)
    return token_ends[index - 1] if index else 0


def _comments_for(node: SyntaxNode, buffer: bytes, token_ends: Sequence[int]) -> list[CommentRecord]:
    pos = _full_start(node, token_ends)
    candidates: list[tuple[TextSpan, CommentPlacement]] = []
    if reads_trailing_comments(node.type):
        candidates.extend((span, CommentPlacement.TRAILING) for span in trailing_comment_ranges(buffer, pos))
    candidates.extend((span, CommentPlacement.LEADING) for span in leading_comment_ranges(buffer, pos))
    return [
        CommentRecord(node=node, span=span, placement=placement)
        for span, placement in candidates
        if span.end <= node.start_byte and is_doc_comment(buffer, span)
    ]


def _collect(root: SyntaxNode, buffer: bytes, token_ends: Sequence[int]) -> list[CommentRecord]:
    """Pre-order walk returning a fresh list; an explicit stack keeps deep trees off the call stack."""
    records: list[CommentRecord] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if is_documentable(node.type):
            records.extend(_comments_for(node, buffer, token_ends))
        stack.extend(reversed(node.children))
    return records


def _first_claims(records: list[CommentRecord]) -> list[CommentRecord]:
    claimed: set[tuple[int, int]] = set()
    kept: list[CommentRecord] = []
    for record in records:
        key = (record.span.start, record.span.end)
        if key in claimed:
            continue
        claimed.add(key)
        kept.append(record)
    return kept


def find_doc_comments(unit: SourceUnit) -> list[CommentRecord]:
    """Return the doc comments of ``unit`` in declaration order.

    A comment in front of nested declarations (``export function``,
    ``const x = ...``) belongs to the outermost one that reaches it first
    in a pre-order walk and is never reported again for inner nodes.
    """
    token_ends = list(_iter_token_ends(unit.root))
    return _first_claims(_collect(unit.root, unit.buffer, token_ends))
