from collections.abc import Iterable
from enum import StrEnum

from code_posts.core.doc_tree import DocComment, DocNode, Excerpt


class RenderTarget(StrEnum):
    SUMMARY = "summary"
    REMARKS = "remarks"
    BLOCKS = "blocks"


SUMMARY_ONLY: tuple[RenderTarget, ...] = (RenderTarget.SUMMARY,)
FULL_DOCUMENT: tuple[RenderTarget, ...] = (RenderTarget.SUMMARY, RenderTarget.REMARKS, RenderTarget.BLOCKS)


def render(node: DocNode | None) -> str:
    """Concatenate the excerpts below ``node`` in document order."""
    if node is None:
        return ""
    parts: list[str] = []
    stack: list[DocNode] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Excerpt):
            parts.append(current.content)
        stack.extend(reversed(current.child_nodes()))
    return "".join(parts)


def render_document(document: DocComment, targets: Iterable[RenderTarget] = SUMMARY_ONLY) -> str:
    selected = set(targets)
    parts: list[str] = []
    if RenderTarget.SUMMARY in selected:
        parts.append(render(document.summary))
    remarks = document.remarks
    for block in document.blocks:
        if block is remarks:
            wanted = RenderTarget.REMARKS in selected
        else:
            wanted = RenderTarget.BLOCKS in selected
        if wanted:
            parts.append(render(block))
    return "\n\n".join(part for part in parts if part)
