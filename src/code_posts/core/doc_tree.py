from collections.abc import Sequence
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

REMARKS_TAG = "@remarks"
PARAM_TAG = "@param"
TYPE_PARAM_TAG = "@typeParam"
RETURNS_TAG = "@returns"

_STANDARD_BLOCKS = frozenset(
    name.lower()
    for name in (
        REMARKS_TAG,
        "@privateRemarks",
        PARAM_TAG,
        TYPE_PARAM_TAG,
        RETURNS_TAG,
        "@throws",
        "@example",
        "@see",
        "@deprecated",
        "@defaultValue",
    )
)


class ExcerptKind(StrEnum):
    PLAIN_TEXT = "plain_text"
    SOFT_BREAK = "soft_break"
    SPACING = "spacing"
    ESCAPED_TEXT = "escaped_text"
    CODE_SPAN = "code_span"
    FENCED_CODE = "fenced_code"
    TAG_NAME = "tag_name"
    TAG_CONTENT = "tag_content"
    DELIMITER = "delimiter"
    PARAMETER_NAME = "parameter_name"


class DocNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    def child_nodes(self) -> Sequence["DocNode"]:
        return ()


class Excerpt(DocNode):
    """Leaf node holding a literal piece of the comment; the only node that renders text."""

    kind: ExcerptKind
    content: str
    offset: int


class InlineTag(DocNode):
    tag_name: str
    content: str
    offset: int
    excerpts: tuple[Excerpt, ...]

    def child_nodes(self) -> Sequence[DocNode]:
        return self.excerpts


class Paragraph(DocNode):
    nodes: tuple[Excerpt | InlineTag, ...] = ()

    def child_nodes(self) -> Sequence[DocNode]:
        return self.nodes


class Section(DocNode):
    paragraphs: tuple[Paragraph, ...] = ()

    def child_nodes(self) -> Sequence[DocNode]:
        return self.paragraphs

    @property
    def is_empty(self) -> bool:
        return not any(paragraph.nodes for paragraph in self.paragraphs)

    def inline_tags(self) -> list[InlineTag]:
        return [node for paragraph in self.paragraphs for node in paragraph.nodes if isinstance(node, InlineTag)]


class Block(DocNode):
    tag_name: str
    tag: Excerpt
    header: tuple[Excerpt, ...] = ()
    parameter_name: str | None = None
    content: Section = Section()

    def child_nodes(self) -> Sequence[DocNode]:
        return (self.tag, *self.header, self.content)


class DocComment(DocNode):
    summary: Section = Section()
    blocks: tuple[Block, ...] = ()
    modifiers: frozenset[str] = frozenset()

    def child_nodes(self) -> Sequence[DocNode]:
        return (self.summary, *self.blocks)

    def blocks_named(self, tag_name: str) -> list[Block]:
        key = tag_name.lower()
        return [block for block in self.blocks if block.tag_name.lower() == key]

    def has_modifier(self, tag_name: str) -> bool:
        key = tag_name.lower()
        return any(name.lower() == key for name in self.modifiers)

    @property
    def remarks(self) -> Block | None:
        found = self.blocks_named(REMARKS_TAG)
        return found[0] if found else None

    @property
    def params(self) -> list[Block]:
        return self.blocks_named(PARAM_TAG)

    @property
    def type_params(self) -> list[Block]:
        return self.blocks_named(TYPE_PARAM_TAG)

    @property
    def returns(self) -> Block | None:
        found = self.blocks_named(RETURNS_TAG)
        return found[0] if found else None

    @property
    def custom_blocks(self) -> list[Block]:
        return [block for block in self.blocks if block.tag_name.lower() not in _STANDARD_BLOCKS]
