"""Unit tests for parsing doc comment text into a document tree."""

from code_posts.core.comments import find_doc_comments
from code_posts.core.doc_parser import parse_comment_record, parse_doc_comment
from code_posts.core.doc_tree import Excerpt, ExcerptKind
from code_posts.core.render import render
from code_posts.core.tags import TagDefinition, TagRegistry, TagSyntaxKind
from code_posts.models import Position, Severity
from code_posts.publish.markdown_adapter import MarkdownItConverter
from tests.conftest import unit_from

_ADD_COMMENT = """/**
 * Adds numbers.
 *
 * @remarks
 * Uses plain addition.
 *
 * @param a - The first number
 * @param b - The second number
 * @returns The sum
 */"""


class TestSummary:
    def test_strips_delimiters_and_decoration(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/**\n * Hello world.\n */", registry)
        assert render(result.document.summary) == "Hello world."
        assert not result.log

    def test_single_line_comment(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** Hello */", registry)
        assert render(result.document.summary) == "Hello"

    def test_empty_comment(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** */", registry)
        assert result.document.summary.is_empty
        assert render(result.document.summary) == ""
        assert not result.log

    def test_paragraphs_split_on_blank_lines(self, registry: TagRegistry) -> None:
        text = "/**\n * First line\n * second line.\n *\n * Next paragraph.\n */"
        summary = parse_doc_comment(text, registry).document.summary
        assert len(summary.paragraphs) == 2
        assert render(summary) == "First line\nsecond line.\n\nNext paragraph."

    def test_markdown_indentation_is_kept(self, registry: TagRegistry) -> None:
        text = "/**\n * ## tldr\n *\n * - one\n *   - nested\n */"
        assert render(parse_doc_comment(text, registry).document.summary) == "## tldr\n\n- one\n  - nested"


class TestBlocks:
    def test_remarks_params_and_returns(self, registry: TagRegistry) -> None:
        result = parse_doc_comment(_ADD_COMMENT, registry)
        document = result.document
        assert not result.log
        assert render(document.summary) == "Adds numbers."
        assert document.remarks is not None
        assert render(document.remarks.content) == "Uses plain addition."
        assert [block.parameter_name for block in document.params] == ["a", "b"]
        assert render(document.params[0].content) == "The first number"
        assert render(document.params[0]) == "@param a - The first number"
        assert document.returns is not None
        assert render(document.returns.content) == "The sum"

    def test_type_params(self, registry: TagRegistry) -> None:
        text = "/**\n * Wraps a value.\n * @typeParam T - The item type\n * @param value - The value\n */"
        document = parse_doc_comment(text, registry).document
        assert [block.parameter_name for block in document.type_params] == ["T"]
        assert render(document.type_params[0].content) == "The item type"
        assert [block.parameter_name for block in document.params] == ["value"]

    def test_param_without_name_is_diagnosed(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** @param - nothing */", registry)
        assert len(result.log.with_code("tsdoc-param-tag-missing-name")) == 1
        assert result.document.params[0].parameter_name is None

    def test_repeated_block_is_kept_and_diagnosed(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/**\n * @returns one\n * @returns two\n */", registry)
        assert len(result.document.blocks_named("@returns")) == 2
        assert len(result.log.with_code("tsdoc-tag-not-repeatable")) == 1
        assert len(result.log.of_severity(Severity.WARNING)) == 1
        assert result.document.returns is not None
        assert render(result.document.returns.content) == "one"

    def test_custom_block_and_modifier(self, custom_registry: TagRegistry) -> None:
        text = "/**\n * Summary.\n * @customBlock\n * Custom content.\n * @customModifier\n */"
        document = parse_doc_comment(text, custom_registry).document
        assert render(document.summary) == "Summary."
        assert [block.tag_name for block in document.custom_blocks] == ["@customBlock"]
        assert render(document.custom_blocks[0].content) == "Custom content."
        assert document.modifiers == frozenset({"@customModifier"})

    def test_custom_tags_are_text_without_registration(self, registry: TagRegistry) -> None:
        text = "/**\n * Summary.\n * @customBlock\n * Custom content.\n */"
        result = parse_doc_comment(text, registry)
        assert render(result.document.summary) == "Summary.\n@customBlock\nCustom content."
        assert not result.document.blocks
        assert not result.log

    def test_fenced_code_hides_tags(self, registry: TagRegistry) -> None:
        text = "/**\n * Summary.\n *\n * @example\n * ```ts\n * const x = {@link nope};\n * ```\n */"
        result = parse_doc_comment(text, registry)
        (example,) = result.document.blocks_named("@example")
        assert render(example.content) == "```ts\nconst x = {@link nope};\n```"
        assert not example.content.inline_tags()
        assert not result.log


class TestInlineTags:
    def test_link_renders_verbatim(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** See {@link Foo} for details. */", registry)
        (link,) = result.document.summary.inline_tags()
        assert link.tag_name == "@link"
        assert link.content == "Foo"
        assert render(result.document.summary) == "See {@link Foo} for details."
        assert not result.log

    def test_non_repeatable_inline_tag_is_kept_and_diagnosed_once(self) -> None:
        strict = TagRegistry([TagDefinition(name="@link", syntax_kind=TagSyntaxKind.INLINE, allow_multiple=False)])
        result = parse_doc_comment("/**\n * See {@link Foo} and {@link Bar}.\n */", strict)
        assert [tag.content for tag in result.document.summary.inline_tags()] == ["Foo", "Bar"]
        assert len(result.log) == 1
        assert result.log.messages[0].code == "tsdoc-tag-not-repeatable"

    def test_every_repeat_is_diagnosed(self) -> None:
        strict = TagRegistry([TagDefinition(name="@link", syntax_kind=TagSyntaxKind.INLINE)])
        result = parse_doc_comment("/** {@link A} {@link B} {@link C} */", strict)
        assert len(result.document.summary.inline_tags()) == 3
        assert len(result.log.with_code("tsdoc-tag-not-repeatable")) == 2

    def test_unterminated_inline_tag_is_not_fatal(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/**\n * Hello {@link Foo and more.\n */", registry)
        assert render(result.document.summary) == "Hello {@link Foo and more."
        (diagnostic,) = result.log.with_code("tsdoc-inline-tag-missing-right-brace")
        assert diagnostic.severity == Severity.ERROR
        assert diagnostic.offset == 13
        assert diagnostic.position == Position(row=1, column=9)

    def test_parsing_resumes_after_unterminated_tag(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** {@link Foo {@link Bar} */", registry)
        assert [tag.content for tag in result.document.summary.inline_tags()] == ["Bar"]
        assert len(result.log) == 1

    def test_malformed_tag_name(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** Bad {@} tag. */", registry)
        assert render(result.document.summary) == "Bad {@} tag."
        assert len(result.log.with_code("tsdoc-malformed-inline-tag-name")) == 1

    def test_unknown_inline_tag_is_text(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** Uses {@mystery thing}. */", registry)
        assert render(result.document.summary) == "Uses {@mystery thing}."
        assert not result.document.summary.inline_tags()
        assert not result.log

    def test_inline_tag_without_braces(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** See @link Foo */", registry)
        assert render(result.document.summary) == "See @link Foo"
        assert len(result.log.with_code("tsdoc-inline-tag-missing-braces")) == 1

    def test_block_tag_in_braces_is_text(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** A {@remarks} B */", registry)
        assert render(result.document.summary) == "A {@remarks} B"
        assert not result.document.blocks
        assert len(result.log.with_code("tsdoc-tag-should-not-be-inline")) == 1

    def test_offsets_are_bytes(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** Grüße {@link Foo} */", registry, origin=100)
        (link,) = result.document.summary.inline_tags()
        assert link.offset == 112


class TestModifiers:
    def test_modifiers_are_lifted_out_of_text(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/**\n * Experimental API. @beta\n * @public\n */", registry)
        assert result.document.modifiers == frozenset({"@beta", "@public"})
        assert render(result.document.summary) == "Experimental API."

    def test_modifier_inside_sentence(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** Use @internal with care. */", registry)
        assert render(result.document.summary) == "Use with care."
        assert result.document.has_modifier("@INTERNAL")

    def test_braced_modifier_is_still_lifted(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** A {@beta} B */", registry)
        assert result.document.modifiers == frozenset({"@beta"})
        assert "@beta" not in render(result.document.summary)
        assert len(result.log.with_code("tsdoc-tag-should-not-be-inline")) == 1


class TestLiteralText:
    def test_unknown_block_tag_is_kept_verbatim(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/**\n * @unknownTag value\n */", registry)
        assert render(result.document.summary) == "@unknownTag value"
        assert not result.log

    def test_at_sign_inside_word(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** Mail user@host.org or see foo@remarks. */", registry)
        assert render(result.document.summary) == "Mail user@host.org or see foo@remarks."
        assert [diagnostic.code for diagnostic in result.log] == ["tsdoc-at-sign-without-whitespace"]

    def test_code_span_hides_tags(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/** Use `@remarks` literally. */", registry)
        assert render(result.document.summary) == "Use `@remarks` literally."
        assert not result.document.blocks

    def test_escapes_keep_their_backslash(self, registry: TagRegistry) -> None:
        result = parse_doc_comment(r"/** Price \{not a tag\} and \@remarks. */", registry)
        assert render(result.document.summary) == r"Price \{not a tag\} and \@remarks."
        assert not result.document.blocks
        escaped = [
            node
            for paragraph in result.document.summary.paragraphs
            for node in paragraph.nodes
            if isinstance(node, Excerpt) and node.kind == ExcerptKind.ESCAPED_TEXT
        ]
        assert [excerpt.content for excerpt in escaped] == [r"\{", r"\}", r"\@"]

    def test_escaped_backtick_stays_escaped(self, registry: TagRegistry) -> None:
        summary = parse_doc_comment(r"/** Literal \`tick\` here. */", registry).document.summary
        assert render(summary) == r"Literal \`tick\` here."
        assert MarkdownItConverter().convert(render(summary)) == "<p>Literal `tick` here.</p>\n"

    def test_unmatched_backtick_stops_at_line_end(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("/**\n * Stray ` tick.\n * @returns `Value`\n */", registry)
        assert render(result.document.summary) == "Stray ` tick."
        assert result.document.returns is not None
        assert render(result.document.returns.content) == "`Value`"

    def test_missing_delimiters(self, registry: TagRegistry) -> None:
        result = parse_doc_comment("Just text", registry)
        assert render(result.document.summary) == "Just text"
        assert {diagnostic.code for diagnostic in result.log} == {
            "tsdoc-comment-missing-opening-delimiter",
            "tsdoc-comment-missing-closing-delimiter",
        }
        assert len(result.log.of_severity(Severity.ERROR)) == 2
        assert result.log.of_severity(Severity.WARNING) == []


def test_diagnostics_use_source_positions() -> None:
    unit = unit_from("const a = 1;\n/**\n * Bad {@link\n */\nfunction f() {}\n")
    (record,) = find_doc_comments(unit)
    result = parse_comment_record(record, unit, TagRegistry.default())
    (diagnostic,) = result.log
    assert diagnostic.position == Position(row=2, column=7)
    assert diagnostic.format("sample.ts") == "sample.ts(3,8): [TSDoc] The inline tag is missing its closing '}'"
