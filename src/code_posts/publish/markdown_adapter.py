from markdown_it import MarkdownIt


class MarkdownItConverter:
    """Render markdown to HTML with markdown-it-py.

    Implements the ``MarkupConverter`` protocol.
    """

    def __init__(self, preset: str = "commonmark") -> None:
        self._markdown = MarkdownIt(preset)

    def convert(self, markdown: str) -> str:
        return self._markdown.render(markdown)
