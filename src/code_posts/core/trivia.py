"""Rescan raw source bytes for comment tokens between two syntax tokens.

The syntax tree drops comments, so the text between the end of one token and
the start of the next is scanned again here. Comments on the same line as the
previous token are its *trailing* comments; everything after the first line
break (or from the start of the file) is *leading* trivia of the next token.
"""

from code_posts.models import TextSpan

_BOM = b"\xef\xbb\xbf"
_HORIZONTAL_SPACE = frozenset(b" \t\v\f")
_ASTERISK = ord("*")
_SLASH = ord("/")


def _skip_preamble(buffer: bytes) -> int:
    pos = len(_BOM) if buffer.startswith(_BOM) else 0
    if buffer.startswith(b"#!", pos):
        newline = buffer.find(b"\n", pos)
        return len(buffer) if newline == -1 else newline
    return pos


def _scan(buffer: bytes, pos: int, trailing: bool) -> list[TextSpan]:
    ranges: list[TextSpan] = []
    collecting = trailing or pos == 0
    if pos == 0:
        pos = _skip_preamble(buffer)
    size = len(buffer)
    i = pos
    while i < size:
        ch = buffer[i]
        if ch in (0x0A, 0x0D):
            i += 2 if buffer.startswith(b"\r\n", i) else 1
            if trailing:
                break
            collecting = True
            continue
        if ch in _HORIZONTAL_SPACE:
            i += 1
            continue
        if buffer.startswith(b"//", i):
            end = buffer.find(b"\n", i)
            end = size if end == -1 else end
            if end > i and buffer[end - 1] == 0x0D:
                end -= 1
        elif buffer.startswith(b"/*", i):
            close = buffer.find(b"*/", i + 2)
            end = size if close == -1 else close + 2
        else:
            break
        if collecting:
            ranges.append(TextSpan(start=i, end=end))
        i = end
    return ranges


def leading_comment_ranges(buffer: bytes, pos: int) -> list[TextSpan]:
    return _scan(buffer, pos, trailing=False)


def trailing_comment_ranges(buffer: bytes, pos: int) -> list[TextSpan]:
    if pos == 0:
        return []
    return _scan(buffer, pos, trailing=True)


def is_doc_comment(buffer: bytes, span: TextSpan) -> bool:
    """True for ``/** ... */`` but not for ``/**/``, ``/* ... */`` or line comments."""
    start = span.start
    return (
        span.end - start >= 4
        and buffer[start] == _SLASH
        and buffer[start + 1] == _ASTERISK
        and buffer[start + 2] == _ASTERISK
        and buffer[start + 3] != _SLASH
    )
