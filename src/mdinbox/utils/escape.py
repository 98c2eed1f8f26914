#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/utils/escape.py
"""Markdown escaping utilities.

Literal text is escaped so that importing the serialized markdown yields the
same text back. Only characters that the import rules can misread are
escaped, which keeps ordinary punctuation and cross-reference tokens such as
``[[note-name]]`` untouched.

"""

from __future__ import annotations

import re

from mdinbox.constants import CODE_FENCE, ESCAPABLE_CHARACTERS

# Characters that open or close inline constructs anywhere in a line
_INLINE_SPECIALS = frozenset("\\*`~")

# Line starts that block rules would read as structure
_LINE_START_MARKER = re.compile(r"^([ \t]*)([#>]|[-+](?=[ \t]|$))")
_LINE_START_ORDERED = re.compile(r"^([ \t]*\d{1,9})([.)])(?=[ \t]|$)")

_ESCAPE_SEQUENCE = re.compile(r"\\(.)", re.DOTALL)

# Regex fragment ending where the next character is not escaped: the start of
# the text, or a non-backslash followed by an even run of backslashes
UNESCAPED_PREFIX = r"(?:^|[^\\])(?:\\\\)*"


def escape_markdown_text(text: str, at_line_start: bool = True) -> str:
    r"""Escape literal text for inline markdown output.

    Parameters
    ----------
    text : str
        Literal text of a run
    at_line_start : bool, default = True
        Whether the first line of ``text`` starts an output line; later lines
        always do

    Returns
    -------
    str
        Escaped text

    Examples
    --------
        >>> escape_markdown_text("2 * 3")
        '2 \\* 3'
        >>> escape_markdown_text("# not a heading")
        '\\# not a heading'
        >>> escape_markdown_text("see [[inbox]]")
        'see [[inbox]]'

    """
    if not text:
        return text

    chars: list[str] = []
    for index, char in enumerate(text):
        if char in _INLINE_SPECIALS:
            chars.append("\\" + char)
        elif char == "]" and text.startswith("(", index + 1):
            chars.append("\\]")
        elif char == "!" and text.startswith("[", index + 1):
            chars.append("\\!")
        else:
            chars.append(char)
    escaped = "".join(chars)

    lines = escaped.split("\n")
    for index, line in enumerate(lines):
        if index == 0 and not at_line_start:
            continue
        lines[index] = escape_line_start(line)
    return "\n".join(lines)


def escape_line_start(line: str) -> str:
    r"""Escape a leading heading, quote or list marker in a line.

    Examples
    --------
        >>> escape_line_start("- item")
        '\\- item'
        >>> escape_line_start("1. first")
        '1\\. first'

    """
    line = _LINE_START_MARKER.sub(r"\1\\\2", line, count=1)
    return _LINE_START_ORDERED.sub(r"\1\\\2", line, count=1)


def unescape_markdown(text: str) -> str:
    r"""Remove backslash escapes in front of escapable punctuation.

    Examples
    --------
        >>> unescape_markdown("2 \\* 3")
        '2 * 3'
        >>> unescape_markdown("C:\\Users")
        'C:\\Users'

    """
    if "\\" not in text:
        return text
    return _ESCAPE_SEQUENCE.sub(
        lambda m: m.group(1) if m.group(1) in ESCAPABLE_CHARACTERS else m.group(0),
        text,
    )


def escape_inline_code(code: str, delimiter: str = "`") -> tuple[str, str]:
    """Pick an inline code delimiter and padding for ``code``.

    Handles code containing the delimiter character by using a longer
    delimiter sequence, and pads with spaces where the content would
    otherwise merge with the delimiter or lose its edge spaces.

    Parameters
    ----------
    code : str
        Code content, never escaped
    delimiter : str, default = '`'
        Delimiter character

    Returns
    -------
    tuple[str, str]
        (padded_code, delimiter_to_use)

    Examples
    --------
        >>> escape_inline_code("simple code")
        ('simple code', '`')
        >>> escape_inline_code("code with ` backtick")
        ('code with ` backtick', '``')

    """
    if not code:
        return code, delimiter

    final_delimiter = delimiter * (longest_run(code, delimiter) + 1)

    if (
        code.startswith(delimiter)
        or code.endswith(delimiter)
        or (code.startswith(" ") and code.endswith(" ") and code.strip(" "))
    ):
        code = " " + code + " "

    return code, final_delimiter


def code_fence_for(content: str) -> str:
    """Return a backtick fence longer than any backtick run in ``content``."""
    return "`" * max(len(CODE_FENCE), longest_run(content, "`") + 1)


def longest_run(text: str, char: str) -> int:
    """Return the length of the longest run of ``char`` in ``text``."""
    longest = 0
    current = 0
    for c in text:
        if c == char:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


__all__ = [
    "UNESCAPED_PREFIX",
    "code_fence_for",
    "escape_inline_code",
    "escape_line_start",
    "escape_markdown_text",
    "longest_run",
    "unescape_markdown",
]
