#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/transformers/builtin.py
"""Standard markdown transformers.

Element rules: heading (levels 1-3), quote, fenced code, unordered list,
ordered list, and the paragraph fallback.

Text-format rules: bold (``**``), italic (``*``), strikethrough (``~~``) and
inline code (a backtick run).

Text-match rules: link (``[text](url)``, triggered by ``)``).

:data:`STANDARD_TRANSFORMERS` lists the rule factories in registry order.
Order matters on import: bold precedes italic so that ``**`` is never read
as two italic tags.

"""

from __future__ import annotations

import re
from typing import Callable, Optional

from mdinbox.ast.nodes import (
    BlockQuote,
    CodeBlock,
    Heading,
    Image,
    Link,
    List,
    ListItem,
    Node,
    Paragraph,
    Text,
)
from mdinbox.ast.utils import extract_text, normalize_inline
from mdinbox.constants import DEFAULT_BULLET_MARKER, MAX_HEADING_LEVEL, RAW_TEXT_FORMATS, TextFormat
from mdinbox.utils.escape import (
    UNESCAPED_PREFIX,
    code_fence_for,
    escape_inline_code,
    escape_markdown_text,
    unescape_markdown,
)
from mdinbox.transformers.base import BlockImport, ExportContext, ImportContext, MarkdownTransformer

_HEADING_START = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+|$)")
_HEADING_LINE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_QUOTE_LINE = re.compile(r"^ {0,3}> ?(.*)$")
_FENCE_OPEN = re.compile(r"^ {0,3}(`{3,})([^`]*)$")
_LIST_ITEM = re.compile(
    r"^(?P<indent>[ \t]*)(?P<marker>[-*+]|(?P<number>\d{1,9})[.)])(?:(?P<gap>[ \t]+)(?P<text>.*))?$"
)
_LEVEL_ABOVE_MAX = re.compile(r"^ {0,3}#{%d,6}(?:[ \t]|$)" % (MAX_HEADING_LEVEL + 1))


def inline_only(nodes: list[Node], context: ImportContext) -> list[Node]:
    """Replace block-only nodes in inline content with their literal markdown.

    Images may only stand at block level; inside a heading or list item an
    image literal is kept as text.
    """
    result: list[Node] = []
    for node in nodes:
        if isinstance(node, Image):
            literal = f"![{node.alt_text}]({node.source})"
            context.degrade("image inside inline-only container", literal)
            result.append(Text(literal))
        else:
            result.append(node)
    return normalize_inline(result)


def _indent_width(line: str) -> int:
    expanded = line.expandtabs(4)
    return len(expanded) - len(expanded.lstrip(" "))


# ============================================================================
# Element rules
# ============================================================================


class HeadingTransformer(MarkdownTransformer):
    """``#``, ``##`` and ``###`` headings; deeper levels stay literal."""

    name = "heading"
    is_element = True

    def export(self, node: Node, context: ExportContext) -> str | None:
        """Export a heading on a single line."""
        if not isinstance(node, Heading):
            return None
        text = context.export_inline(node.children).replace("\n", " ")
        marker = "#" * node.level
        return f"{marker} {text}" if text else marker

    def starts_block(self, line: str) -> bool:
        """Return True for any ATX heading line."""
        return _HEADING_START.match(line) is not None

    def import_block(self, lines: list[str], index: int, context: ImportContext) -> BlockImport | None:
        """Import a heading line; levels above 3 are declined."""
        line = lines[index]
        match = _HEADING_LINE.match(line)
        if match is None:
            return None
        if _LEVEL_ABOVE_MAX.match(line):
            context.degrade(f"heading level above {MAX_HEADING_LEVEL}", line)
            return None
        level = len(match.group(1))
        children = inline_only(context.parse_inline(match.group(2) or ""), context)
        return BlockImport([Heading(level=level, children=children)], index + 1)


class QuoteTransformer(MarkdownTransformer):
    """``>``-prefixed quote blocks containing other blocks."""

    name = "quote"
    is_element = True

    def export(self, node: Node, context: ExportContext) -> str | None:
        """Export a quote with every inner line prefixed."""
        if not isinstance(node, BlockQuote):
            return None
        inner = context.export_blocks(node.children)
        return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))

    def starts_block(self, line: str) -> bool:
        """Return True for a line starting with ``>``."""
        return _QUOTE_LINE.match(line) is not None

    def import_block(self, lines: list[str], index: int, context: ImportContext) -> BlockImport | None:
        """Import consecutive quote lines and parse their content as blocks."""
        inner: list[str] = []
        position = index
        while position < len(lines):
            match = _QUOTE_LINE.match(lines[position])
            if match is None:
                break
            inner.append(match.group(1))
            position += 1
        if not inner:
            return None
        with context.nested() as allowed:
            if allowed:
                return BlockImport([BlockQuote(children=context.parse_blocks("\n".join(inner)))], position)
        context.degrade("nesting too deep", lines[index])
        return BlockImport([Paragraph(children=[Text("\n".join(lines[index:position]))])], position)


class CodeTransformer(MarkdownTransformer):
    """Fenced code blocks with an optional language info string."""

    name = "code"
    is_element = True

    def export(self, node: Node, context: ExportContext) -> str | None:
        """Export code between fences long enough to contain it."""
        if not isinstance(node, CodeBlock):
            return None
        fence = code_fence_for(node.content)
        opening = f"{fence}{node.language or ''}"
        if node.content:
            return f"{opening}\n{node.content}\n{fence}"
        return f"{opening}\n{fence}"

    def starts_block(self, line: str) -> bool:
        """Return True for an opening fence line."""
        return _FENCE_OPEN.match(line) is not None

    def import_block(self, lines: list[str], index: int, context: ImportContext) -> BlockImport | None:
        """Import a fenced block; an unclosed fence is declined."""
        match = _FENCE_OPEN.match(lines[index])
        if match is None:
            return None
        closing = re.compile(r"^ {0,3}`{%d,}[ \t]*$" % len(match.group(1)))
        for position in range(index + 1, len(lines)):
            if closing.match(lines[position]):
                content = "\n".join(lines[index + 1 : position])
                language = match.group(2).strip() or None
                return BlockImport([CodeBlock(content=content, language=language)], position + 1)
        context.degrade("unclosed code fence", lines[index])
        return None


class ListTransformer(MarkdownTransformer):
    """Bulleted or numbered lists with nesting by indentation.

    Parameters
    ----------
    ordered : bool
        True for the numbered list rule

    """

    is_element = True

    def __init__(self, ordered: bool) -> None:
        """Initialize the rule for one list type."""
        self.ordered = ordered
        self.name = "ordered_list" if ordered else "unordered_list"

    def export(self, node: Node, context: ExportContext) -> str | None:
        """Export list items, indenting continuation lines and nested lists."""
        if not isinstance(node, List) or node.ordered != self.ordered:
            return None

        lines: list[str] = []
        for offset, item in enumerate(node.children):
            if not isinstance(item, ListItem):
                continue
            marker = f"{node.start + offset}." if node.ordered else DEFAULT_BULLET_MARKER
            padding = " " * (len(marker) + 1)

            first, *rest = context.export_inline(item.inline_children).split("\n")
            lines.append(f"{marker} {first}" if first else marker)
            lines.extend(padding + line if line else line for line in rest)

            for nested in item.nested_lists:
                block = context.export_blocks([nested])
                lines.extend(padding + line if line else line for line in block.split("\n"))
        return "\n".join(lines)

    def starts_block(self, line: str) -> bool:
        """Return True for an item line of this rule's list type."""
        match = _LIST_ITEM.match(line)
        return match is not None and (match.group("number") is not None) == self.ordered

    def import_block(self, lines: list[str], index: int, context: ImportContext) -> BlockImport | None:
        """Import a list and every nested list below it."""
        if not self.starts_block(lines[index]):
            return None
        node, position = _parse_list(lines, index, context)
        return BlockImport([node], position)


def _parse_list(lines: list[str], index: int, context: ImportContext) -> tuple[List, int]:
    """Parse one list starting at ``lines[index]`` and return it with the next line index.

    Item lines indented below the current item's content offset are siblings;
    item lines at or past it open a nested list. Other lines continue the
    current item's text until a blank line or the start of another block.
    Past the nesting limit, deeper item lines are kept as item text.
    """
    first = _LIST_ITEM.match(lines[index])
    if first is None:
        raise ValueError(f"Not a list item line: {lines[index]!r}")
    base_indent = _indent_width(lines[index])
    ordered = first.group("number") is not None
    start = int(first.group("number")) if ordered else 1

    items: list[tuple[list[str], list[List]]] = []
    content_offset = base_indent + 1
    position = index
    # Set once nesting passes the limit; deeper item lines are then item text
    truncated = False

    while position < len(lines):
        line = lines[position]
        if not line.strip():
            break
        indent = _indent_width(line)
        if indent < base_indent:
            break
        match = _LIST_ITEM.match(line)

        if match is not None and indent < content_offset:
            if (match.group("number") is not None) != ordered:
                break
            gap = (match.group("gap") or " ").expandtabs(4)
            content_offset = indent + len(match.group("marker")) + len(gap)
            items.append(([match.group("text") or ""], []))
            position += 1
            continue

        if match is not None and not truncated:
            with context.nested() as allowed:
                if allowed:
                    nested, position = _parse_list(lines, position, context)
                    items[-1][1].append(nested)
                    continue
            context.degrade("nesting too deep", line)
            truncated = True

        if indent >= content_offset or not context.starts_block(line):
            text_lines, nested_lists = items[-1]
            if nested_lists:
                context.degrade("list item text after a nested list", line)
            text_lines.append(line.expandtabs(4)[min(indent, content_offset) :])
            position += 1
            continue
        break

    node = List(ordered=ordered, start=start)
    for text_lines, nested_lists in items:
        item = ListItem(children=inline_only(context.parse_inline("\n".join(text_lines)), context))
        item.extend(nested_lists)
        node.append(item)
    return node, position


class ParagraphTransformer(MarkdownTransformer):
    """Paragraph fallback; runs of text lines up to the next block start.

    Images found inside the paragraph text split it, since images are
    block-level nodes.
    """

    name = "paragraph"
    is_element = True
    is_fallback = True

    def export(self, node: Node, context: ExportContext) -> str | None:
        """Export paragraph inline content."""
        if not isinstance(node, Paragraph):
            return None
        return context.export_inline(node.children)

    def import_block(self, lines: list[str], index: int, context: ImportContext) -> BlockImport | None:
        """Collect text lines and split out any images found inline."""
        collected = [lines[index]]
        position = index + 1
        while position < len(lines) and lines[position].strip() and not context.starts_block(lines[position]):
            collected.append(lines[position])
            position += 1

        blocks: list[Node] = []
        run: list[Node] = []
        for node in context.parse_inline("\n".join(collected)):
            if isinstance(node, Image):
                if _has_content(run):
                    blocks.append(Paragraph(children=_trim_edges(run)))
                blocks.append(node)
                run = []
            else:
                run.append(node)
        if _has_content(run) or not blocks:
            blocks.append(Paragraph(children=_trim_edges(run) if blocks else run))
        return BlockImport(blocks, position)


def _has_content(nodes: list[Node]) -> bool:
    return bool(extract_text(nodes).strip()) or any(isinstance(node, Link) for node in nodes)


def _trim_edges(nodes: list[Node]) -> list[Node]:
    # Split points leave the newline or space around an image behind
    result = list(nodes)
    if result and isinstance(result[0], Text) and not result[0].formats & RAW_TEXT_FORMATS:
        result[0] = Text(result[0].text.lstrip(), formats=result[0].formats, key=result[0].key)
    if result and isinstance(result[-1], Text) and not result[-1].formats & RAW_TEXT_FORMATS:
        result[-1] = Text(result[-1].text.rstrip(), formats=result[-1].formats, key=result[-1].key)
    return [node for node in result if not (isinstance(node, Text) and not node.text)]


# ============================================================================
# Text-format rules
# ============================================================================


class TextFormatTransformer(MarkdownTransformer):
    """Inline format flag delimited by a pair of identical tags.

    Parameters
    ----------
    name : str
        Registry name
    text_format : {'bold', 'italic', 'strikethrough', 'code'}
        Format flag applied to the enclosed text
    tag : str
        Delimiter written on both sides

    """

    is_text_format = True

    def __init__(self, name: str, text_format: TextFormat, tag: str) -> None:
        """Initialize the rule."""
        self.name = name
        self.text_format = text_format
        self.tag = tag

    def wrap(self, content: str) -> str:
        """Wrap content, keeping edge whitespace outside the tags."""
        core = content.strip()
        if not core:
            return content
        leading = content[: len(content) - len(content.lstrip())]
        trailing = content[len(content.rstrip()) :]
        return f"{leading}{self.tag}{core}{self.tag}{trailing}"


class InlineCodeTransformer(TextFormatTransformer):
    """Backtick code spans; their content is never parsed or escaped."""

    parse_content = False

    def __init__(self) -> None:
        """Initialize the inline code rule."""
        super().__init__("inline_code", "code", "`")

    def wrap(self, content: str) -> str:
        """Wrap raw code in a delimiter longer than any backtick run inside it."""
        code, delimiter = escape_inline_code(content, self.tag)
        return f"{delimiter}{code}{delimiter}"


# ============================================================================
# Text-match rules
# ============================================================================


class LinkTransformer(MarkdownTransformer):
    """``[text](url)`` links, recognized when the closing ``)`` is seen.

    Link text is exported as plain text; format flags on link text runs are
    not written.
    """

    name = "link"
    is_text_match = True
    trigger = ")"
    # The bracket must not be escaped and must not follow an unescaped "!"
    regexp = re.compile(
        r"(?:^|[^\\!]|" + UNESCAPED_PREFIX + r"(?:\\\\|\\!))"
        r"(?P<literal>\[(?P<text>(?:\\.|[^\[\]\\])+)\]\((?P<url>[^()\s`]+)\))$"
    )

    def export(self, node: Node, context: ExportContext) -> str | None:
        """Export a link with escaped text."""
        if not isinstance(node, Link):
            return None
        text = escape_markdown_text(extract_text(node.children), at_line_start=False)
        text = text.replace("[", "\\[").replace("]", "\\]")
        return f"[{text}]({node.url})"

    def replace(self, match: re.Match[str], context: ImportContext) -> Optional[Node]:
        """Build a link node from the matched span."""
        return Link(url=match.group("url"), children=[Text(unescape_markdown(match.group("text")))])


def _bold() -> MarkdownTransformer:
    return TextFormatTransformer("bold", "bold", "**")


def _italic() -> MarkdownTransformer:
    return TextFormatTransformer("italic", "italic", "*")


def _strikethrough() -> MarkdownTransformer:
    return TextFormatTransformer("strikethrough", "strikethrough", "~~")


STANDARD_TRANSFORMERS: tuple[Callable[[], MarkdownTransformer], ...] = (
    HeadingTransformer,
    QuoteTransformer,
    CodeTransformer,
    lambda: ListTransformer(ordered=False),
    lambda: ListTransformer(ordered=True),
    ParagraphTransformer,
    _bold,
    _italic,
    _strikethrough,
    InlineCodeTransformer,
    LinkTransformer,
)


__all__ = [
    "STANDARD_TRANSFORMERS",
    "CodeTransformer",
    "HeadingTransformer",
    "InlineCodeTransformer",
    "LinkTransformer",
    "ListTransformer",
    "ParagraphTransformer",
    "QuoteTransformer",
    "TextFormatTransformer",
    "inline_only",
]
