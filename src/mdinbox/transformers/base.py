#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/transformers/base.py
"""Base interface for bidirectional markdown transformers.

A transformer is a rule that maps a node (or a formatted span) to a markdown
fragment and back. Every rule implements the single
:class:`MarkdownTransformer` interface and declares what it can do through
three capability flags:

``is_element``
    Block-level rule. Exports a whole block node and imports a line or line
    group through :meth:`~MarkdownTransformer.starts_block` and
    :meth:`~MarkdownTransformer.import_block`.

``is_text_format``
    Inline span rule such as emphasis. Wraps exported text in ``tag`` and is
    recognized on import by a matching pair of tags.

``is_text_match``
    Inline literal rule triggered by a terminating character. When
    ``trigger`` is seen, ``regexp`` is tested against the text since the
    previous boundary and :meth:`~MarkdownTransformer.replace` builds the
    node that replaces the matched span.

A rule may combine capabilities; the image rule is both an element rule
(an image alone on a line) and a text-match rule (an image literal typed or
found inside a paragraph).

"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, ContextManager, NamedTuple, Optional, Protocol

from mdinbox.constants import TextFormat

if TYPE_CHECKING:
    from mdinbox.ast.nodes import Node


class ExportContext(Protocol):
    """Callbacks a serializer offers to transformers while exporting."""

    def export_inline(self, nodes: list[Node]) -> str:
        """Export inline nodes to markdown."""
        ...

    def export_blocks(self, nodes: list[Node]) -> str:
        """Export block nodes to markdown joined by the block separator."""
        ...


class ImportContext(Protocol):
    """Callbacks a deserializer offers to transformers while importing."""

    def parse_inline(self, text: str) -> list[Node]:
        """Parse inline markdown into inline nodes."""
        ...

    def parse_blocks(self, text: str) -> list[Node]:
        """Parse block-level markdown into block nodes."""
        ...

    def starts_block(self, line: str) -> bool:
        """Return True when ``line`` opens a block handled by a non-fallback rule."""
        ...

    def degrade(self, reason: str, text: str) -> None:
        """Record that ``text`` could not be imported and is kept literally."""
        ...

    def nested(self) -> ContextManager[bool]:
        """Enter one level of container nesting.

        The managed value is False when the level is past the nesting limit;
        the caller then keeps the container's lines as literal text.
        """
        ...


class BlockImport(NamedTuple):
    """Result of an element rule consuming lines."""

    nodes: list[Node]
    next_index: int


class MarkdownTransformer:
    """Single interface shared by element, text-format and text-match rules.

    Subclasses set the capability flags they support and override the
    matching hooks; the defaults mean "not applicable".

    Attributes
    ----------
    name : str
        Unique registry name
    is_element : bool
        Handles block nodes
    is_text_format : bool
        Handles an inline format flag
    is_text_match : bool
        Handles a triggered inline literal
    is_fallback : bool
        Element rule used when no other element rule starts a block
    text_format : str or None
        Format flag handled by a text-format rule
    tag : str
        Opening and closing marker of a text-format rule
    parse_content : bool
        Whether the content between tags is itself parsed as markdown
    trigger : str or None
        Terminating character of a text-match rule
    regexp : re.Pattern or None
        Pattern tested against the text preceding (and including) the trigger

    """

    name: str = ""
    is_element: bool = False
    is_text_format: bool = False
    is_text_match: bool = False
    is_fallback: bool = False

    text_format: Optional[TextFormat] = None
    tag: str = ""
    parse_content: bool = True

    trigger: Optional[str] = None
    regexp: Optional[re.Pattern[str]] = None

    def export(self, node: Node, context: ExportContext) -> str | None:
        """Export ``node`` to markdown, or return None when not applicable."""
        return None

    def starts_block(self, line: str) -> bool:
        """Return True when ``line`` opens a block this rule imports."""
        return False

    def import_block(self, lines: list[str], index: int, context: ImportContext) -> BlockImport | None:
        """Import the block starting at ``lines[index]``, or return None."""
        return None

    def wrap(self, content: str) -> str:
        """Wrap already-exported inline content in this rule's tags."""
        return f"{self.tag}{content}{self.tag}"

    def replace(self, match: re.Match[str], context: ImportContext) -> Node | None:
        """Build the node replacing a text-match span, or return None to decline."""
        return None

    def __repr__(self) -> str:
        """Return a short description including capability flags."""
        flags = [
            flag
            for flag, enabled in (
                ("element", self.is_element),
                ("text-format", self.is_text_format),
                ("text-match", self.is_text_match),
            )
            if enabled
        ]
        return f"<{type(self).__name__} {self.name!r} {'/'.join(flags) or 'inert'}>"
