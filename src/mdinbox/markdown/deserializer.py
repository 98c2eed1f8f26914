#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/markdown/deserializer.py
"""Markdown to document deserializer.

Block segmentation is driven by the element rules of the registry: at each
non-blank line the first rule whose ``starts_block`` accepts the line and
whose ``import_block`` succeeds consumes it, and the fallback rule
(paragraph) takes everything else. Inline content is parsed by
:class:`~mdinbox.markdown.inline.InlineParser`.

The deserializer never raises for arbitrary input. Constructs it cannot
import are kept as literal text; each such degradation is logged at DEBUG and
recorded in :attr:`MarkdownDeserializer.degradations`.

"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional

from mdinbox.ast.nodes import Document, Node, Paragraph, Text
from mdinbox.constants import MAX_NESTING_DEPTH
from mdinbox.markdown.inline import InlineParser
from mdinbox.transformers.registry import TransformerRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Degradation:
    """A construct that was kept as literal text during import.

    Parameters
    ----------
    reason : str
        Why the construct could not be imported
    text : str
        The markdown kept literally

    """

    reason: str
    text: str


class TextMatchResult(NamedTuple):
    """Outcome of applying a text-match rule to typed text."""

    prefix: str
    node: Node


class MarkdownDeserializer:
    """Deserialize markdown into documents using an ordered transformer registry.

    Parameters
    ----------
    registry : TransformerRegistry, optional
        Rules to use; defaults to :func:`~mdinbox.transformers.default_registry`
    max_depth : int, default = MAX_NESTING_DEPTH
        Deepest quote or list nesting imported as structure; deeper
        containers are kept as literal text

    Attributes
    ----------
    degradations : list of Degradation
        Degradations recorded by the most recent :meth:`deserialize` call
    max_depth : int
        Deepest quote or list nesting imported as structure

    Examples
    --------
        >>> doc = MarkdownDeserializer().deserialize("# Title\\n\\nSome **bold** text")
        >>> [type(node).__name__ for node in doc.children]
        ['Heading', 'Paragraph']

    """

    def __init__(self, registry: Optional[TransformerRegistry] = None, max_depth: int = MAX_NESTING_DEPTH) -> None:
        """Initialize the deserializer with a registry."""
        self.registry = registry or default_registry()
        self.max_depth = max_depth
        self.degradations: list[Degradation] = []
        self._depth = 0
        self._inline = InlineParser(self.registry, self)

    def deserialize(self, markdown: str) -> Document:
        """Parse markdown text into a new document.

        Parameters
        ----------
        markdown : str
            Markdown text; any string is accepted

        Returns
        -------
        Document
            Parsed document; empty for empty or blank input

        """
        self.degradations = []
        return Document(children=self.parse_blocks(markdown))

    def apply_text_match(self, char: str, text: str) -> Optional[TextMatchResult]:
        """Apply the text-match rules fired by typing ``char`` after ``text``.

        Used by an editing surface when a trigger character is typed.

        Parameters
        ----------
        char : str
            The typed character
        text : str
            Text of the current run since the previous boundary

        Returns
        -------
        TextMatchResult or None
            Text kept before the matched span and the node replacing the span

        """
        hit = self.registry.match_trigger(char, text)
        if hit is None:
            return None
        node = hit.transformer.replace(hit.match, self)
        if node is None:
            return None
        logger.debug(f"Text-match rule '{hit.transformer.name}' replaced {(text + char)[hit.start :]!r}")
        return TextMatchResult(text[: hit.start], node)

    # ------------------------------------------------------------------
    # ImportContext
    # ------------------------------------------------------------------

    def parse_blocks(self, text: str) -> list[Node]:
        """Parse block-level markdown into block nodes."""
        lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        blocks: list[Node] = []
        index = 0

        while index < len(lines):
            if not lines[index].strip():
                index += 1
                continue

            result = None
            for transformer in self.registry.element_transformers:
                if transformer.is_fallback or not transformer.starts_block(lines[index]):
                    continue
                result = transformer.import_block(lines, index, self)
                if result is not None:
                    break

            if result is None:
                fallback = self.registry.fallback_transformer
                if fallback is not None:
                    result = fallback.import_block(lines, index, self)

            if result is None:
                self.degrade("no rule imports line", lines[index])
                blocks.append(Paragraph(children=[Text(lines[index])]))
                index += 1
                continue

            blocks.extend(result.nodes)
            index = max(result.next_index, index + 1)

        return blocks

    def parse_inline(self, text: str) -> list[Node]:
        """Parse inline markdown into inline nodes."""
        return self._inline.parse(text)

    def starts_block(self, line: str) -> bool:
        """Return True when a non-fallback element rule accepts ``line``."""
        return any(
            transformer.starts_block(line)
            for transformer in self.registry.element_transformers
            if not transformer.is_fallback
        )

    def degrade(self, reason: str, text: str) -> None:
        """Record a construct kept as literal text."""
        logger.debug(f"Markdown kept as literal text ({reason}): {text[:80]!r}")
        self.degradations.append(Degradation(reason, text))

    @contextmanager
    def nested(self) -> Iterator[bool]:
        """Enter one level of quote or list nesting; yields False past ``max_depth``."""
        self._depth += 1
        try:
            yield self._depth <= self.max_depth
        finally:
            self._depth -= 1


def deserialize_markdown(markdown: str, registry: Optional[TransformerRegistry] = None) -> Document:
    """Parse ``markdown`` into a document with a fresh deserializer."""
    return MarkdownDeserializer(registry).deserialize(markdown)


__all__ = ["Degradation", "MarkdownDeserializer", "TextMatchResult", "deserialize_markdown"]
