#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/markdown/serializer.py
"""Document to markdown serializer.

The serializer walks the block forest depth-first and offers each block to
the element rules of a :class:`~mdinbox.transformers.TransformerRegistry` in
order until one exports it. Inline content is produced by grouping adjacent
text runs that share a format flag and wrapping each group with the
text-format rule for that flag, so ``[a(bold), b(bold, italic)]`` becomes
``**a*b***``. Literal text is escaped so that it cannot be re-read as
markup.

"""

from __future__ import annotations

import logging
from typing import Optional

from mdinbox.ast.nodes import Document, Node, Text
from mdinbox.ast.utils import extract_text, normalize_inline
from mdinbox.constants import BLOCK_SEPARATOR, TextFormat
from mdinbox.transformers.base import MarkdownTransformer
from mdinbox.transformers.registry import TransformerRegistry, default_registry
from mdinbox.utils.escape import escape_markdown_text

logger = logging.getLogger(__name__)


class MarkdownSerializer:
    """Serialize documents to markdown using an ordered transformer registry.

    Parameters
    ----------
    registry : TransformerRegistry, optional
        Rules to use; defaults to :func:`~mdinbox.transformers.default_registry`

    Examples
    --------
        >>> from mdinbox.ast import Document, Heading, Text
        >>> doc = Document(children=[Heading(level=2, children=[Text("Title")])])
        >>> MarkdownSerializer().serialize(doc)
        '## Title'

    """

    def __init__(self, registry: Optional[TransformerRegistry] = None) -> None:
        """Initialize the serializer with a registry."""
        self.registry = registry or default_registry()

    def serialize(self, document: Document) -> str:
        """Serialize a document to markdown.

        Parameters
        ----------
        document : Document
            Document to serialize

        Returns
        -------
        str
            Markdown text; empty for a document with no content

        """
        return self.export_blocks(document.children)

    # ------------------------------------------------------------------
    # ExportContext
    # ------------------------------------------------------------------

    def export_blocks(self, nodes: list[Node]) -> str:
        """Export block nodes joined by a blank line, skipping empty output."""
        parts = []
        for node in nodes:
            markdown = self._export_block(node)
            if markdown:
                parts.append(markdown)
        return BLOCK_SEPARATOR.join(parts)

    def export_inline(self, nodes: list[Node]) -> str:
        """Export inline nodes to markdown."""
        runs = normalize_inline(list(nodes), self.registry.raw_text_formats)
        return self._export_runs(runs, frozenset(), at_line_start=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _export_block(self, node: Node) -> str:
        for transformer in self.registry.element_transformers:
            markdown = transformer.export(node, self)
            if markdown is not None:
                return markdown
        logger.warning(f"No transformer exports {type(node).__name__}; writing its text only")
        return escape_markdown_text(extract_text(node))

    def _export_runs(self, nodes: list[Node], open_formats: frozenset[TextFormat], at_line_start: bool) -> str:
        pieces: list[str] = []
        line_start = at_line_start
        index = 0

        while index < len(nodes):
            node = nodes[index]
            if isinstance(node, Text):
                rule = self._next_format_rule(node, open_formats)
                if rule is not None and rule.text_format is not None:
                    end = self._group_end(nodes, index, rule, open_formats)
                    group = nodes[index:end]
                    if rule.parse_content:
                        inner = self._export_runs(group, open_formats | {rule.text_format}, at_line_start=False)
                    else:
                        inner = "".join(run.text for run in group if isinstance(run, Text))
                    piece = rule.wrap(inner)
                    index = end
                else:
                    piece = escape_markdown_text(node.text, at_line_start=line_start)
                    index += 1
            else:
                piece = self._export_inline_node(node)
                if piece.startswith("[") and pieces and pieces[-1].endswith("!"):
                    pieces[-1] = pieces[-1][:-1] + "\\!"
                index += 1

            if piece:
                pieces.append(piece)
                line_start = piece.endswith("\n")

        return "".join(pieces)

    def _next_format_rule(self, node: Text, open_formats: frozenset[TextFormat]) -> Optional[MarkdownTransformer]:
        pending = node.formats - open_formats
        if not pending:
            return None
        for rule in self._wrap_order():
            if rule.text_format in pending:
                return rule
        logger.warning(f"No transformer exports format(s) {', '.join(sorted(pending))}; writing plain text")
        return None

    def _wrap_order(self) -> list[MarkdownTransformer]:
        # Rules whose content is not parsed must be innermost
        rules = self.registry.text_format_transformers
        return [rule for rule in rules if rule.parse_content] + [rule for rule in rules if not rule.parse_content]

    @staticmethod
    def _group_end(
        nodes: list[Node], start: int, rule: MarkdownTransformer, open_formats: frozenset[TextFormat]
    ) -> int:
        end = start + 1
        while end < len(nodes):
            candidate = nodes[end]
            if not isinstance(candidate, Text) or rule.text_format not in candidate.formats:
                break
            if not rule.parse_content and candidate.formats - open_formats != {rule.text_format}:
                break
            end += 1
        return end

    def _export_inline_node(self, node: Node) -> str:
        for transformer in self.registry.text_match_transformers:
            markdown = transformer.export(node, self)
            if markdown is not None:
                return markdown
        logger.warning(f"No transformer exports inline {type(node).__name__}; writing its text only")
        return escape_markdown_text(extract_text(node), at_line_start=False)


def serialize_markdown(document: Document, registry: Optional[TransformerRegistry] = None) -> str:
    """Serialize ``document`` to markdown with a fresh serializer."""
    return MarkdownSerializer(registry).serialize(document)


__all__ = ["MarkdownSerializer", "serialize_markdown"]
