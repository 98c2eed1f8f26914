#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/transformers/image.py
"""Image transformer.

Images are exported as ``![alt](src)`` and imported either from a line that
holds nothing but an image literal (element path) or from an image literal
completed by its closing ``)`` inside running text (text-match path).
Imported images always have natural size.

The rule must be registered after the standard rules; the link rule refuses
brackets preceded by an unescaped ``!`` so image literals are never read as
links. Both inline patterns capture the replaced span as the ``literal``
group; the characters before it only establish that the ``!`` is not
escaped.

"""

from __future__ import annotations

import re
from typing import Optional

from mdinbox.ast.nodes import Image, Node
from mdinbox.transformers.base import BlockImport, ExportContext, ImportContext, MarkdownTransformer
from mdinbox.utils.escape import UNESCAPED_PREFIX

IMAGE_LINE_PATTERN = re.compile(r"^!\[(?P<alt>[^\]]*)\]\((?P<source>[^)]+)\)$")
IMAGE_INLINE_PATTERN = re.compile(UNESCAPED_PREFIX + r"(?P<literal>!\[(?P<alt>[^\]]*)\]\((?P<source>[^)]+)\))$")


class ImageTransformer(MarkdownTransformer):
    """Element and text-match rule for image nodes."""

    name = "image"
    is_element = True
    is_text_match = True
    trigger = ")"
    regexp = IMAGE_INLINE_PATTERN

    def export(self, node: Node, context: ExportContext) -> str | None:
        """Export an image as ``![alt_text](source)``."""
        if not isinstance(node, Image):
            return None
        return f"![{node.alt_text}]({node.source})"

    def starts_block(self, line: str) -> bool:
        """Return True for a line holding only an image literal."""
        return IMAGE_LINE_PATTERN.match(line.strip()) is not None

    def import_block(self, lines: list[str], index: int, context: ImportContext) -> BlockImport | None:
        """Import a full-line image literal as an image block."""
        match = IMAGE_LINE_PATTERN.match(lines[index].strip())
        if match is None:
            return None
        return BlockImport([_image_from_match(match)], index + 1)

    def replace(self, match: re.Match[str], context: ImportContext) -> Optional[Node]:
        """Build an image from an inline image literal."""
        return _image_from_match(match)


def _image_from_match(match: re.Match[str]) -> Image:
    alt_text, source = match.group("alt"), match.group("source")
    return Image(source=source, alt_text=alt_text)


__all__ = ["IMAGE_INLINE_PATTERN", "IMAGE_LINE_PATTERN", "ImageTransformer"]
