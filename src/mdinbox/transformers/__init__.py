#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/transformers/__init__.py
"""Bidirectional markdown transformers and their ordered registry."""

from mdinbox.transformers.base import BlockImport, ExportContext, ImportContext, MarkdownTransformer
from mdinbox.transformers.builtin import (
    STANDARD_TRANSFORMERS,
    CodeTransformer,
    HeadingTransformer,
    InlineCodeTransformer,
    LinkTransformer,
    ListTransformer,
    ParagraphTransformer,
    QuoteTransformer,
    TextFormatTransformer,
)
from mdinbox.transformers.image import ImageTransformer
from mdinbox.transformers.registry import TransformerRegistry, TriggerMatch, default_registry

__all__ = [
    "STANDARD_TRANSFORMERS",
    "BlockImport",
    "CodeTransformer",
    "ExportContext",
    "HeadingTransformer",
    "ImageTransformer",
    "ImportContext",
    "InlineCodeTransformer",
    "LinkTransformer",
    "ListTransformer",
    "MarkdownTransformer",
    "ParagraphTransformer",
    "QuoteTransformer",
    "TextFormatTransformer",
    "TransformerRegistry",
    "TriggerMatch",
    "default_registry",
]
