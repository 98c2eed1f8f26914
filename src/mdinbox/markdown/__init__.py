#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/markdown/__init__.py
"""Markdown serialization and deserialization of documents.

Examples
--------
    >>> from mdinbox.markdown import MarkdownDeserializer, MarkdownSerializer
    >>> doc = MarkdownDeserializer().deserialize("![cat](http://x/y.png)")
    >>> MarkdownSerializer().serialize(doc)
    '![cat](http://x/y.png)'

"""

from mdinbox.markdown.deserializer import (
    Degradation,
    MarkdownDeserializer,
    TextMatchResult,
    deserialize_markdown,
)
from mdinbox.markdown.inline import InlineParser
from mdinbox.markdown.serializer import MarkdownSerializer, serialize_markdown

__all__ = [
    "Degradation",
    "InlineParser",
    "MarkdownDeserializer",
    "MarkdownSerializer",
    "TextMatchResult",
    "deserialize_markdown",
    "serialize_markdown",
]
