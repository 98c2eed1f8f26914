#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/ast/__init__.py
"""Document tree for mdinbox.

This package defines the node model edited by the host and converted to and
from markdown by :mod:`mdinbox.markdown`.

Examples
--------
Build a document by hand:

    >>> from mdinbox.ast import Document, Heading, Image, Paragraph, Text
    >>> doc = Document(children=[
    ...     Heading(level=1, children=[Text("Notes")]),
    ...     Paragraph(children=[Text("Some "), Text("bold", formats={"bold"}), Text(" text")]),
    ...     Image(source="http://x/y.png", alt_text="cat"),
    ... ])

Export it as JSON and back:

    >>> from mdinbox.ast import document_from_json, document_to_json
    >>> document_from_json(document_to_json(doc)) == doc
    True

"""

from mdinbox.ast.nodes import (
    BLOCK_NODE_TYPES,
    INLINE_NODE_TYPES,
    NODE_TYPES,
    BlockQuote,
    CodeBlock,
    Document,
    ElementNode,
    Heading,
    Image,
    ImageSize,
    Link,
    List,
    ListItem,
    Node,
    Paragraph,
    Text,
    get_node_children,
    new_node_key,
    node_from_dict,
    node_to_dict,
)
from mdinbox.ast.utils import (
    document_from_dict,
    document_from_json,
    document_to_dict,
    document_to_json,
    extract_text,
    normalize_inline,
    structurally_equal,
    validate_tree,
    walk,
)

__all__ = [
    "BLOCK_NODE_TYPES",
    "INLINE_NODE_TYPES",
    "NODE_TYPES",
    "BlockQuote",
    "CodeBlock",
    "Document",
    "ElementNode",
    "Heading",
    "Image",
    "ImageSize",
    "Link",
    "List",
    "ListItem",
    "Node",
    "Paragraph",
    "Text",
    "document_from_dict",
    "document_from_json",
    "document_to_dict",
    "document_to_json",
    "extract_text",
    "get_node_children",
    "new_node_key",
    "node_from_dict",
    "node_to_dict",
    "normalize_inline",
    "structurally_equal",
    "validate_tree",
    "walk",
]
