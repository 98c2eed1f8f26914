#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/ast/utils.py
"""Utility functions for working with document trees.

Functions
---------
walk : Iterate over a subtree depth-first
extract_text : Extract plain text from a node or list of nodes
validate_tree : Check the single-owner and acyclicity invariants
normalize_inline : Merge adjacent text runs that share formats
structurally_equal : Compare two trees ignoring node keys
document_to_json / document_from_json : JSON round trip of a Document

Examples
--------
    >>> from mdinbox.ast import Document, Paragraph, Text
    >>> doc = Document(children=[Paragraph(children=[Text("Hello "), Text("world")])])
    >>> extract_text(doc)
    'Hello world'

"""

from __future__ import annotations

import json
from typing import Any, Iterator, Union

from mdinbox.ast.nodes import (
    Document,
    Node,
    Text,
    get_node_children,
    node_from_dict,
    node_to_dict,
)
from mdinbox.constants import RAW_TEXT_FORMATS
from mdinbox.exceptions import NodeError


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all of its descendants in depth-first order."""
    yield node
    for child in get_node_children(node):
        yield from walk(child)


def extract_text(node_or_nodes: Union[Node, list[Node]], joiner: str = "") -> str:
    """Extract plain text from a node or list of nodes.

    Parameters
    ----------
    node_or_nodes : Node or list of Node
        A single node or list of nodes to extract text from
    joiner : str, default = ""
        String used to join the text of sibling nodes

    Returns
    -------
    str
        Concatenated text content of all Text runs

    """
    if isinstance(node_or_nodes, list):
        parts = [extract_text(node, joiner=joiner) for node in node_or_nodes]
        return joiner.join(part for part in parts if part)

    node = node_or_nodes
    if isinstance(node, Text):
        return node.text

    parts = [extract_text(child, joiner=joiner) for child in get_node_children(node)]
    return joiner.join(part for part in parts if part)


def validate_tree(root: Node) -> None:
    """Check that every node in the tree appears once and points at its owner.

    Parameters
    ----------
    root : Node
        Root of the tree to validate

    Raises
    ------
    NodeError
        If a node is reachable twice or its owner reference is inconsistent

    """
    seen: set[int] = set()
    keys: dict[str, Node] = {}

    def _visit(node: Node, owner: Node | None) -> None:
        if id(node) in seen:
            raise NodeError(f"{type(node).__name__} {node.key} appears more than once in the tree")
        seen.add(id(node))

        previous = keys.get(node.key)
        if previous is not None:
            raise NodeError(f"Duplicate node key {node.key} ({type(previous).__name__}, {type(node).__name__})")
        keys[node.key] = node

        if owner is not None and node.owner is not owner:
            raise NodeError(f"{type(node).__name__} {node.key} is not owned by its parent {type(owner).__name__}")
        for child in get_node_children(node):
            _visit(child, node)

    _visit(root, None)


def normalize_inline(nodes: list[Node], raw_formats: frozenset[str] = RAW_TEXT_FORMATS) -> list[Node]:
    """Bring a list of inline runs to canonical form.

    Adjacent text runs with identical formats are merged and empty runs are
    dropped. Whitespace at either edge of a group of consecutive text runs
    sharing a format is moved out of that format, since emphasis delimiters
    cannot hug whitespace; a run that is only whitespace loses the format.
    Runs carrying one of ``raw_formats`` keep their whitespace.

    The input nodes must be detached; the returned list holds new runs where
    a change happened and the original nodes elsewhere.

    Parameters
    ----------
    nodes : list of Node
        Sibling inline nodes
    raw_formats : frozenset of str, default = {'code'}
        Formats whose content is written verbatim

    Returns
    -------
    list of Node
        The canonical runs

    Examples
    --------
        >>> runs = normalize_inline([Text("see ", formats={"bold"}), Text("it")])
        >>> [(run.text, sorted(run.formats)) for run in runs]
        [('see', ['bold']), (' it', [])]

    """
    result = _merge_runs(nodes)
    while True:
        moved = _move_edge_whitespace(result, raw_formats)
        if moved is None:
            return result
        result = _merge_runs(moved)


def _merge_runs(nodes: list[Node]) -> list[Node]:
    result: list[Node] = []
    for node in nodes:
        if isinstance(node, Text):
            if not node.text:
                continue
            previous = result[-1] if result else None
            if isinstance(previous, Text) and previous.formats == node.formats:
                result[-1] = Text(text=previous.text + node.text, formats=previous.formats, key=previous.key)
                continue
        result.append(node)
    return result


def _move_edge_whitespace(nodes: list[Node], raw_formats: frozenset[str]) -> list[Node] | None:
    """Split the whitespace off one group edge; None when every group is canonical."""
    formats = {fmt for node in nodes if isinstance(node, Text) for fmt in node.formats}
    for fmt in sorted(formats - raw_formats):
        start = 0
        while start < len(nodes):
            if not (isinstance(nodes[start], Text) and fmt in nodes[start].formats):
                start += 1
                continue
            end = start
            while end + 1 < len(nodes) and isinstance(nodes[end + 1], Text) and fmt in nodes[end + 1].formats:
                end += 1

            first, last = nodes[start], nodes[end]
            if not first.formats & raw_formats and first.text[:1].isspace():
                body = first.text.lstrip()
                leading = first.text[: len(first.text) - len(body)]
                return nodes[:start] + _split_run(first, fmt, leading, body) + nodes[start + 1 :]
            if not last.formats & raw_formats and last.text[-1:].isspace():
                body = last.text.rstrip()
                return nodes[:end] + _split_run(last, fmt, body, last.text[len(body) :]) + nodes[end + 1 :]
            start = end + 1
    return None


def _split_run(run: Text, fmt: str, before: str, after: str) -> list[Node]:
    # Whichever side is whitespace leaves the format
    outer = run.formats - {fmt}
    if not before.strip() and not after.strip():
        return [Text(run.text, formats=outer, key=run.key)]
    if not before.strip():
        return [Text(before, formats=outer), Text(after, formats=run.formats, key=run.key)]
    return [Text(before, formats=run.formats, key=run.key), Text(after, formats=outer)]


def structurally_equal(left: Node, right: Node) -> bool:
    """Return True when two trees have the same node types, order and attributes.

    Trees are compared through their exported shapes, so node keys and
    owner references never take part. Image sizes are compared after
    natural-size normalization, which node construction already applies.

    Examples
    --------
        >>> from mdinbox.ast import Paragraph
        >>> structurally_equal(Paragraph(children=[Text("a")]), Paragraph(children=[Text("a")]))
        True

    """
    return node_to_dict(left) == node_to_dict(right)


def document_to_dict(document: Document) -> dict[str, Any]:
    """Export a document to the nested attribute shape."""
    return node_to_dict(document)


def document_from_dict(data: dict[str, Any]) -> Document:
    """Rebuild a document from the nested attribute shape.

    Raises
    ------
    NodeError
        If the root is not a document or the shape is invalid

    """
    node = node_from_dict(data)
    if not isinstance(node, Document):
        raise NodeError(f"Expected a root node, got {type(node).__name__}", parameter_name="type")
    return node


def document_to_json(document: Document, indent: int | None = None) -> str:
    """Serialize a document to a JSON string."""
    return json.dumps(document_to_dict(document), indent=indent, ensure_ascii=False)


def document_from_json(payload: str) -> Document:
    """Deserialize a document from a JSON string.

    Raises
    ------
    NodeError
        If the payload is not valid JSON or not a document shape

    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise NodeError(f"Invalid document JSON: {e}", original_error=e) from e
    if not isinstance(data, dict):
        raise NodeError("Document JSON must be an object")
    return document_from_dict(data)


__all__ = [
    "document_from_dict",
    "document_from_json",
    "document_to_dict",
    "document_to_json",
    "extract_text",
    "normalize_inline",
    "structurally_equal",
    "validate_tree",
    "walk",
]
