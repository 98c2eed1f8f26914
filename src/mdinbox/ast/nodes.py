#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/ast/nodes.py
"""Node classes for the editable document tree.

This module defines the closed set of node kinds that make up an mdinbox
document. Every kind carries a type tag, a clone operation and a pair of
``export_attributes``/``import_attributes`` methods that convert the node to
and from a JSON-serializable shape holding attributes only (no children, no
behavior). Whole trees are converted by :func:`node_to_dict` and
:func:`node_from_dict`, which dispatch on the type tag through
:data:`NODE_TYPES` rather than on runtime class inspection.

Node Hierarchy
--------------
Block-level nodes (children of the Document or of a BlockQuote):
    - Paragraph, Heading (levels 1-3), BlockQuote, CodeBlock, List, Image

Structural nodes:
    - Document (root), ListItem (child of List)

Inline nodes (children of Paragraph, Heading and ListItem):
    - Text (a run of text with format flags), Link

Ownership
---------
Each node has exactly one owner. Container constructors adopt the nodes they
are given and refuse nodes that already belong to another container; use
:meth:`Node.detach` or :meth:`Node.clone` to move or copy a subtree.

Node identity is the ``key`` attribute. It is excluded from equality, so
``==`` compares structure, and it is carried forward by :meth:`Node.clone`.

"""

from __future__ import annotations

import itertools
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Iterable, Optional, Union

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from mdinbox.constants import (
    MAX_HEADING_LEVEL,
    MIN_HEADING_LEVEL,
    NATURAL_SIZE,
    NODE_EXPORT_VERSION,
    TEXT_FORMAT_ORDER,
    NaturalSize,
    TextFormat,
)
from mdinbox.exceptions import NodeError

_KEY_COUNTER = itertools.count(1)

ImageSize = Union[int, NaturalSize]


def new_node_key() -> str:
    """Return a fresh node key, unique for the lifetime of the process."""
    return f"n{next(_KEY_COUNTER)}"


class Node(ABC):
    """Base class for all document nodes.

    Attributes
    ----------
    node_type : str
        Type tag used in exported shapes
    key : str
        Stable node identity, preserved by :meth:`clone`

    """

    node_type: ClassVar[str]
    key: str

    @property
    def owner(self) -> Optional[ElementNode]:
        """Return the container currently owning this node, if any."""
        return getattr(self, "_owner", None)

    def detach(self) -> Self:
        """Remove this node from its owner and return it."""
        owner = self.owner
        if owner is not None:
            owner.remove(self)
        return self

    def clone(self) -> Self:
        """Return a detached copy carrying every attribute and the same key."""
        return replace(self)  # type: ignore[type-var]

    @abstractmethod
    def export_attributes(self) -> dict[str, Any]:
        """Export the node's attributes as a JSON-serializable dict.

        Returns
        -------
        dict
            Attribute shape including the ``type`` tag and ``version``

        """

    @classmethod
    @abstractmethod
    def import_attributes(cls, data: dict[str, Any]) -> Self:
        """Reconstruct a childless node from an exported attribute shape.

        Parameters
        ----------
        data : dict
            Shape produced by :meth:`export_attributes`

        Returns
        -------
        Node
            New node with a fresh key

        """

    def _base_shape(self) -> dict[str, Any]:
        return {"type": self.node_type, "version": NODE_EXPORT_VERSION}


class ElementNode(Node):
    """Base class for nodes owning an ordered list of child nodes."""

    children: list[Node]

    def _accepts(self, child: Node) -> bool:
        raise NotImplementedError

    def _adopt(self, child: Node) -> None:
        if child is self:
            raise NodeError("A node cannot contain itself")
        if not self._accepts(child):
            raise NodeError(f"{type(self).__name__} cannot contain {type(child).__name__}")
        current = child.owner
        if current is not None and current is not self:
            raise NodeError(f"{type(child).__name__} {child.key} already belongs to {type(current).__name__}")
        object.__setattr__(child, "_owner", self)

    def _adopt_all(self) -> None:
        seen: set[int] = set()
        for child in self.children:
            if id(child) in seen:
                raise NodeError(f"{type(child).__name__} {child.key} appears twice in {type(self).__name__}")
            seen.add(id(child))
            self._adopt(child)

    def append(self, child: Node) -> Node:
        """Append a child node, taking ownership of it."""
        self._adopt(child)
        self.children.append(child)
        return child

    def insert(self, index: int, child: Node) -> Node:
        """Insert a child node at ``index``, taking ownership of it."""
        self._adopt(child)
        self.children.insert(index, child)
        return child

    def extend(self, children: Iterable[Node]) -> None:
        """Append several child nodes in order."""
        for child in children:
            self.append(child)

    def remove(self, child: Node) -> None:
        """Remove a direct child node and release ownership of it.

        Raises
        ------
        NodeError
            If ``child`` is not a direct child of this node

        """
        for index, existing in enumerate(self.children):
            if existing is child:
                del self.children[index]
                object.__setattr__(child, "_owner", None)
                return
        raise NodeError(f"{type(child).__name__} {child.key} is not a child of {type(self).__name__}")

    def replace_child(self, old: Node, new: Node) -> Node:
        """Swap ``old`` for ``new`` in place, keeping sibling ordering."""
        for index, existing in enumerate(self.children):
            if existing is old:
                self._adopt(new)
                self.children[index] = new
                object.__setattr__(old, "_owner", None)
                return new
        raise NodeError(f"{type(old).__name__} {old.key} is not a child of {type(self).__name__}")

    def clear(self) -> None:
        """Remove every child node."""
        for child in self.children:
            object.__setattr__(child, "_owner", None)
        self.children.clear()

    def clone(self) -> Self:
        """Return a detached deep copy carrying attributes and keys forward."""
        return replace(self, children=[child.clone() for child in self.children])  # type: ignore[type-var]


def _is_inline(node: Node) -> bool:
    return isinstance(node, (Text, Link))


def _is_block(node: Node) -> bool:
    return isinstance(node, (Paragraph, Heading, BlockQuote, CodeBlock, List, Image))


# ============================================================================
# Root and block-level nodes
# ============================================================================


@dataclass
class Document(ElementNode):
    """Root container owning the ordered forest of block nodes.

    Parameters
    ----------
    children : list of Node, default = empty list
        Block-level nodes in document order

    """

    node_type: ClassVar[str] = "root"

    children: list[Node] = field(default_factory=list)
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Adopt the initial children."""
        self._adopt_all()

    def _accepts(self, child: Node) -> bool:
        return _is_block(child)

    def export_attributes(self) -> dict[str, Any]:
        """Export the root shape."""
        return self._base_shape()

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> Document:
        """Create an empty document."""
        return cls()


@dataclass
class Paragraph(ElementNode):
    """Paragraph block holding inline content."""

    node_type: ClassVar[str] = "paragraph"

    children: list[Node] = field(default_factory=list)
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Adopt the initial children."""
        self._adopt_all()

    def _accepts(self, child: Node) -> bool:
        return _is_inline(child)

    def export_attributes(self) -> dict[str, Any]:
        """Export the paragraph shape."""
        return self._base_shape()

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> Paragraph:
        """Create an empty paragraph."""
        return cls()


@dataclass
class Heading(ElementNode):
    """Heading block (levels 1-3) holding inline content.

    Parameters
    ----------
    level : int
        Heading level, 1 being the most important
    children : list of Node, default = empty list
        Inline nodes representing the heading text

    Raises
    ------
    NodeError
        If the level is outside 1-3

    """

    node_type: ClassVar[str] = "heading"

    level: int
    children: list[Node] = field(default_factory=list)
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Validate the level and adopt the initial children."""
        if not isinstance(self.level, int) or not MIN_HEADING_LEVEL <= self.level <= MAX_HEADING_LEVEL:
            raise NodeError(
                f"Heading level must be {MIN_HEADING_LEVEL}-{MAX_HEADING_LEVEL}, got {self.level!r}",
                parameter_name="level",
                parameter_value=self.level,
            )
        self._adopt_all()

    def _accepts(self, child: Node) -> bool:
        return _is_inline(child)

    def export_attributes(self) -> dict[str, Any]:
        """Export the heading shape."""
        return {**self._base_shape(), "tag": f"h{self.level}"}

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> Heading:
        """Create an empty heading from its ``tag`` attribute."""
        tag = str(data.get("tag", ""))
        if len(tag) != 2 or not tag.startswith("h") or not tag[1].isdigit():
            raise NodeError(f"Invalid heading tag: {tag!r}", parameter_name="tag", parameter_value=tag)
        return cls(level=int(tag[1]))


@dataclass
class BlockQuote(ElementNode):
    """Quote block containing other block nodes."""

    node_type: ClassVar[str] = "quote"

    children: list[Node] = field(default_factory=list)
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Adopt the initial children."""
        self._adopt_all()

    def _accepts(self, child: Node) -> bool:
        return _is_block(child)

    def export_attributes(self) -> dict[str, Any]:
        """Export the quote shape."""
        return self._base_shape()

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> BlockQuote:
        """Create an empty quote."""
        return cls()


@dataclass
class CodeBlock(Node):
    """Fenced code block; its content is never parsed as markdown.

    Parameters
    ----------
    content : str
        Code text without the fences
    language : str or None, default = None
        Info string written after the opening fence

    """

    node_type: ClassVar[str] = "code"

    content: str = ""
    language: Optional[str] = None
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def export_attributes(self) -> dict[str, Any]:
        """Export the code block shape."""
        return {**self._base_shape(), "code": self.content, "language": self.language}

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> CodeBlock:
        """Create a code block from its exported shape."""
        return cls(content=str(data.get("code", "")), language=data.get("language") or None)


@dataclass
class List(ElementNode):
    """Ordered or unordered list whose children are ListItem nodes.

    Parameters
    ----------
    ordered : bool
        True for numbered lists, False for bulleted lists
    children : list of ListItem, default = empty list
        List items
    start : int, default = 1
        Starting number for ordered lists

    """

    node_type: ClassVar[str] = "list"

    ordered: bool = False
    children: list[Node] = field(default_factory=list)
    start: int = 1
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Validate the start number and adopt the initial items."""
        if self.start < 0:
            raise NodeError(f"List start must be non-negative, got {self.start}", parameter_name="start")
        self._adopt_all()

    def _accepts(self, child: Node) -> bool:
        return isinstance(child, ListItem)

    def export_attributes(self) -> dict[str, Any]:
        """Export the list shape."""
        return {**self._base_shape(), "listType": "number" if self.ordered else "bullet", "start": self.start}

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> List:
        """Create an empty list from its exported shape."""
        list_type = data.get("listType", "bullet")
        if list_type not in ("bullet", "number"):
            raise NodeError(f"Invalid list type: {list_type!r}", parameter_name="listType", parameter_value=list_type)
        return cls(ordered=list_type == "number", start=int(data.get("start", 1)))


@dataclass
class ListItem(ElementNode):
    """List item holding inline content optionally followed by nested lists."""

    node_type: ClassVar[str] = "listitem"

    children: list[Node] = field(default_factory=list)
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Adopt the initial children."""
        self._adopt_all()

    def _accepts(self, child: Node) -> bool:
        return _is_inline(child) or isinstance(child, List)

    @property
    def inline_children(self) -> list[Node]:
        """Return the inline content of the item."""
        return [child for child in self.children if not isinstance(child, List)]

    @property
    def nested_lists(self) -> list[List]:
        """Return the nested lists of the item."""
        return [child for child in self.children if isinstance(child, List)]

    def export_attributes(self) -> dict[str, Any]:
        """Export the list item shape."""
        return self._base_shape()

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> ListItem:
        """Create an empty list item."""
        return cls()


@dataclass
class Image(Node):
    """Block-level image leaf.

    The ``source`` attribute is fixed at construction and can only be changed
    through :meth:`set_source`. Width and height are either positive pixel
    counts or the natural-size sentinel.

    Parameters
    ----------
    source : str
        Image URL or ``data:`` URI
    alt_text : str, default = ''
        Alternative text
    width : int or "inherit", default = natural size
        Display width; ``0`` and ``None`` also mean natural size
    height : int or "inherit", default = natural size
        Display height; ``0`` and ``None`` also mean natural size

    """

    node_type: ClassVar[str] = "image"

    source: str
    alt_text: str = ""
    width: ImageSize = NATURAL_SIZE
    height: ImageSize = NATURAL_SIZE
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Validate the source and normalize size attributes."""
        if not self.source:
            raise NodeError("Image source is required", parameter_name="source")
        self.width = _normalize_size(self.width, "width")
        self.height = _normalize_size(self.height, "height")
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any) -> None:
        """Refuse direct writes to ``source`` once the node is built."""
        if name == "source" and getattr(self, "_sealed", False):
            raise NodeError("Image source is immutable; use set_source()", parameter_name="source")
        if name in ("width", "height") and getattr(self, "_sealed", False):
            value = _normalize_size(value, name)
        super().__setattr__(name, value)

    def set_source(self, source: str) -> None:
        """Replace the image source explicitly."""
        if not source:
            raise NodeError("Image source is required", parameter_name="source")
        object.__setattr__(self, "source", source)

    def set_alt_text(self, alt_text: str) -> None:
        """Replace the alternative text without changing identity."""
        self.alt_text = alt_text

    @property
    def is_natural_size(self) -> bool:
        """Return True when neither dimension has been set explicitly."""
        return self.width == NATURAL_SIZE and self.height == NATURAL_SIZE

    def export_attributes(self) -> dict[str, Any]:
        """Export the image shape; natural sizes are written as 0."""
        return {
            **self._base_shape(),
            "altText": self.alt_text,
            "src": self.source,
            "width": 0 if self.width == NATURAL_SIZE else self.width,
            "height": 0 if self.height == NATURAL_SIZE else self.height,
        }

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> Image:
        """Create an image from its exported shape; 0 or absent sizes are natural."""
        return cls(
            source=str(data.get("src", "")),
            alt_text=str(data.get("altText") or ""),
            width=data.get("width") or NATURAL_SIZE,
            height=data.get("height") or NATURAL_SIZE,
        )


def _normalize_size(value: Any, name: str) -> ImageSize:
    if value is None or value == 0 or value == NATURAL_SIZE:
        return NATURAL_SIZE
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise NodeError(
            f"Image {name} must be a positive integer or natural size, got {value!r}",
            parameter_name=name,
            parameter_value=value,
        )
    return value


# ============================================================================
# Inline nodes
# ============================================================================


@dataclass
class Text(Node):
    """Run of text carrying a set of format flags.

    Parameters
    ----------
    text : str
        Literal text of the run
    formats : iterable of {'bold', 'italic', 'strikethrough', 'code'}, default = none
        Active format flags; any combination is allowed

    """

    node_type: ClassVar[str] = "text"

    text: str = ""
    formats: frozenset[TextFormat] = field(default_factory=frozenset)
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Normalize and validate the format flags."""
        self.formats = _validate_formats(self.formats)

    def has_format(self, text_format: TextFormat) -> bool:
        """Return True when ``text_format`` is active on this run."""
        return text_format in self.formats

    def toggle_format(self, text_format: TextFormat) -> None:
        """Switch a single format flag on or off."""
        self.formats = _validate_formats(self.formats ^ {text_format})

    def export_attributes(self) -> dict[str, Any]:
        """Export the run shape with formats in canonical order."""
        ordered = [fmt for fmt in TEXT_FORMAT_ORDER if fmt in self.formats]
        return {**self._base_shape(), "text": self.text, "format": ordered}

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> Text:
        """Create a run from its exported shape."""
        return cls(text=str(data.get("text", "")), formats=frozenset(data.get("format") or ()))


def _validate_formats(formats: Iterable[str]) -> frozenset[TextFormat]:
    result = frozenset(formats)
    unknown = result.difference(TEXT_FORMAT_ORDER)
    if unknown:
        raise NodeError(f"Unknown text format(s): {', '.join(sorted(unknown))}", parameter_name="formats")
    return result  # type: ignore[return-value]


@dataclass
class Link(ElementNode):
    """Inline hyperlink owning plain text runs.

    Parameters
    ----------
    url : str
        Link target
    children : list of Text, default = empty list
        Link text

    """

    node_type: ClassVar[str] = "link"

    url: str = ""
    children: list[Node] = field(default_factory=list)
    key: str = field(default_factory=new_node_key, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Validate the target and adopt the initial children."""
        if not self.url:
            raise NodeError("Link url is required", parameter_name="url")
        self._adopt_all()

    def _accepts(self, child: Node) -> bool:
        return isinstance(child, Text)

    def export_attributes(self) -> dict[str, Any]:
        """Export the link shape."""
        return {**self._base_shape(), "url": self.url}

    @classmethod
    def import_attributes(cls, data: dict[str, Any]) -> Link:
        """Create an empty link from its exported shape."""
        return cls(url=str(data.get("url", "")))


# ============================================================================
# Type-tag dispatch
# ============================================================================

NODE_TYPES: dict[str, type[Node]] = {
    cls.node_type: cls
    for cls in (Document, Paragraph, Heading, BlockQuote, CodeBlock, List, ListItem, Image, Text, Link)
}


def node_to_dict(node: Node) -> dict[str, Any]:
    """Export a node and its descendants to nested dicts.

    Parameters
    ----------
    node : Node
        Root of the subtree to export

    Returns
    -------
    dict
        Attribute shape with a ``children`` list for container nodes

    """
    result = node.export_attributes()
    if isinstance(node, ElementNode):
        result["children"] = [node_to_dict(child) for child in node.children]
    return result


def node_from_dict(data: dict[str, Any]) -> Node:
    """Rebuild a node subtree from nested dicts produced by :func:`node_to_dict`.

    Raises
    ------
    NodeError
        If a type tag is unknown or a child is not allowed in its container

    """
    type_tag = data.get("type")
    node_class = NODE_TYPES.get(str(type_tag))
    if node_class is None:
        raise NodeError(f"Unknown node type: {type_tag!r}", parameter_name="type", parameter_value=type_tag)

    node = node_class.import_attributes(data)
    if isinstance(node, ElementNode):
        for child_data in data.get("children", []):
            node.append(node_from_dict(child_data))
    return node


def get_node_children(node: Node) -> list[Node]:
    """Return the child nodes of ``node`` (empty for leaves)."""
    if isinstance(node, ElementNode):
        return list(node.children)
    return []


BLOCK_NODE_TYPES: tuple[type[Node], ...] = (Paragraph, Heading, BlockQuote, CodeBlock, List, Image)
INLINE_NODE_TYPES: tuple[type[Node], ...] = (Text, Link)
