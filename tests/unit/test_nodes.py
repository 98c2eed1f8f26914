#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_nodes.py
"""Unit tests for document node classes.

Tests cover:
- Node creation and validation of constraints
- Ownership and detaching
- Cloning with stable keys
- Attribute export/import and type-tag dispatch
- Tree helpers

"""

import json

import pytest

from mdinbox.ast import (
    BlockQuote,
    CodeBlock,
    Document,
    Heading,
    Image,
    Link,
    List,
    ListItem,
    Paragraph,
    Text,
    document_from_json,
    document_to_json,
    extract_text,
    node_from_dict,
    node_to_dict,
    normalize_inline,
    structurally_equal,
    validate_tree,
    walk,
)
from mdinbox.constants import NATURAL_SIZE
from mdinbox.exceptions import NodeError


@pytest.mark.unit
class TestNodeCreation:
    """Tests for node constructors and their invariants."""

    def test_heading_levels(self):
        """Test that levels 1-3 are accepted."""
        for level in (1, 2, 3):
            assert Heading(level=level).level == level

    @pytest.mark.parametrize("level", [0, 4, 6, -1])
    def test_heading_level_out_of_range(self, level):
        """Test that levels outside 1-3 are rejected."""
        with pytest.raises(NodeError):
            Heading(level=level)

    def test_text_formats_combine(self):
        """Test that format flags are a set and combine freely."""
        run = Text("x", formats={"bold", "italic", "strikethrough", "code"})
        assert run.has_format("bold")
        assert run.has_format("code")

    def test_text_unknown_format(self):
        """Test that unknown format flags are rejected."""
        with pytest.raises(NodeError):
            Text("x", formats={"underline"})

    def test_toggle_format(self):
        """Test toggling a single flag on and off."""
        run = Text("x", formats={"bold"})
        run.toggle_format("italic")
        assert run.formats == frozenset({"bold", "italic"})
        run.toggle_format("bold")
        assert run.formats == frozenset({"italic"})

    def test_image_defaults_to_natural_size(self):
        """Test that a new image has natural size and empty alt text."""
        image = Image(source="http://x/y.png")
        assert image.alt_text == ""
        assert image.width == NATURAL_SIZE
        assert image.height == NATURAL_SIZE
        assert image.is_natural_size

    def test_image_zero_size_is_natural(self):
        """Test that 0 means natural size."""
        image = Image(source="http://x/y.png", width=0, height=0)
        assert image.is_natural_size

    @pytest.mark.parametrize("size", [-5, 1.5, "big", True])
    def test_image_invalid_size(self, size):
        """Test that sizes must be positive integers."""
        with pytest.raises(NodeError):
            Image(source="http://x/y.png", width=size)

    def test_image_requires_source(self):
        """Test that the source attribute is required."""
        with pytest.raises(NodeError):
            Image(source="")

    def test_image_source_is_immutable(self):
        """Test that the source can only change through the setter."""
        image = Image(source="http://x/a.png")
        with pytest.raises(NodeError):
            image.source = "http://x/b.png"
        image.set_source("http://x/b.png")
        assert image.source == "http://x/b.png"

    def test_set_alt_text_keeps_identity(self):
        """Test that mutating alt text keeps the key and sibling order."""
        first = Image(source="http://x/a.png")
        second = Image(source="http://x/b.png")
        doc = Document(children=[first, second])
        key = first.key

        first.set_alt_text("a cat")

        assert first.key == key
        assert doc.children == [first, second]
        assert doc.children[0].alt_text == "a cat"

    def test_link_requires_url(self):
        """Test that links need a target."""
        with pytest.raises(NodeError):
            Link(url="")


@pytest.mark.unit
class TestOwnership:
    """Tests for single ownership of nodes."""

    def test_constructor_adopts_children(self):
        """Test that containers take ownership of their children."""
        run = Text("hi")
        paragraph = Paragraph(children=[run])
        assert run.owner is paragraph

    def test_attaching_owned_node_is_rejected(self):
        """Test that a node cannot have two owners."""
        run = Text("hi")
        Paragraph(children=[run])
        with pytest.raises(NodeError):
            Paragraph(children=[run])

    def test_same_node_twice_is_rejected(self):
        """Test that a node appears once in the tree."""
        run = Text("hi")
        with pytest.raises(NodeError):
            Paragraph(children=[run, run])

    def test_detach_releases_ownership(self):
        """Test that a detached node can be attached elsewhere."""
        run = Text("hi")
        first = Paragraph(children=[run])
        run.detach()
        second = Paragraph(children=[run])
        assert first.children == []
        assert run.owner is second

    def test_container_rejects_wrong_child_type(self):
        """Test that block and inline nodes stay in their containers."""
        with pytest.raises(NodeError):
            Document(children=[Text("loose")])
        with pytest.raises(NodeError):
            Paragraph(children=[Paragraph()])
        with pytest.raises(NodeError):
            List(children=[Paragraph()])
        with pytest.raises(NodeError):
            Link(url="http://x", children=[Link(url="http://y")])

    def test_clear_releases_children(self):
        """Test that clearing a container releases every child."""
        run = Text("hi")
        paragraph = Paragraph(children=[run])
        paragraph.clear()
        assert run.owner is None
        assert paragraph.children == []

    def test_replace_child(self):
        """Test swapping a child in place."""
        old, new = Text("old"), Text("new")
        paragraph = Paragraph(children=[Text("a"), old])
        paragraph.replace_child(old, new)
        assert [c.text for c in paragraph.children] == ["a", "new"]
        assert old.owner is None

    def test_remove_non_child(self):
        """Test that removing a stranger raises."""
        with pytest.raises(NodeError):
            Paragraph().remove(Text("x"))


@pytest.mark.unit
class TestClone:
    """Tests for cloning nodes."""

    def test_clone_keeps_key_and_attributes(self):
        """Test that a clone carries attributes and the key forward."""
        image = Image(source="http://x/y.png", alt_text="cat", width=10)
        copy = image.clone()
        assert copy is not image
        assert copy.key == image.key
        assert copy == image

    def test_clone_is_detached_deep_copy(self):
        """Test that cloning a container copies children and is unowned."""
        run = Text("hi", formats={"bold"})
        paragraph = Paragraph(children=[run])
        Document(children=[paragraph])

        copy = paragraph.clone()

        assert copy.owner is None
        assert copy == paragraph
        assert copy.children[0] is not run
        assert copy.children[0].key == run.key
        assert copy.children[0].owner is copy

    def test_key_excluded_from_equality(self):
        """Test that structure, not identity, decides equality."""
        assert Text("a") == Text("a")
        assert Text("a").key != Text("a").key


@pytest.mark.unit
class TestExportImport:
    """Tests for attribute shapes and type-tag dispatch."""

    def test_image_natural_size_exports_zero(self):
        """Test that natural size is written as 0."""
        shape = Image(source="http://x/y.png", alt_text="cat").export_attributes()
        assert shape == {
            "type": "image",
            "version": 1,
            "altText": "cat",
            "src": "http://x/y.png",
            "width": 0,
            "height": 0,
        }

    def test_image_import_absent_size_is_natural(self):
        """Test that a missing size imports as natural."""
        image = Image.import_attributes({"type": "image", "src": "http://x/y.png"})
        assert image.is_natural_size
        assert image.alt_text == ""

    def test_image_import_explicit_size(self):
        """Test that explicit sizes are kept."""
        image = Image.import_attributes({"src": "http://x/y.png", "width": 120, "height": 80})
        assert (image.width, image.height) == (120, 80)

    def test_heading_shape(self):
        """Test the heading tag attribute."""
        assert Heading(level=2).export_attributes()["tag"] == "h2"
        assert Heading.import_attributes({"tag": "h3"}).level == 3

    def test_heading_import_rejects_bad_tag(self):
        """Test that invalid tags raise."""
        with pytest.raises(NodeError):
            Heading.import_attributes({"tag": "h4"})

    def test_text_formats_in_canonical_order(self):
        """Test that formats export in a stable order."""
        shape = Text("x", formats={"code", "bold"}).export_attributes()
        assert shape["format"] == ["bold", "code"]

    def test_unknown_type_tag(self):
        """Test that unknown type tags raise."""
        with pytest.raises(NodeError):
            node_from_dict({"type": "table"})

    def test_tree_round_trip(self):
        """Test that a full tree survives dict export and import."""
        doc = Document(
            children=[
                Heading(level=1, children=[Text("Title")]),
                Paragraph(children=[Text("see "), Link(url="http://x", children=[Text("here")])]),
                List(
                    ordered=True,
                    start=3,
                    children=[ListItem(children=[Text("one"), List(children=[ListItem(children=[Text("a")])])])],
                ),
                BlockQuote(children=[Paragraph(children=[Text("quoted", formats={"italic"})])]),
                CodeBlock(content="print(1)", language="python"),
                Image(source="http://x/y.png", alt_text="cat", width=5),
            ]
        )

        data = node_to_dict(doc)
        assert node_from_dict(data) == doc

        payload = document_to_json(doc)
        assert json.loads(payload)["type"] == "root"
        assert document_from_json(payload) == doc


@pytest.mark.unit
class TestTreeHelpers:
    """Tests for tree utilities."""

    def test_walk_is_depth_first(self):
        """Test the walk order."""
        a, b = Text("a"), Text("b")
        doc = Document(children=[Paragraph(children=[a]), Paragraph(children=[b])])
        nodes = list(walk(doc))
        assert nodes.index(a) < nodes.index(b)
        assert nodes[0] is doc

    def test_extract_text(self):
        """Test plain text extraction."""
        paragraph = Paragraph(children=[Text("a "), Link(url="http://x", children=[Text("b")])])
        assert extract_text(paragraph) == "a b"

    def test_normalize_inline_merges_equal_formats(self):
        """Test that adjacent runs with equal formats merge and empty runs drop."""
        nodes = normalize_inline([Text("a"), Text("b"), Text(""), Text("c", formats={"bold"})])
        assert nodes == [Text("ab"), Text("c", formats={"bold"})]

    def test_normalize_inline_moves_edge_whitespace_out_of_formats(self):
        """Test that emphasis never starts or ends with whitespace."""
        nodes = normalize_inline([Text("see ", formats={"bold"}), Link(url="http://x", children=[Text("docs")])])
        assert nodes == [Text("see", formats={"bold"}), Text(" "), Link(url="http://x", children=[Text("docs")])]

        nodes = normalize_inline([Text("a", formats={"italic"}), Text(" b ", formats={"italic"})])
        assert nodes == [Text("a b", formats={"italic"}), Text(" ")]

    def test_normalize_inline_nested_formats(self):
        """Test whitespace leaving every format it touches."""
        nodes = normalize_inline([Text(" a", formats={"bold", "italic"}), Text("b ", formats={"bold"})])
        assert nodes == [Text(" "), Text("a", formats={"bold", "italic"}), Text("b", formats={"bold"}), Text(" ")]

    def test_normalize_inline_whitespace_only_run_loses_format(self):
        """Test that a run of only whitespace becomes plain."""
        nodes = normalize_inline([Text("x"), Text("  ", formats={"strikethrough"}), Text("y")])
        assert nodes == [Text("x  y")]

    def test_normalize_inline_keeps_code_whitespace(self):
        """Test that code runs keep their padding."""
        code = Text(" a ", formats={"code"})
        assert normalize_inline([code]) == [code]
        nodes = normalize_inline([Text("x", formats={"bold"}), Text("y ", formats={"bold", "code"})])
        assert nodes == [Text("x", formats={"bold"}), Text("y ", formats={"bold", "code"})]

    def test_structurally_equal_ignores_keys(self):
        """Test that separately built trees with the same shape compare equal."""
        left = Document(children=[Heading(level=2, children=[Text("t", formats={"bold"})])])
        right = Document(children=[Heading(level=2, children=[Text("t", formats={"bold"})])])
        assert left.key != right.key
        assert structurally_equal(left, right)

    def test_structurally_equal_detects_differences(self):
        """Test that attribute, format and order differences are reported."""
        base = Paragraph(children=[Text("a"), Link(url="http://x", children=[Text("b")])])
        assert not structurally_equal(base, Paragraph(children=[Text("a"), Link(url="http://y", children=[Text("b")])]))
        italic = Paragraph(children=[Text("a", formats={"italic"}), Link(url="http://x", children=[Text("b")])])
        assert not structurally_equal(base, italic)
        assert not structurally_equal(base, Paragraph(children=[Link(url="http://x", children=[Text("b")]), Text("a")]))
        assert not structurally_equal(Heading(level=1, children=[Text("a")]), Heading(level=2, children=[Text("a")]))

    def test_validate_tree_accepts_valid_tree(self):
        """Test that a well-formed tree validates."""
        validate_tree(Document(children=[Paragraph(children=[Text("ok")])]))
