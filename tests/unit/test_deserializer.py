#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_deserializer.py
"""Unit tests for the markdown to document deserializer.

Tests cover:
- Block segmentation for every element rule
- Inline delimiter pairing, code spans and escapes
- Text-match replacement of links and images
- Degradation of unsupported constructs to literal text
- Serialize/deserialize round trips

"""

import string

import pytest
from hypothesis import given
from hypothesis import strategies as st

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
    normalize_inline,
    structurally_equal,
)
from mdinbox.constants import MAX_NESTING_DEPTH
from mdinbox.markdown import MarkdownDeserializer, deserialize_markdown, serialize_markdown


def blocks(markdown):
    return deserialize_markdown(markdown).children


@pytest.mark.unit
class TestBlocks:
    """Tests for block segmentation."""

    @pytest.mark.parametrize("markdown", ["", "   ", "\n\n\n"])
    def test_blank_input(self, markdown):
        """Test that blank input gives an empty document."""
        assert blocks(markdown) == []

    def test_headings(self):
        """Test heading levels 1-3."""
        assert blocks("# A\n## B\n### C") == [
            Heading(level=1, children=[Text("A")]),
            Heading(level=2, children=[Text("B")]),
            Heading(level=3, children=[Text("C")]),
        ]

    def test_heading_above_level_three_is_literal(self):
        """Test that deeper headings stay paragraph text and are recorded."""
        deserializer = MarkdownDeserializer()
        doc = deserializer.deserialize("#### Deep")
        assert doc.children == [Paragraph(children=[Text("#### Deep")])]
        assert deserializer.degradations[0].reason == "heading level above 3"

    def test_paragraph_spans_lines(self):
        """Test that consecutive lines form one paragraph."""
        assert blocks("one\ntwo\n\nthree") == [
            Paragraph(children=[Text("one\ntwo")]),
            Paragraph(children=[Text("three")]),
        ]

    def test_crlf_line_endings(self):
        """Test that Windows line endings are accepted."""
        assert blocks("# T\r\n\r\nbody") == [Heading(level=1, children=[Text("T")]), Paragraph(children=[Text("body")])]

    def test_quote(self):
        """Test that quote content is parsed as blocks."""
        assert blocks("> # Q\n>\n> text") == [
            BlockQuote(children=[Heading(level=1, children=[Text("Q")]), Paragraph(children=[Text("text")])])
        ]

    def test_code_block(self):
        """Test fenced code with a language and markup inside."""
        assert blocks("```python\n# not a heading\n**x**\n```") == [
            CodeBlock(content="# not a heading\n**x**", language="python")
        ]

    def test_unclosed_fence_is_literal(self):
        """Test that an unclosed fence degrades to paragraph text."""
        deserializer = MarkdownDeserializer()
        doc = deserializer.deserialize("```\ncode")
        assert isinstance(doc.children[0], Paragraph)
        assert any(d.reason == "unclosed code fence" for d in deserializer.degradations)

    def test_nested_lists(self):
        """Test unordered lists with a nested ordered list."""
        assert blocks("- a\n  1. x\n  2. y\n- b") == [
            List(
                children=[
                    ListItem(
                        children=[
                            Text("a"),
                            List(
                                ordered=True, children=[ListItem(children=[Text("x")]), ListItem(children=[Text("y")])]
                            ),
                        ]
                    ),
                    ListItem(children=[Text("b")]),
                ]
            )
        ]

    def test_ordered_list_start(self):
        """Test that the first number sets the start."""
        (node,) = blocks("7. seven\n8. eight")
        assert node.ordered
        assert node.start == 7
        assert len(node.children) == 2

    def test_image_line(self):
        """Test that a line holding only an image literal becomes an image block."""
        assert blocks("![cat](http://x/y.png)") == [Image(source="http://x/y.png", alt_text="cat")]

    def test_image_inside_paragraph_splits_it(self):
        """Test that an inline image literal splits the surrounding paragraph."""
        assert blocks("before ![cat](http://x/y.png) after") == [
            Paragraph(children=[Text("before")]),
            Image(source="http://x/y.png", alt_text="cat"),
            Paragraph(children=[Text("after")]),
        ]

    def test_image_in_heading_stays_literal(self):
        """Test that headings keep image literals as text."""
        assert blocks("# see ![cat](http://x/y.png)") == [
            Heading(level=1, children=[Text("see ![cat](http://x/y.png)")])
        ]

    def test_imported_images_have_natural_size(self):
        """Test that imported images never carry explicit sizes."""
        (image,) = blocks("![](data:image/png;base64,iVBORw0KGgo=)")
        assert image.is_natural_size
        assert image.alt_text == ""

    def test_deep_quote_nesting_stays_literal(self):
        """Test that quotes nested past the limit are kept as paragraph text."""
        deserializer = MarkdownDeserializer()
        doc = deserializer.deserialize(">" * 400 + " hi")

        depth, node = 0, doc.children[0]
        while isinstance(node, BlockQuote):
            depth += 1
            (node,) = node.children
        assert depth == MAX_NESTING_DEPTH
        assert node == Paragraph(children=[Text(">" * (400 - MAX_NESTING_DEPTH) + " hi")])
        assert [d.reason for d in deserializer.degradations] == ["nesting too deep"]

    def test_deep_list_nesting_stays_item_text(self):
        """Test that list items nested past the limit become text of the deepest item."""
        deserializer = MarkdownDeserializer()
        doc = deserializer.deserialize("\n".join("  " * level + "- x" for level in range(600)))

        depth, node = 1, doc.children[0]
        while node.children[0].nested_lists:
            depth += 1
            (node,) = node.children[0].nested_lists
        assert depth == MAX_NESTING_DEPTH + 1
        text = node.children[0].children[0].text
        assert text.startswith("x\n- x\n  - x\n")
        assert [d.reason for d in deserializer.degradations] == ["nesting too deep"]
        assert isinstance(serialize_markdown(doc), str)

    def test_nesting_limit_is_configurable(self):
        """Test a deserializer with a small nesting limit."""
        deserializer = MarkdownDeserializer(max_depth=1)
        doc = deserializer.deserialize("> > > a")
        assert doc.children == [BlockQuote(children=[Paragraph(children=[Text("> > a")])])]
        assert deserializer.degradations[0].text == "> > a"


@pytest.mark.unit
class TestInline:
    """Tests for inline parsing."""

    def inline(self, markdown):
        (paragraph,) = blocks(markdown)
        return paragraph.children

    def test_formats(self):
        """Test each delimiter pair."""
        assert self.inline("a **b** *c* ~~d~~ `e`") == [
            Text("a "),
            Text("b", formats={"bold"}),
            Text(" "),
            Text("c", formats={"italic"}),
            Text(" "),
            Text("d", formats={"strikethrough"}),
            Text(" "),
            Text("e", formats={"code"}),
        ]

    def test_nested_formats(self):
        """Test that nested delimiters combine formats."""
        assert self.inline("**a*b***") == [Text("a", formats={"bold"}), Text("b", formats={"bold", "italic"})]

    def test_triple_delimiters(self):
        """Test bold italic from a single run of three."""
        assert self.inline("***x***") == [Text("x", formats={"bold", "italic"})]

    def test_unpaired_delimiter_is_literal(self):
        """Test that lone delimiters are kept as text."""
        assert self.inline("2 * 3 and **open") == [Text("2 * 3 and **open")]

    def test_code_span_content_is_raw(self):
        """Test that markup inside code spans is not parsed."""
        assert self.inline("`**not bold**`") == [Text("**not bold**", formats={"code"})]

    def test_escapes_are_removed(self):
        """Test that escaped punctuation becomes literal text."""
        assert self.inline("\\*\\*x\\*\\* \\` \\~ C:\\Users") == [Text("**x** ` ~ C:\\Users")]

    def test_link(self):
        """Test link replacement."""
        assert self.inline("read [the docs](https://example.com) now") == [
            Text("read "),
            Link(url="https://example.com", children=[Text("the docs")]),
            Text(" now"),
        ]

    def test_emphasis_around_link_leaves_space_outside(self):
        """Test that whitespace next to a link inside emphasis is not formatted."""
        assert self.inline("**see [docs](http://x)**") == [
            Text("see", formats={"bold"}),
            Text(" "),
            Link(url="http://x", children=[Text("docs")]),
        ]
        assert self.inline("*a [t](u) b*") == [
            Text("a", formats={"italic"}),
            Text(" "),
            Link(url="u", children=[Text("t")]),
            Text(" "),
            Text("b", formats={"italic"}),
        ]

    def test_escaped_bang_before_link(self):
        """Test that ``\\!`` before a bracket keeps the link."""
        assert self.inline("wow\\![y](http://x)") == [Text("wow!"), Link(url="http://x", children=[Text("y")])]

    def test_escaped_backslash_before_link(self):
        """Test that an escaped backslash does not escape the bracket after it."""
        assert self.inline("a\\\\[y](http://x)") == [Text("a\\"), Link(url="http://x", children=[Text("y")])]

    def test_backtick_in_url_is_not_link(self):
        """Test that a backtick ends link recognition."""
        assert self.inline("[a](`)") == [Text("[a](`)")]

    def test_escaped_bracket_is_not_link(self):
        """Test that an escaped bracket prevents link import."""
        assert self.inline("[a\\](b)") == [Text("[a](b)")]

    def test_cross_reference_token_is_text(self):
        """Test that ``[[name]]`` stays literal."""
        assert self.inline("see [[20240102030405]]") == [Text("see [[20240102030405]]")]

    def test_never_raises_on_garbage(self):
        """Test that odd input is tolerated."""
        doc = deserialize_markdown("**[`](\n> ```\n- \n1.\n![](\n####### x")
        assert isinstance(doc, Document)


@pytest.mark.unit
class TestTextMatch:
    """Tests for trigger-driven replacement while typing."""

    def test_link_on_closing_paren(self):
        """Test that typing ``)`` completes a link."""
        result = MarkdownDeserializer().apply_text_match(")", "go [here](http://x")
        assert result.prefix == "go "
        assert result.node == Link(url="http://x", children=[Text("here")])

    def test_image_on_closing_paren(self):
        """Test that typing ``)`` completes an image."""
        result = MarkdownDeserializer().apply_text_match(")", "![cat](http://x/y.png")
        assert result.prefix == ""
        assert result.node == Image(source="http://x/y.png", alt_text="cat")

    def test_no_match(self):
        """Test that other characters do nothing."""
        assert MarkdownDeserializer().apply_text_match("x", "[a](b") is None


@pytest.mark.unit
class TestRoundTrip:
    """Tests for serialize/deserialize round trips."""

    @pytest.mark.parametrize(
        "markdown",
        [
            "![cat](http://x/y.png)",
            "# Notes\n\n![cat](http://x/y.png)",
            "## Plan\n\n- one\n  - nested\n- two\n\n3. c\n4. d",
            "> quoted **bold**\n>\n> second",
            "```js\nconst x = 1;\n```",
            "plain \\*text\\* with [a link](http://x) and `code`",
            "see [[20240102030405]]",
            "**see** [docs](http://x)",
            "wow\\![y](http://x)",
            "a\\\\[y](http://x)",
        ],
    )
    def test_canonical_markdown_is_stable(self, markdown):
        """Test that canonical markdown survives a round trip unchanged."""
        assert serialize_markdown(deserialize_markdown(markdown)) == markdown

    @pytest.mark.parametrize(
        "markdown",
        [
            "**see [docs](http://x)**",
            "*a [t](u) b*",
            "**![x](y) tail**",
            "*# ![x](y)*",
            "*## [t](u)*",
            "- **a [t](u)**\n  - *[t](u) b*",
            "> **q [t](u)**",
        ],
    )
    def test_emphasis_around_links_and_images(self, markdown):
        """Test that exported emphasis next to links and images imports back to the same tree."""
        doc = deserialize_markdown(markdown)
        assert structurally_equal(deserialize_markdown(serialize_markdown(doc)), doc)

    def test_emphasis_around_image_splits_paragraph(self):
        """Test the blocks built from emphasis wrapping an image."""
        assert blocks("**![x](y) tail**") == [
            Image(source="y", alt_text="x"),
            Paragraph(children=[Text("tail", formats={"bold"})]),
        ]
        assert blocks("*# ![x](y)*") == [
            Paragraph(children=[Text("#", formats={"italic"})]),
            Image(source="y", alt_text="x"),
        ]

    def test_document_round_trip(self):
        """Test that a built document survives a round trip."""
        doc = Document(
            children=[
                Heading(level=2, children=[Text("Inbox "), Text("today", formats={"italic"})]),
                Paragraph(children=[Text("2 * 3 = 6 and # hash ["), Text("b", formats={"bold", "code"})]),
                Image(source="http://x/y.png", alt_text="cat"),
            ]
        )
_PLAIN_ALPHABET = string.ascii_letters + string.digits + " *[]()!#\\~`"
_FORMATTED_ALPHABET = string.ascii_letters + string.digits + " "
_FORMAT_COMBOS = [
    {"bold"},
    {"italic"},
    {"strikethrough"},
    {"code"},
    {"bold", "italic"},
    {"bold", "code"},
    {"italic", "strikethrough"},
]
# Markdown punctuation for import -> export -> import checks
_MARKDOWN_ALPHABET = "ab _*`#>-[]()!\n"

plain_runs = st.text(_PLAIN_ALPHABET, min_size=1, max_size=12).filter(lambda s: s == s.strip())
formatted_runs = st.builds(
    lambda text, formats: Text(text, formats=formats),
    st.text(_FORMATTED_ALPHABET, min_size=1, max_size=8).filter(lambda s: s == s.strip()),
    st.sampled_from(_FORMAT_COMBOS),
)
links = st.builds(
    lambda url, text: Link(url=url, children=[Text(text)]),
    st.text(string.ascii_letters + string.digits + ":/.", min_size=1, max_size=12),
    st.text(_FORMATTED_ALPHABET, min_size=1, max_size=8).filter(lambda s: s == s.strip()),
)
images = st.builds(
    lambda source, alt: Image(source=source, alt_text=alt),
    st.text(string.ascii_letters + string.digits + ":/.-_", min_size=1, max_size=16),
    st.text(_FORMATTED_ALPHABET, max_size=8),
)
code_blocks = st.builds(
    lambda content, language: CodeBlock(content=content, language=language),
    st.text(string.ascii_letters + string.digits + " \n`#*>-", max_size=40),
    st.none() | st.text(string.ascii_letters + string.digits, min_size=1, max_size=8),
)


@st.composite
def inline_runs(draw, with_links=True):
    """Draw plain runs alternating with formatted runs, with an optional link between spaces."""
    runs = []
    if draw(st.booleans()):
        runs.append(Text(draw(plain_runs)))
    for formatted in draw(st.lists(formatted_runs, max_size=4)):
        runs.append(formatted)
        runs.append(Text(draw(plain_runs)))
    if not runs:
        runs.append(Text(draw(plain_runs)))

    if with_links and draw(st.booleans()):
        position = draw(st.integers(min_value=0, max_value=len(runs)))
        inserted = [draw(links)]
        if position > 0:
            inserted.insert(0, Text(" "))
        if position < len(runs):
            inserted.append(Text(" "))
        runs[position:position] = inserted
    return normalize_inline(runs)


@st.composite
def lists(draw, depth=0):
    """Draw a list whose items may hold one nested list, two levels deep at most."""
    ordered = draw(st.booleans())
    node = List(ordered=ordered, start=draw(st.integers(min_value=1, max_value=20)) if ordered else 1)
    for _ in range(draw(st.integers(min_value=1, max_value=3))):
        item = ListItem(children=draw(inline_runs()))
        if depth < 1 and draw(st.booleans()):
            item.append(draw(lists(depth=depth + 1)))
        node.append(item)
    return node


@st.composite
def blocks_of(draw, depth=0):
    """Draw one block node of any type; quotes nest two levels deep at most."""
    kinds = ["heading", "paragraph", "list", "code", "image"]
    if depth < 2:
        kinds.append("quote")
    kind = draw(st.sampled_from(kinds))

    if kind == "heading":
        return Heading(level=draw(st.integers(min_value=1, max_value=3)), children=draw(inline_runs()))
    if kind == "paragraph":
        return Paragraph(children=draw(inline_runs()))
    if kind == "list":
        return draw(lists())
    if kind == "code":
        return draw(code_blocks)
    if kind == "image":
        return draw(images)
    return BlockQuote(children=draw(block_sequences(depth=depth + 1)))


@st.composite
def block_sequences(draw, depth=0):
    """Draw a non-empty run of block nodes."""
    children = []
    for _ in range(draw(st.integers(min_value=1, max_value=4))):
        children.append(draw(blocks_of(depth=depth)))
    return children


@st.composite
def documents(draw):
    """Draw documents of headings and paragraphs."""
    children = []
    for _ in range(draw(st.integers(min_value=1, max_value=4))):
        runs = draw(inline_runs(with_links=False))
        if draw(st.booleans()):
            children.append(Heading(level=draw(st.integers(min_value=1, max_value=3)), children=runs))
        else:
            children.append(Paragraph(children=runs))
    return Document(children=children)


@pytest.mark.fuzzing
class TestRoundTripProperties:
    """Property-based round trip tests."""

    @given(documents())
    def test_headings_and_paragraphs_round_trip(self, doc):
        """Test that formatted text and escaped punctuation survive a round trip."""
        assert structurally_equal(deserialize_markdown(serialize_markdown(doc)), doc)

    @given(st.builds(lambda children: Document(children=children), block_sequences()))
    def test_every_node_type_round_trips(self, doc):
        """Test documents mixing every block type, nested lists and quotes, links and images."""
        assert structurally_equal(deserialize_markdown(serialize_markdown(doc)), doc)

    @given(st.text(_MARKDOWN_ALPHABET, max_size=80))
    def test_reimport_of_export_is_stable(self, markdown):
        """Test that exporting any imported document and importing it again gives the same tree."""
        doc = deserialize_markdown(markdown)
        assert structurally_equal(deserialize_markdown(serialize_markdown(doc)), doc)

    @given(st.text(max_size=200))
    def test_any_text_deserializes(self, markdown):
        """Test that arbitrary text never raises."""
        assert isinstance(deserialize_markdown(markdown), Document)
