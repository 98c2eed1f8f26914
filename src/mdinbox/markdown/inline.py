#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/markdown/inline.py
"""Inline markdown parsing.

Inline text is scanned left to right once. The scan produces a flat token
list of literal text, code spans, delimiter runs and nodes built by
text-match rules. Delimiter runs are then paired, nearest opener first, and
each pair applies its format flag to the tokens it encloses. Unpaired
delimiters are kept as literal text.

Text-match rules are tested at their trigger character against the raw text
since the previous boundary (the start of the text, a code span, a delimiter
run or an earlier replacement). On a match the matched span is replaced by
the node the rule builds and scanning continues after it.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from mdinbox.ast.nodes import Node, Text
from mdinbox.ast.utils import normalize_inline
from mdinbox.constants import TextFormat
from mdinbox.transformers.base import ImportContext, MarkdownTransformer
from mdinbox.transformers.registry import TransformerRegistry
from mdinbox.utils.escape import unescape_markdown

logger = logging.getLogger(__name__)


@dataclass
class _Literal:
    raw: str


@dataclass
class _Code:
    content: str
    text_format: TextFormat


@dataclass
class _Replacement:
    node: Node


@dataclass
class _Delimiter:
    char: str
    length: int
    count: int
    can_open: bool
    can_close: bool


_Token = Union[_Literal, _Code, _Replacement, _Delimiter]


@dataclass(frozen=True)
class _Pair:
    opener: int
    closer: int
    text_format: TextFormat


class InlineParser:
    """Parse inline markdown with the text-format and text-match rules of a registry.

    Parameters
    ----------
    registry : TransformerRegistry
        Source of the text-format and text-match rules
    context : ImportContext
        Context handed to text-match ``replace`` calls

    """

    def __init__(self, registry: TransformerRegistry, context: ImportContext) -> None:
        """Index the registry's inline rules."""
        self._registry = registry
        self._context = context
        self._triggers = registry.triggers()

        self._code_rule: Optional[MarkdownTransformer] = None
        # delimiter char -> [(tag length, rule)] longest tag first
        self._delimiter_rules: dict[str, list[tuple[int, MarkdownTransformer]]] = {}
        for rule in registry.text_format_transformers:
            if not rule.tag:
                continue
            if not rule.parse_content:
                if self._code_rule is None:
                    self._code_rule = rule
                continue
            if len(set(rule.tag)) != 1:
                logger.warning(f"Ignoring text-format rule '{rule.name}': tag must repeat a single character")
                continue
            self._delimiter_rules.setdefault(rule.tag[0], []).append((len(rule.tag), rule))
        for rules in self._delimiter_rules.values():
            rules.sort(key=lambda item: item[0], reverse=True)

    def parse(self, text: str) -> list[Node]:
        """Parse ``text`` into normalized inline nodes.

        Parameters
        ----------
        text : str
            Inline markdown

        Returns
        -------
        list of Node
            Text runs and nodes built by text-match rules

        """
        if not text:
            return []
        tokens = self._tokenize(text)
        pairs = self._pair_delimiters(tokens)
        return normalize_inline(self._build_nodes(tokens, pairs), self._registry.raw_text_formats)

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _tokenize(self, text: str) -> list[_Token]:
        tokens: list[_Token] = []
        code_char = self._code_rule.tag[0] if self._code_rule is not None else None
        length = len(text)
        position = 0
        literal_start = 0

        def flush(upto: int) -> None:
            if upto > literal_start:
                tokens.append(_Literal(text[literal_start:upto]))

        while position < length:
            char = text[position]

            if char == "\\" and position + 1 < length:
                position += 2
                continue

            if char == code_char and self._code_rule is not None:
                run = _run_length(text, position, char)
                close = _find_code_close(text, position + run, run, char)
                if close is not None:
                    flush(position)
                    content = _strip_code_padding(text[position + run : close])
                    tokens.append(_Code(content, self._code_rule.text_format or "code"))
                    position = literal_start = close + run
                    continue
                position += run
                continue

            if char in self._delimiter_rules:
                run = _run_length(text, position, char)
                before = text[position - 1] if position > 0 else ""
                after = text[position + run] if position + run < length else ""
                can_open = bool(after) and not after.isspace()
                can_close = bool(before) and not before.isspace()
                if can_open or can_close:
                    flush(position)
                    tokens.append(_Delimiter(char, run, run, can_open, can_close))
                    position = literal_start = position + run
                    continue
                position += run
                continue

            if char in self._triggers:
                hit = self._registry.match_trigger(char, text[literal_start:position])
                if hit is not None:
                    node = hit.transformer.replace(hit.match, self._context)
                    if node is not None:
                        flush(literal_start + hit.start)
                        tokens.append(_Replacement(node))
                        position = literal_start = position + 1
                        continue

            position += 1

        flush(length)
        return tokens

    # ------------------------------------------------------------------
    # Delimiter pairing
    # ------------------------------------------------------------------

    def _pair_delimiters(self, tokens: list[_Token]) -> list[_Pair]:
        pairs: list[_Pair] = []
        openers: list[int] = []

        for index, token in enumerate(tokens):
            if not isinstance(token, _Delimiter):
                continue

            if token.can_close:
                while token.count > 0:
                    found = self._find_opener(tokens, openers, token)
                    if found is None:
                        break
                    opener_index = openers[found]
                    opener = tokens[opener_index]
                    assert isinstance(opener, _Delimiter)
                    matched = self._rule_for(opener, token)
                    if matched is None:
                        break
                    size, text_format = matched
                    opener.count -= size
                    token.count -= size
                    pairs.append(_Pair(opener_index, index, text_format))
                    # Delimiters between the pair can no longer open
                    del openers[found + 1 :]
                    if opener.count == 0:
                        openers.pop(found)

            if token.can_open and token.count > 0:
                openers.append(index)

        return pairs

    def _find_opener(self, tokens: list[_Token], openers: list[int], closer: _Delimiter) -> Optional[int]:
        for position in range(len(openers) - 1, -1, -1):
            opener = tokens[openers[position]]
            assert isinstance(opener, _Delimiter)
            if opener.char != closer.char or opener.count == 0:
                continue
            if self._rule_for(opener, closer) is None:
                continue
            if _breaks_rule_of_three(opener, closer):
                continue
            return position
        return None

    def _rule_for(self, opener: _Delimiter, closer: _Delimiter) -> Optional[tuple[int, TextFormat]]:
        for size, rule in self._delimiter_rules.get(opener.char, []):
            if opener.count >= size and closer.count >= size and rule.text_format is not None:
                return size, rule.text_format
        return None

    # ------------------------------------------------------------------
    # Node construction
    # ------------------------------------------------------------------

    def _build_nodes(self, tokens: list[_Token], pairs: list[_Pair]) -> list[Node]:
        nodes: list[Node] = []
        for index, token in enumerate(tokens):
            formats = frozenset(pair.text_format for pair in pairs if pair.opener < index < pair.closer)
            if isinstance(token, _Literal):
                nodes.append(Text(unescape_markdown(token.raw), formats=formats))
            elif isinstance(token, _Code):
                nodes.append(Text(token.content, formats=formats | {token.text_format}))
            elif isinstance(token, _Replacement):
                nodes.append(token.node)
            elif token.count:
                nodes.append(Text(token.char * token.count, formats=formats))
        return nodes


def _run_length(text: str, start: int, char: str) -> int:
    end = start
    while end < len(text) and text[end] == char:
        end += 1
    return end - start


def _find_code_close(text: str, start: int, size: int, char: str) -> Optional[int]:
    position = start
    while position < len(text):
        if text[position] == char:
            run = _run_length(text, position, char)
            if run == size:
                return position
            position += run
        else:
            position += 1
    return None


def _strip_code_padding(content: str) -> str:
    # One space is stripped from each side when both are present
    if len(content) >= 2 and content.startswith(" ") and content.endswith(" ") and content.strip(" "):
        return content[1:-1]
    return content


def _breaks_rule_of_three(opener: _Delimiter, closer: _Delimiter) -> bool:
    if not (opener.can_close or closer.can_open):
        return False
    total = opener.length + closer.length
    return total % 3 == 0 and not (opener.length % 3 == 0 and closer.length % 3 == 0)


__all__ = ["InlineParser"]
