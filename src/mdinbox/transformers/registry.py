#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/transformers/registry.py
"""Ordered registry of markdown transformers.

The registry owns the ordered list of rules used by the serializer and the
deserializer. Order is significant: on export each block is offered to the
element rules in registry order until one accepts it, and on import the
first element rule whose ``starts_block`` accepts a line wins. The image rule
is appended after the standard rules so that the standard rules keep their
precedence.

Examples
--------
Build the default registry:

    >>> from mdinbox.transformers import default_registry
    >>> registry = default_registry()
    >>> registry.list_transformers()[-1]
    'image'

Register a custom rule ahead of an existing one:

    >>> registry.register(MyRule(), before="paragraph")

"""

from __future__ import annotations

import logging
import re
from typing import Iterator, NamedTuple, Optional

from mdinbox.transformers.base import MarkdownTransformer

logger = logging.getLogger(__name__)


class TriggerMatch(NamedTuple):
    """A text-match rule that accepted the text ending at its trigger."""

    transformer: MarkdownTransformer
    match: re.Match[str]

    @property
    def start(self) -> int:
        """Offset where the replaced span begins.

        A pattern may match context before the span it replaces; it then
        names the replaced span ``literal``.
        """
        if "literal" in self.match.re.groupindex:
            return self.match.start("literal")
        return self.match.start()


class TransformerRegistry:
    """Ordered collection of :class:`MarkdownTransformer` rules.

    Parameters
    ----------
    transformers : iterable of MarkdownTransformer, optional
        Initial rules, registered in the given order

    """

    def __init__(self, transformers: Optional[list[MarkdownTransformer]] = None) -> None:
        """Initialize the registry with optional initial rules."""
        self._transformers: list[MarkdownTransformer] = []
        for transformer in transformers or []:
            self.register(transformer)

    def register(self, transformer: MarkdownTransformer, before: Optional[str] = None) -> None:
        """Register a rule at the end, or ahead of the rule named ``before``.

        Parameters
        ----------
        transformer : MarkdownTransformer
            Rule to register
        before : str, optional
            Name of an existing rule that the new rule must precede

        Raises
        ------
        ValueError
            If the rule has no name
        KeyError
            If ``before`` names a rule that is not registered

        Notes
        -----
        If a rule with the same name is already registered, it is replaced
        and a warning is logged.

        """
        if not transformer.name:
            raise ValueError("Transformer must have a name to be registered")

        if transformer.name in self:
            logger.warning(f"Transformer '{transformer.name}' already registered, overwriting")
            self.unregister(transformer.name)

        if before is None:
            self._transformers.append(transformer)
        else:
            self._transformers.insert(self._index_of(before), transformer)
        logger.debug(f"Registered transformer: {transformer.name}")

    def unregister(self, name: str) -> bool:
        """Remove the rule called ``name``.

        Returns
        -------
        bool
            True if the rule was removed, False if it was not registered

        """
        for index, transformer in enumerate(self._transformers):
            if transformer.name == name:
                del self._transformers[index]
                logger.debug(f"Unregistered transformer: {name}")
                return True
        return False

    def get(self, name: str) -> MarkdownTransformer:
        """Return the rule called ``name``.

        Raises
        ------
        KeyError
            If the rule is not registered

        """
        return self._transformers[self._index_of(name)]

    def list_transformers(self) -> list[str]:
        """Return rule names in registry order."""
        return [transformer.name for transformer in self._transformers]

    @property
    def element_transformers(self) -> list[MarkdownTransformer]:
        """Return element rules in registry order."""
        return [t for t in self._transformers if t.is_element]

    @property
    def text_format_transformers(self) -> list[MarkdownTransformer]:
        """Return text-format rules in registry order."""
        return [t for t in self._transformers if t.is_text_format]

    @property
    def raw_text_formats(self) -> frozenset[str]:
        """Return the formats whose rules write their content verbatim."""
        return frozenset(t.text_format for t in self.text_format_transformers if t.text_format and not t.parse_content)

    @property
    def text_match_transformers(self) -> list[MarkdownTransformer]:
        """Return text-match rules in registry order."""
        return [t for t in self._transformers if t.is_text_match]

    @property
    def fallback_transformer(self) -> Optional[MarkdownTransformer]:
        """Return the element rule used when no other rule starts a block."""
        for transformer in self._transformers:
            if transformer.is_element and transformer.is_fallback:
                return transformer
        return None

    def triggers(self) -> frozenset[str]:
        """Return the set of trigger characters of the text-match rules."""
        return frozenset(t.trigger for t in self.text_match_transformers if t.trigger)

    def text_match_for_trigger(self, char: str) -> list[MarkdownTransformer]:
        """Return the text-match rules fired by ``char``, in registry order."""
        return [t for t in self.text_match_transformers if t.trigger == char]

    def match_trigger(self, char: str, text: str) -> Optional[TriggerMatch]:
        """Test the text-match rules fired by ``char`` typed after ``text``.

        Parameters
        ----------
        char : str
            The character just typed or scanned
        text : str
            Text since the previous boundary, not including ``char``

        Returns
        -------
        TriggerMatch or None
            The first rule whose pattern matches a span ending at the end of
            the candidate text, with its match object

        """
        candidate = text + char
        for transformer in self.text_match_for_trigger(char):
            if transformer.regexp is None:
                continue
            match = transformer.regexp.search(candidate)
            if match is not None and match.end() == len(candidate):
                return TriggerMatch(transformer, match)
        return None

    def _index_of(self, name: str) -> int:
        for index, transformer in enumerate(self._transformers):
            if transformer.name == name:
                return index
        raise KeyError(f"Transformer '{name}' not registered")

    def __contains__(self, name: object) -> bool:
        """Return True when a rule with this name is registered."""
        return any(transformer.name == name for transformer in self._transformers)

    def __iter__(self) -> Iterator[MarkdownTransformer]:
        """Iterate over rules in registry order."""
        return iter(list(self._transformers))

    def __len__(self) -> int:
        """Return the number of registered rules."""
        return len(self._transformers)


def default_registry() -> TransformerRegistry:
    """Build a registry holding the standard rules followed by the image rule."""
    from mdinbox.transformers.builtin import STANDARD_TRANSFORMERS
    from mdinbox.transformers.image import ImageTransformer

    registry = TransformerRegistry([factory() for factory in STANDARD_TRANSFORMERS])
    registry.register(ImageTransformer())
    return registry


__all__ = ["TransformerRegistry", "TriggerMatch", "default_registry"]
