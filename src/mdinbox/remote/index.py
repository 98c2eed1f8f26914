#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/remote/index.py
"""Listing, preview and search of documents in the remote store.

:meth:`DocumentIndex.list_documents` lists the configured folder, keeps the
markdown files, sorts them newest first (by name, descending) and yields one
:class:`DocumentEntry` per file with a short plain-text preview. A preview
that cannot be fetched is replaced by a placeholder and never fails the
listing.

"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Union

import httpx

from mdinbox.config import RemoteConfig
from mdinbox.constants import (
    EMPTY_PREVIEW_PLACEHOLDER,
    MARKDOWN_EXTENSION,
    PREVIEW_LENGTH,
    SAVE_ACTION_LABEL,
    UNAVAILABLE_PREVIEW_PLACEHOLDER,
)
from mdinbox.exceptions import (
    NotConfiguredError,
    PreviewUnavailableError,
    RemoteNotFoundError,
    SyncError,
    TransportError,
)
from mdinbox.remote.api import ContentsApiClient
from mdinbox.remote.sync import decode_content

logger = logging.getLogger(__name__)

_HEADING_MARKER = re.compile(r"^#{1,6}\s*", re.MULTILINE)
_EMPHASIS_MARKER = re.compile(r"\*\*|__|\*|`")
_EDGE_UNDERSCORE = re.compile(r"(?<!\w)_|_(?!\w)")
_NEWLINES = re.compile(r"\n+")


@dataclass(frozen=True)
class DocumentEntry:
    """A document in the remote folder.

    Parameters
    ----------
    name : str
        File name, e.g. ``20240102030405.md``
    path : str
        Repository path
    preview : str
        Plain-text preview or a placeholder

    """

    name: str
    path: str
    preview: str

    @property
    def stem(self) -> str:
        """Return the name without its extension."""
        return self.name[: -len(MARKDOWN_EXTENSION)] if self.name.endswith(MARKDOWN_EXTENSION) else self.name

    @property
    def reference(self) -> str:
        """Return the cross-reference token for this document."""
        return cross_reference_token(self.name)


@dataclass(frozen=True)
class PaletteItem:
    """An item of the command palette: the save action or a document."""

    label: str
    kind: str
    entry: Optional[DocumentEntry] = None


def make_preview(markdown: str, length: int = PREVIEW_LENGTH) -> str:
    """Derive a short plain-text preview from markdown.

    Heading markers and bold, italic and inline-code markers are removed,
    newline runs become single spaces, and the result is trimmed and
    truncated to ``length`` characters.

    Examples
    --------
        >>> make_preview("# Title\\n\\nSome **bold** text")
        'Title Some bold text'
        >>> make_preview("   ")
        '(empty document)'

    """
    text = _HEADING_MARKER.sub("", markdown)
    text = _EMPHASIS_MARKER.sub("", text)
    text = _EDGE_UNDERSCORE.sub("", text)
    text = _NEWLINES.sub(" ", text).strip()
    text = text[:length]
    return text or EMPTY_PREVIEW_PLACEHOLDER


def cross_reference_token(name: str) -> str:
    """Return ``[[name]]`` for a document file name, without its extension.

    Examples
    --------
        >>> cross_reference_token("20240102030405.md")
        '[[20240102030405]]'

    """
    stem = name[: -len(MARKDOWN_EXTENSION)] if name.endswith(MARKDOWN_EXTENSION) else name
    return f"[[{stem}]]"


def search(entries: Iterable[DocumentEntry], query: str) -> list[DocumentEntry]:
    """Filter entries by a case-insensitive substring of name or preview, keeping order."""
    needle = query.strip().lower()
    if not needle:
        return list(entries)
    return [entry for entry in entries if needle in entry.name.lower() or needle in entry.preview.lower()]


def palette_items(entries: Iterable[DocumentEntry], query: str = "") -> list[PaletteItem]:
    """Return the save action (when it matches ``query``) followed by matching documents."""
    needle = query.strip().lower()
    items: list[PaletteItem] = []
    if not needle or needle in SAVE_ACTION_LABEL.lower():
        items.append(PaletteItem(label=SAVE_ACTION_LABEL, kind="action"))
    items.extend(PaletteItem(label=entry.name, kind="document", entry=entry) for entry in search(entries, query))
    return items


class DocumentIndex:
    """Read-only view of the documents in the configured remote folder.

    Parameters
    ----------
    config : RemoteConfig
        Remote settings
    transport : httpx.BaseTransport, optional
        Custom transport for the HTTP client

    """

    def __init__(self, config: RemoteConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        """Initialize the index; no request is made until listing."""
        self.config = config
        self.transport = transport

    def list_documents(self) -> Iterator[DocumentEntry]:
        """Yield the folder's markdown documents, newest first, with previews.

        Each call performs a fresh listing; nothing is cached.

        Raises
        ------
        NotConfiguredError
            If the token or repository is missing
        RemoteRejectedError
            If listing the folder is rejected (a missing folder yields nothing)
        TransportError
            If the folder listing cannot be fetched

        """
        missing = self.config.missing_settings()
        if missing:
            raise NotConfiguredError(missing)

        folder = self.config.normalized_folder
        with ContentsApiClient(self.config, transport=self.transport) as api:
            try:
                listing = api.get_contents(folder)
            except RemoteNotFoundError:
                logger.info(f"Folder '{folder}' does not exist; no documents")
                return

            if not isinstance(listing, list):
                raise TransportError(f"Expected a directory listing for '{folder}'")

            files = [
                item
                for item in listing
                if isinstance(item, dict)
                and item.get("type") == "file"
                and str(item.get("name", "")).endswith(MARKDOWN_EXTENSION)
            ]
            files.sort(key=lambda item: str(item["name"]), reverse=True)
            logger.debug(f"Found {len(files)} documents in '{folder}'")

            for item in files:
                name = str(item["name"])
                path = str(item.get("path") or (f"{folder}/{name}" if folder else name))
                yield DocumentEntry(name=name, path=path, preview=self._preview(api, path))

    def fetch_document(self, path: str) -> str:
        """Fetch and decode the markdown stored at ``path``.

        Raises
        ------
        PreviewUnavailableError
            If the file cannot be fetched or decoded

        """
        with ContentsApiClient(self.config, transport=self.transport) as api:
            return self._fetch(api, path)

    def _preview(self, api: ContentsApiClient, path: str) -> str:
        try:
            return make_preview(self._fetch(api, path))
        except PreviewUnavailableError as e:
            logger.warning(f"{e.message}: {e.original_error}")
            return UNAVAILABLE_PREVIEW_PLACEHOLDER

    @staticmethod
    def _fetch(api: ContentsApiClient, path: str) -> str:
        try:
            data = api.get_contents(path)
        except SyncError as e:
            raise PreviewUnavailableError(path, original_error=e) from e
        content: Union[str, None] = data.get("content") if isinstance(data, dict) else None
        if content is None:
            raise PreviewUnavailableError(path, original_error=ValueError("response has no content"))
        try:
            return decode_content(content)
        except ValueError as e:
            raise PreviewUnavailableError(path, original_error=e) from e


__all__ = [
    "DocumentEntry",
    "DocumentIndex",
    "PaletteItem",
    "cross_reference_token",
    "make_preview",
    "palette_items",
    "search",
]
