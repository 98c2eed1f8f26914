#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/remote/__init__.py
"""Remote store access: contents API client, sync client and document index."""

from mdinbox.remote.api import ContentsApiClient, create_api_client, list_repositories
from mdinbox.remote.index import (
    DocumentEntry,
    DocumentIndex,
    PaletteItem,
    cross_reference_token,
    make_preview,
    palette_items,
    search,
)
from mdinbox.remote.sync import (
    SaveReceipt,
    SyncClient,
    build_remote_path,
    decode_content,
    encode_content,
    format_timestamp,
)

__all__ = [
    "ContentsApiClient",
    "DocumentEntry",
    "DocumentIndex",
    "PaletteItem",
    "SaveReceipt",
    "SyncClient",
    "build_remote_path",
    "create_api_client",
    "cross_reference_token",
    "decode_content",
    "encode_content",
    "format_timestamp",
    "list_repositories",
    "make_preview",
    "palette_items",
    "search",
]
