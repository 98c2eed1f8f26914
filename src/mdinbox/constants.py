#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for the mdinbox library.

This module centralizes hardcoded values and default configuration constants
used across mdinbox, so that the document engine, the persistence loop and
the remote client agree on formats, keys and limits.

Constants are organized by category:
1. Type Definitions - Literal types and type aliases
2. Document Model - Node model limits and sentinels
3. Markdown Formatting - Serializer conventions
4. Local Persistence - Autosave cadence and slot naming
5. Remote Store - Content API endpoints, defaults and headers
6. Remote Index - Preview derivation settings
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

TextFormat = Literal["bold", "italic", "strikethrough", "code"]
NaturalSize = Literal["inherit"]
ListType = Literal["bullet", "number"]

# =============================================================================
# Document Model
# =============================================================================

# Sentinel meaning "no explicit width/height set" on image nodes
NATURAL_SIZE: NaturalSize = "inherit"

MIN_HEADING_LEVEL = 1
MAX_HEADING_LEVEL = 3

# Deepest quote or list nesting imported from markdown; deeper content stays literal
MAX_NESTING_DEPTH = 64

# Version stamped into exported node shapes
NODE_EXPORT_VERSION = 1

# Canonical ordering of text formats, outermost first when serialized
TEXT_FORMAT_ORDER: tuple[TextFormat, ...] = ("bold", "italic", "strikethrough", "code")

# Formats whose content is written verbatim, whitespace included
RAW_TEXT_FORMATS: frozenset[TextFormat] = frozenset({"code"})

# =============================================================================
# Markdown Formatting
# =============================================================================

BLOCK_SEPARATOR = "\n\n"
DEFAULT_BULLET_MARKER = "-"
CODE_FENCE = "```"

# CommonMark backslash-escapable characters
ESCAPABLE_CHARACTERS = frozenset("!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~")

MARKDOWN_EXTENSION = ".md"

# =============================================================================
# Local Persistence
# =============================================================================

DEFAULT_AUTOSAVE_INTERVAL = 1.0
EDITOR_CONTENT_KEY = "editorContent"
DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "mdinbox"

# =============================================================================
# Remote Store
# =============================================================================

DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_REMOTE_FOLDER = "/inbox"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "mdinbox/0.1 (markdown inbox client)"
GITHUB_ACCEPT_HEADER = "application/vnd.github.v3+json"
REPOSITORY_LIST_PAGE_SIZE = 100

# Remote object names are local wall-clock timestamps without separators
REMOTE_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
COMMIT_MESSAGE_TEMPLATE = "Add document {filename}"

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "mdinbox"
CONFIG_FILENAME = "config.toml"

ENV_TOKEN = "MDINBOX_TOKEN"
ENV_REPO = "MDINBOX_REPO"
ENV_FOLDER = "MDINBOX_FOLDER"
ENV_API_BASE = "MDINBOX_API_BASE"
ENV_DATA_DIR = "MDINBOX_DATA_DIR"
ENV_CONFIG = "MDINBOX_CONFIG"

# =============================================================================
# Remote Index
# =============================================================================

PREVIEW_LENGTH = 100
EMPTY_PREVIEW_PLACEHOLDER = "(empty document)"
UNAVAILABLE_PREVIEW_PLACEHOLDER = "(preview unavailable)"
SAVE_ACTION_LABEL = "Save"
