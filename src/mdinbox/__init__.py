"""mdinbox - a markdown inbox: draft locally, file drafts into a repository folder.

mdinbox keeps a rich-text document model that round-trips to markdown through
an ordered registry of transformer rules, mirrors the live document into a
durable local slot every second, and saves finished drafts as timestamped
files in a folder of a repository reachable through a GitHub-compatible
contents API.

Key Features
------------
- Document tree of paragraphs, headings, lists, quotes, code blocks, links,
  images and formatted text runs
- Bidirectional markdown conversion driven by a single transformer registry
- Embedded images, including pasted images as ``data:`` URIs
- Autosave of the current draft and restore on start
- Remote save, listing with previews, search and ``[[name]]`` cross-references

Examples
--------
Round-trip markdown through the document model:

    >>> from mdinbox import deserialize_markdown, serialize_markdown
    >>> doc = deserialize_markdown("# Notes\\n\\n![cat](http://x/y.png)")
    >>> serialize_markdown(doc)
    '# Notes\\n\\n![cat](http://x/y.png)'

Drive an editor session:

    >>> from mdinbox import EditorSession
    >>> session = EditorSession()
    >>> session.load_markdown("first **idea**")
    >>> session.serialize()
    'first **idea**'

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# Check Python version before any imports
import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "mdinbox requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "0.1.0"

from typing import TYPE_CHECKING, Any

from mdinbox.exceptions import (
    ConfigurationError,
    MdInboxError,
    NodeError,
    NotConfiguredError,
    PreviewUnavailableError,
    RemoteNotFoundError,
    RemoteRejectedError,
    SessionLockedError,
    SyncError,
    TransportError,
    ValidationError,
)

if TYPE_CHECKING:
    from mdinbox import ast, transformers  # noqa: F401
    from mdinbox.config import RemoteConfig, SessionOptions  # noqa: F401
    from mdinbox.markdown import (  # noqa: F401
        MarkdownDeserializer,
        MarkdownSerializer,
        deserialize_markdown,
        serialize_markdown,
    )
    from mdinbox.remote import DocumentIndex, SyncClient  # noqa: F401
    from mdinbox.session import EditorHandle, EditorSession  # noqa: F401
    from mdinbox.transformers import TransformerRegistry, default_registry  # noqa: F401

_lazy_modules = {
    "ast": "mdinbox.ast",
    "transformers": "mdinbox.transformers",
}

_lazy_attributes = {
    "RemoteConfig": ("mdinbox.config", "RemoteConfig"),
    "SessionOptions": ("mdinbox.config", "SessionOptions"),
    "MarkdownDeserializer": ("mdinbox.markdown", "MarkdownDeserializer"),
    "MarkdownSerializer": ("mdinbox.markdown", "MarkdownSerializer"),
    "deserialize_markdown": ("mdinbox.markdown", "deserialize_markdown"),
    "serialize_markdown": ("mdinbox.markdown", "serialize_markdown"),
    "DocumentIndex": ("mdinbox.remote", "DocumentIndex"),
    "SyncClient": ("mdinbox.remote", "SyncClient"),
    "EditorHandle": ("mdinbox.session", "EditorHandle"),
    "EditorSession": ("mdinbox.session", "EditorSession"),
    "TransformerRegistry": ("mdinbox.transformers", "TransformerRegistry"),
    "default_registry": ("mdinbox.transformers", "default_registry"),
}

__all__ = [
    "__version__",
    # Editor core
    "EditorHandle",
    "EditorSession",
    "MarkdownDeserializer",
    "MarkdownSerializer",
    "TransformerRegistry",
    "default_registry",
    "deserialize_markdown",
    "serialize_markdown",
    # Remote store
    "DocumentIndex",
    "RemoteConfig",
    "SessionOptions",
    "SyncClient",
    # Exceptions
    "ConfigurationError",
    "MdInboxError",
    "NodeError",
    "NotConfiguredError",
    "PreviewUnavailableError",
    "RemoteNotFoundError",
    "RemoteRejectedError",
    "SessionLockedError",
    "SyncError",
    "TransportError",
    "ValidationError",
    # Submodules
    "ast",
    "transformers",
]


def __getattr__(name: str) -> Any:
    """Lazy load submodules and public classes on first access.

    Parameters
    ----------
    name : str
        The name of the attribute being accessed

    Returns
    -------
    Any
        The requested module, class, or function

    Raises
    ------
    AttributeError
        If the attribute is not found and is not a lazy-loadable item

    """
    import importlib

    if name in _lazy_modules:
        module = importlib.import_module(_lazy_modules[name])
        globals()[name] = module
        return module

    if name in _lazy_attributes:
        module_path, attribute = _lazy_attributes[name]
        value = getattr(importlib.import_module(module_path), attribute)
        globals()[name] = value
        return value

    raise AttributeError(f"module 'mdinbox' has no attribute '{name}'")
