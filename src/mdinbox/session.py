#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/session.py
"""Editor session: the live document and its persistence and sync state.

An :class:`EditorSession` owns the document being edited together with the
transformer registry, the serializer and deserializer, the durable slot, the
autosave loop and the sync client. External editing surfaces drive it
through the :class:`EditorHandle` returned by :meth:`EditorSession.handle`.

While a remote save is in flight the session is *saving-locked*: reading and
serializing the document still works, but every mutation raises
:class:`~mdinbox.exceptions.SessionLockedError`.

Examples
--------
    >>> session = EditorSession()
    >>> session.load_markdown("# Notes\\n\\nfirst idea")
    >>> _ = session.handle().insert_literal(" [[20240102030405]]")
    >>> session.serialize()
    '# Notes\\n\\nfirst idea [[20240102030405]]'

"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Iterator, Optional

import httpx

from mdinbox.ast import Document, Image, Node, Paragraph, Text
from mdinbox.config import SessionOptions
from mdinbox.exceptions import NotConfiguredError, SessionLockedError
from mdinbox.markdown import MarkdownDeserializer, MarkdownSerializer
from mdinbox.persistence import AutosaveLoop, DurableSlot, FileSlot, MemorySlot, SessionState
from mdinbox.remote import DocumentEntry, DocumentIndex, SaveReceipt, SyncClient
from mdinbox.transformers import TransformerRegistry, default_registry
from mdinbox.utils.images import encode_image_data_uri, pasted_image_alt_text

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


class EditorHandle:
    """Callbacks exposed to the editing surface.

    Parameters
    ----------
    session : EditorSession
        Session whose document the handle edits
    on_focus : callable, optional
        Called by :meth:`focus`; hosts use it to move the caret back into
        the editor

    """

    def __init__(self, session: EditorSession, on_focus: Optional[Callable[[], None]] = None) -> None:
        """Initialize the handle."""
        self._session = session
        self._on_focus = on_focus

    def serialize_now(self) -> str:
        """Return the current document as markdown."""
        return self._session.serialize()

    def clear(self) -> None:
        """Remove all content from the document."""
        self._session.clear()

    def insert_literal(self, text: str) -> Text:
        """Insert ``text`` as a plain text run at the end of the document."""
        return self._session.insert_literal(text)

    def focus(self) -> None:
        """Return focus to the editing surface."""
        if self._on_focus is not None:
            self._on_focus()


class EditorSession:
    """Own a live document and keep it persisted locally and remotely.

    Parameters
    ----------
    options : SessionOptions, optional
        Session settings; defaults keep the draft in memory
    registry : TransformerRegistry, optional
        Transformer rules; defaults to :func:`~mdinbox.transformers.default_registry`
    slot : DurableSlot, optional
        Durable slot for the cached draft; defaults to a :class:`FileSlot`
        under ``options.data_dir`` or a :class:`MemorySlot` when unset
    sync_client : SyncClient, optional
        Client for remote saves; built from ``options.remote`` when absent
    transport : httpx.BaseTransport, optional
        Custom transport for remote requests
    clock : callable, default = datetime.now
        Source of wall-clock time for object names and pasted image alt text
    on_focus : callable, optional
        Focus callback passed to the handle

    """

    def __init__(
        self,
        options: Optional[SessionOptions] = None,
        registry: Optional[TransformerRegistry] = None,
        slot: Optional[DurableSlot] = None,
        sync_client: Optional[SyncClient] = None,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], datetime] = datetime.now,
        on_focus: Optional[Callable[[], None]] = None,
    ) -> None:
        """Initialize the session with an empty document."""
        self.options = options or SessionOptions()
        self.registry = registry or default_registry()
        self.serializer = MarkdownSerializer(self.registry)
        self.deserializer = MarkdownDeserializer(self.registry)
        self.document = Document()
        self.clock = clock
        self.transport = transport

        if slot is None:
            slot = FileSlot(self.options.data_dir) if self.options.data_dir is not None else MemorySlot()
        self.slot = slot

        self._document_lock = threading.RLock()
        self._save_gate = threading.Lock()
        self._state = SessionState.IDLE
        self._listeners: list[StateListener] = []

        self.autosave = AutosaveLoop(
            self.serialize, self.slot, interval=self.options.autosave_interval, lock=self._document_lock
        )
        self.sync_client = sync_client or SyncClient(self.options.remote, transport=transport, clock=clock)
        self._handle = EditorHandle(self, on_focus=on_focus)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Return the current session state."""
        return self._state

    @property
    def read_only(self) -> bool:
        """Return True while editing is disabled by an in-flight save."""
        return self.state is SessionState.SAVING_LOCKED

    def add_state_listener(self, listener: StateListener) -> None:
        """Register a listener called on every state change."""
        self._listeners.append(listener)

    def handle(self) -> EditorHandle:
        """Return the handle exposed to the editing surface."""
        return self._handle

    # ------------------------------------------------------------------
    # Document access
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        """Return the current document as markdown."""
        with self._document_lock:
            return self.serializer.serialize(self.document)

    def is_empty(self) -> bool:
        """Return True when the document serializes to nothing."""
        return self.serialize() == ""

    def load_markdown(self, text: str) -> None:
        """Replace the document content with parsed markdown.

        Raises
        ------
        SessionLockedError
            If a save is in flight

        """
        with self._document_lock:
            self._ensure_editable("load markdown")
            parsed = self.deserializer.deserialize(text)
            if self.deserializer.degradations:
                logger.debug(f"Loaded markdown with {len(self.deserializer.degradations)} degradations")
            self._replace_children(parsed)

    def clear(self) -> None:
        """Remove all content from the document.

        Raises
        ------
        SessionLockedError
            If a save is in flight

        """
        with self._document_lock:
            self._ensure_editable("clear the document")
            self.document.clear()

    def insert_literal(self, text: str) -> Text:
        """Append ``text`` as a plain run to the last paragraph.

        A new paragraph is created when the document does not end with one.
        The text is kept literally and is never matched against transformer
        patterns.

        Raises
        ------
        SessionLockedError
            If a save is in flight

        """
        with self._document_lock:
            self._ensure_editable("insert text")
            run = Text(text)
            last = self.document.children[-1] if self.document.children else None
            if isinstance(last, Paragraph):
                last.append(run)
            else:
                self.document.append(Paragraph(children=[run]))
            return run

    def insert_node(self, node: Node) -> Node:
        """Append a block node to the document.

        Raises
        ------
        SessionLockedError
            If a save is in flight

        """
        with self._document_lock:
            self._ensure_editable("insert a node")
            return self.document.append(node)

    def insert_pasted_image(self, data: bytes, mime_type: Optional[str] = None) -> Image:
        """Embed pasted image bytes as an image block.

        Parameters
        ----------
        data : bytes
            Raw image content
        mime_type : str, optional
            MIME type reported by the clipboard

        Returns
        -------
        Image
            The new image node, with a ``data:`` URI source and natural size

        Raises
        ------
        ValidationError
            If ``data`` is not an image
        SessionLockedError
            If a save is in flight

        """
        source = encode_image_data_uri(data, mime_type)
        image = Image(source=source, alt_text=pasted_image_alt_text(self.clock()))
        self.insert_node(image)
        logger.debug(f"Inserted pasted image ({len(data)} bytes)")
        return image

    # ------------------------------------------------------------------
    # Persistence and sync
    # ------------------------------------------------------------------

    def hydrate(self) -> bool:
        """Restore the cached draft into an empty document, once per session."""
        with self._document_lock:
            return self.autosave.hydrate(self.is_empty, self.load_markdown)

    def save_remote(self) -> Optional[SaveReceipt]:
        """Save the document as a new remote object.

        On success the document and the durable slot are cleared.
        State listeners hear SAVING_LOCKED and then IDLE; IDLE is delivered
        before the save gate opens, so a save requested from a listener is
        dropped.

        Returns
        -------
        SaveReceipt or None
            Receipt of the new object, or None when the request was dropped
            because another save is in flight

        Raises
        ------
        NotConfiguredError
            If the token or repository is missing
        RemoteRejectedError
            If the server rejects the save; the document is kept
        TransportError
            If the server cannot be reached; the document is kept

        """
        missing = self.sync_client.config.missing_settings()
        if missing:
            raise NotConfiguredError(missing)

        if not self._save_gate.acquire(blocking=False):
            logger.warning("Save already in progress; request dropped")
            return None

        try:
            self._set_state(SessionState.SAVING_LOCKED)
            with self._document_lock:
                markdown = self.serializer.serialize(self.document)
            receipt = self.sync_client.save(markdown)
            if receipt is not None:
                with self._document_lock:
                    self.document.clear()
                    self.slot.remove()
                logger.info(f"Document saved as {receipt.path}; editor cleared")
            return receipt
        finally:
            # Listeners hear IDLE before another save can take the gate
            try:
                self._set_state(SessionState.IDLE)
            finally:
                self._save_gate.release()

    def documents(self) -> Iterator[DocumentEntry]:
        """Yield the remote documents, newest first, with previews."""
        return DocumentIndex(self.options.remote, transport=self.transport).list_documents()

    def select_document(self, entry: DocumentEntry) -> Text:
        """Insert the cross-reference token of ``entry`` and refocus the editor."""
        run = self._handle.insert_literal(entry.reference)
        self._handle.focus()
        return run

    def start(self) -> None:
        """Hydrate from the durable slot and start the autosave loop."""
        self.hydrate()
        self.autosave.start()

    def close(self) -> None:
        """Stop the autosave loop after one final persistence pass."""
        self.autosave.stop()
        self.autosave.tick()
        logger.debug("Session closed")

    def __enter__(self) -> EditorSession:
        """Start the session."""
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Close the session."""
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_editable(self, operation: str) -> None:
        if self.read_only:
            raise SessionLockedError(operation)

    def _replace_children(self, source: Document) -> None:
        children = list(source.children)
        source.clear()
        self.document.clear()
        self.document.extend(children)

    def _set_state(self, state: SessionState) -> None:
        with self._document_lock:
            self._state = state
        for listener in self._listeners:
            listener(state)


__all__ = ["EditorHandle", "EditorSession", "StateListener"]
