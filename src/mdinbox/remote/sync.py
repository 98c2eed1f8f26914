#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/remote/sync.py
"""Save documents to the remote store.

Each save creates a new object named after the local wall-clock time,
``{folder}/{YYYYMMDDHHMMSS}.md``, in a single PUT request. At most one save
is in flight; a save requested while another is running is dropped and
``None`` is returned. Listeners are told when the client enters and leaves
the saving state so that editing can be locked meanwhile.

"""

from __future__ import annotations

import base64
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import httpx

from mdinbox.config import RemoteConfig, normalize_folder
from mdinbox.constants import COMMIT_MESSAGE_TEMPLATE, MARKDOWN_EXTENSION, REMOTE_TIMESTAMP_FORMAT
from mdinbox.exceptions import NotConfiguredError, SyncError
from mdinbox.persistence.autosave import SessionState
from mdinbox.remote.api import ContentsApiClient

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


@dataclass(frozen=True)
class SaveReceipt:
    """Result of a successful save.

    Parameters
    ----------
    path : str
        Repository path of the new object
    filename : str
        File name of the new object
    message : str
        Commit message used
    sha : str or None
        Object SHA reported by the server, when present

    """

    path: str
    filename: str
    message: str
    sha: Optional[str] = None


def encode_content(markdown: str) -> str:
    """Return the base64 encoding of the UTF-8 bytes of ``markdown``.

    Examples
    --------
        >>> encode_content("héllo")
        'aMOpbGxv'

    """
    return base64.b64encode(markdown.encode("utf-8")).decode("ascii")


def decode_content(encoded: str) -> str:
    """Decode base64 content (line breaks allowed) into UTF-8 text."""
    return base64.b64decode("".join(encoded.split())).decode("utf-8")


def format_timestamp(moment: datetime) -> str:
    """Format ``moment`` as ``YYYYMMDDHHMMSS``."""
    return moment.strftime(REMOTE_TIMESTAMP_FORMAT)


def build_remote_path(folder: str, filename: str) -> str:
    """Join ``folder`` and ``filename`` into a repository path.

    The folder is normalized with :func:`~mdinbox.config.normalize_folder`
    and an empty folder yields the bare filename.

    Examples
    --------
        >>> build_remote_path("/inbox", "20240102030405.md")
        'inbox/20240102030405.md'
        >>> build_remote_path("", "20240102030405.md")
        '20240102030405.md'

    """
    folder = normalize_folder(folder)
    return f"{folder}/{filename}" if folder else filename


class SyncClient:
    """Create documents in the remote store.

    Parameters
    ----------
    config : RemoteConfig
        Remote settings
    transport : httpx.BaseTransport, optional
        Custom transport for the HTTP client
    clock : callable, default = datetime.now
        Source of the local wall-clock time used for object names
    state_listener : callable, optional
        Called with ``SAVING_LOCKED`` when a save starts and ``IDLE`` when
        it ends

    """

    def __init__(
        self,
        config: RemoteConfig,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], datetime] = datetime.now,
        state_listener: Optional[StateListener] = None,
    ) -> None:
        """Initialize the client; no request is made until :meth:`save`."""
        self.config = config
        self.transport = transport
        self.clock = clock
        self._listeners: list[StateListener] = [state_listener] if state_listener else []
        self._in_flight = threading.Lock()
        self._saving = False

    @property
    def is_saving(self) -> bool:
        """Return True while a save is in flight."""
        return self._saving

    def add_state_listener(self, listener: StateListener) -> None:
        """Register a listener for saving-state changes."""
        self._listeners.append(listener)

    def save(self, content: str) -> Optional[SaveReceipt]:
        """Create a new remote object holding ``content``.

        Listeners hear IDLE before the next save may start, so a save
        requested from a listener is dropped.

        Parameters
        ----------
        content : str
            Markdown to store

        Returns
        -------
        SaveReceipt or None
            Receipt on success; None when dropped because another save is in
            flight

        Raises
        ------
        NotConfiguredError
            If the token or repository is missing
        RemoteRejectedError
            If the server answers with an error status
        TransportError
            If the server cannot be reached

        """
        missing = self.config.missing_settings()
        if missing:
            raise NotConfiguredError(missing)

        if not self._in_flight.acquire(blocking=False):
            logger.warning("Save already in progress; request dropped")
            return None

        try:
            self._set_saving(True)
            return self._put(content)
        finally:
            # Listeners hear IDLE before another save can start
            try:
                self._set_saving(False)
            finally:
                self._in_flight.release()

    def _put(self, content: str) -> SaveReceipt:
        filename = f"{format_timestamp(self.clock())}{MARKDOWN_EXTENSION}"
        path = build_remote_path(self.config.folder, filename)
        message = COMMIT_MESSAGE_TEMPLATE.format(filename=filename)

        logger.info(f"Saving document to {self.config.repository}:{path}")
        try:
            with ContentsApiClient(self.config, transport=self.transport) as api:
                body = api.put_contents(path, message, encode_content(content))
        except SyncError as e:
            logger.error(f"Save to {path} failed: {e.message}")
            raise

        sha = body.get("content", {}).get("sha") if isinstance(body.get("content"), dict) else None
        logger.info(f"Saved {path}")
        return SaveReceipt(path=path, filename=filename, message=message, sha=sha)

    def _set_saving(self, saving: bool) -> None:
        self._saving = saving
        state = SessionState.SAVING_LOCKED if saving else SessionState.IDLE
        for listener in self._listeners:
            listener(state)


__all__ = [
    "SaveReceipt",
    "StateListener",
    "SyncClient",
    "build_remote_path",
    "decode_content",
    "encode_content",
    "format_timestamp",
]
