#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/persistence/slots.py
"""Durable single-value storage for the cached draft.

A slot holds one string under one key. Absent and empty values both mean
"no cached draft".
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from mdinbox.constants import DEFAULT_DATA_DIR, EDITOR_CONTENT_KEY

logger = logging.getLogger(__name__)


class DurableSlot(ABC):
    """Storage for a single string value under a fixed key."""

    key: str

    @abstractmethod
    def get(self) -> Optional[str]:
        """Return the stored value, or None when nothing is stored."""

    @abstractmethod
    def set(self, value: str) -> None:
        """Overwrite the stored value."""

    @abstractmethod
    def remove(self) -> None:
        """Delete the stored value; removing an absent value is a no-op."""

    def has_content(self) -> bool:
        """Return True when a non-empty value is stored."""
        return bool(self.get())


class MemorySlot(DurableSlot):
    """In-process slot, used by tests and by sessions without a data directory."""

    def __init__(self, key: str = EDITOR_CONTENT_KEY, value: Optional[str] = None) -> None:
        """Initialize the slot with an optional value."""
        self.key = key
        self._value = value
        self._lock = threading.Lock()

    def get(self) -> Optional[str]:
        """Return the stored value."""
        with self._lock:
            return self._value

    def set(self, value: str) -> None:
        """Store ``value``."""
        with self._lock:
            self._value = value

    def remove(self) -> None:
        """Clear the stored value."""
        with self._lock:
            self._value = None


class FileSlot(DurableSlot):
    """Slot stored as a UTF-8 file named after its key.

    Writes go to a temporary file in the same directory which then replaces
    the slot file, so readers never see a partial value.

    Parameters
    ----------
    directory : str or Path, optional
        Directory holding the slot file; defaults to ``~/.local/share/mdinbox``
    key : str, default = "editorContent"
        Slot key, used as the file name

    """

    def __init__(self, directory: Union[str, Path, None] = None, key: str = EDITOR_CONTENT_KEY) -> None:
        """Initialize the slot location."""
        self.key = key
        self.directory = Path(directory) if directory is not None else DEFAULT_DATA_DIR
        self.path = self.directory / f"{key}.md"

    def get(self) -> Optional[str]:
        """Read the slot file, returning None when it does not exist."""
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, value: str) -> None:
        """Atomically replace the slot file with ``value``."""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.key}-", suffix=".tmp", dir=self.directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(value)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote {len(value)} characters to {self.path}")

    def remove(self) -> None:
        """Delete the slot file if present."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.debug(f"Removed {self.path}")


__all__ = ["DurableSlot", "FileSlot", "MemorySlot"]
