#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/persistence/autosave.py
"""Periodic local persistence of the live document.

Every interval the autosave loop serializes the document and either
overwrites the durable slot (non-empty markdown) or removes it (empty
markdown). At session start the slot is read once by :meth:`AutosaveLoop.hydrate`,
before the loop starts writing, and loaded into the document only if the
document is still empty.

"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from mdinbox.constants import DEFAULT_AUTOSAVE_INTERVAL
from mdinbox.persistence.slots import DurableSlot

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Editing state of a session."""

    IDLE = "idle"
    SAVING_LOCKED = "saving-locked"


class ScheduledTask:
    """Run a callback at a fixed interval on a background thread.

    The task is started and stopped explicitly by its owner and does not
    depend on any UI lifecycle. Starting twice or stopping twice is a no-op.

    Parameters
    ----------
    interval : float
        Seconds between runs
    callback : callable
        Function called on every run
    name : str, default = "mdinbox-scheduled-task"
        Thread name

    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "mdinbox-scheduled-task"):
        """Initialize the task without starting it."""
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.callback = callback
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        """Return True while the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread."""
        with self._lock:
            if self._thread is not None:
                logger.debug(f"{self.name} already started")
                return
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
        logger.debug(f"Started {self.name} every {self.interval}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the thread to stop and wait for it to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.debug(f"Stopped {self.name}")

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception(f"{self.name} run failed")


class AutosaveLoop:
    """Mirror the document into a durable slot.

    Parameters
    ----------
    serialize : callable
        Returns the current document as markdown; called on every tick
    slot : DurableSlot
        Destination of the cached draft
    interval : float, default = 1.0
        Seconds between ticks
    lock : threading.RLock, optional
        Lock held for a whole tick, usually the session document lock

    """

    def __init__(
        self,
        serialize: Callable[[], str],
        slot: DurableSlot,
        interval: float = DEFAULT_AUTOSAVE_INTERVAL,
        lock: Optional[threading.RLock] = None,
    ):
        """Initialize the loop without starting it."""
        self.serialize = serialize
        self.slot = slot
        self.hydrated = False
        self._lock = lock or threading.RLock()
        self._task = ScheduledTask(interval, self.tick, name="mdinbox-autosave")

    @property
    def running(self) -> bool:
        """Return True while the loop is running."""
        return self._task.running

    def tick(self) -> None:
        """Perform one persistence pass."""
        with self._lock:
            markdown = self.serialize()
            if markdown:
                self.slot.set(markdown)
            else:
                self.slot.remove()

    def hydrate(self, is_document_empty: Callable[[], bool], load: Callable[[str], None]) -> bool:
        """Load the cached draft into an empty document, at most once.

        Parameters
        ----------
        is_document_empty : callable
            Returns True when the live document has no content
        load : callable
            Loads markdown into the live document

        Returns
        -------
        bool
            True if the cached draft was loaded

        """
        if self.hydrated:
            return False
        self.hydrated = True

        cached = self.slot.get()
        if not cached:
            return False
        if not is_document_empty():
            logger.info("Document already has content; cached draft not loaded")
            return False
        load(cached)
        logger.info(f"Restored cached draft ({len(cached)} characters)")
        return True

    def start(self) -> None:
        """Start ticking in the background."""
        self._task.start()

    def stop(self) -> None:
        """Stop ticking."""
        self._task.stop()


__all__ = ["AutosaveLoop", "ScheduledTask", "SessionState"]
