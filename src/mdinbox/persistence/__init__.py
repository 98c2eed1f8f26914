#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/persistence/__init__.py
"""Local persistence: durable slots and the autosave loop."""

from mdinbox.persistence.autosave import AutosaveLoop, ScheduledTask, SessionState
from mdinbox.persistence.slots import DurableSlot, FileSlot, MemorySlot

__all__ = ["AutosaveLoop", "DurableSlot", "FileSlot", "MemorySlot", "ScheduledTask", "SessionState"]
