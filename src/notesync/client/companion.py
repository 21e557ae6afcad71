"""Companion device bridge.

This module provides:
- CompanionBridge: Turns companion device messages into local notes and
  tracks companion reachability

A companion message is handled exactly like a freshly created note:
new id, timestamps from the message, saved locally, then pushed if
sync is enabled.
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import TYPE_CHECKING, Any

from notesync.client.events import NoteReceived, ReachabilityChanged
from notesync.core.types import Note

if TYPE_CHECKING:
    from notesync.client.events import EventBus
    from notesync.client.state import LocalNoteStore
    from notesync.client.sync.engine import SyncEngine

logger = logging.getLogger(__name__)


def parse_message(payload: Any) -> tuple[str, str, float]:
    """Validate a companion message.

    Args:
        payload: Decoded message {title: str, content: str, timestamp: epoch seconds}.

    Returns:
        (title, content, timestamp)

    Raises:
        ValueError: If the payload is malformed.
    """
    if not isinstance(payload, dict):
        raise ValueError("Companion message must be an object")

    title = payload.get("title")
    content = payload.get("content")
    timestamp = payload.get("timestamp")

    if not isinstance(title, str):
        raise ValueError("Companion message 'title' must be a string")
    if not isinstance(content, str):
        raise ValueError("Companion message 'content' must be a string")
    if isinstance(timestamp, bool) or not isinstance(timestamp, Real):
        raise ValueError("Companion message 'timestamp' must be a number")
    try:
        seconds = float(timestamp)
    except OverflowError as e:
        raise ValueError("Companion message 'timestamp' is out of range") from e
    if not math.isfinite(seconds):
        raise ValueError("Companion message 'timestamp' must be finite")

    return title, content, seconds


class CompanionBridge:
    """Receives notes from a paired companion device."""

    def __init__(self, local: LocalNoteStore, engine: SyncEngine, events: EventBus) -> None:
        self._local = local
        self._engine = engine
        self._events = events
        self._reachable = False

    @property
    def is_reachable(self) -> bool:
        """Last known companion reachability. Used by UI only."""
        return self._reachable

    def set_reachable(self, reachable: bool) -> None:
        """Record companion reachability, emitting an event on change."""
        if reachable == self._reachable:
            return
        self._reachable = reachable
        logger.info("Companion %s", "reachable" if reachable else "unreachable")
        self._events.emit(ReachabilityChanged(reachable=reachable))

    async def receive(self, payload: Any) -> Note:
        """Store a note sent by the companion device.

        Raises:
            ValueError: If the payload is malformed (nothing is stored).
            PersistenceError: If the note could not be saved locally.
        """
        title, content, timestamp = parse_message(payload)
        note = Note.from_companion(title, content, timestamp)

        await self._local.add_note(note)
        logger.info(f"Received note {note.id} from companion")
        self._events.emit(NoteReceived(title=title, content=content, timestamp=timestamp))

        # Outcome is tracked in the status map
        await self._engine.push(note)
        return note
