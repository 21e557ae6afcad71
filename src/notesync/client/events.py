"""In-process event bus for sync lifecycle events.

This module provides:
- One frozen dataclass per event kind (SyncStarted, SyncCompleted, ...)
- EventBus: Synchronous publish/subscribe keyed by event class

Handlers are typed by the event class they subscribe to:

    bus = EventBus()
    bus.on(NoteSynced, lambda event: print(event.note.title))
    bus.emit(NoteSynced(note))

Handlers run synchronously in registration order. A failing handler is
logged and does not stop the others.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, TypeVar

if TYPE_CHECKING:
    from notesync.core.types import Note

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """Closed set of event kinds."""

    SYNC_STARTED = "sync-started"
    SYNC_COMPLETED = "sync-completed"
    SYNC_FAILED = "sync-failed"
    NOTE_SYNCED = "note-synced"
    REACHABILITY_CHANGED = "reachability-changed"
    NOTE_RECEIVED = "note-received"


@dataclass(frozen=True)
class Event:
    """Base class for bus events."""

    kind: ClassVar[EventKind]


@dataclass(frozen=True)
class SyncStarted(Event):
    """A push-all or pull started."""

    kind: ClassVar[EventKind] = EventKind.SYNC_STARTED


@dataclass(frozen=True)
class SyncCompleted(Event):
    """A push-all or pull finished."""

    kind: ClassVar[EventKind] = EventKind.SYNC_COMPLETED


@dataclass(frozen=True)
class SyncFailed(Event):
    """A push-all or pull could not run or could not finish."""

    kind: ClassVar[EventKind] = EventKind.SYNC_FAILED
    error: str


@dataclass(frozen=True)
class NoteSynced(Event):
    """A note was written to the remote store."""

    kind: ClassVar[EventKind] = EventKind.NOTE_SYNCED
    note: Note


@dataclass(frozen=True)
class ReachabilityChanged(Event):
    """The companion device became reachable or unreachable."""

    kind: ClassVar[EventKind] = EventKind.REACHABILITY_CHANGED
    reachable: bool


@dataclass(frozen=True)
class NoteReceived(Event):
    """A note arrived from the companion device."""

    kind: ClassVar[EventKind] = EventKind.NOTE_RECEIVED
    title: str
    content: str
    timestamp: float


E = TypeVar("E", bound=Event)


class EventBus:
    """Synchronous publish/subscribe channel."""

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[Callable[[Event], None]]] = {}

    def on(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """Register a handler for an event class.

        Registering the same handler twice calls it twice.
        """
        self._handlers.setdefault(event_type, []).append(handler)  # type: ignore[arg-type]

    def off(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """Remove the first registration of a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        try:
            handlers.remove(handler)  # type: ignore[arg-type]
        except ValueError:
            pass

    def handler_count(self, event_type: type[Event]) -> int:
        """Number of handlers registered for an event class."""
        return len(self._handlers.get(event_type, []))

    def emit(self, event: Event) -> None:
        """Deliver an event to every handler registered for its class."""
        # Copy so handlers may subscribe/unsubscribe during delivery
        handlers = list(self._handlers.get(type(event), []))
        logger.debug("Emitting %s to %d handler(s)", event.kind.value, len(handlers))
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.warning("Event handler for %s failed: %s", event.kind.value, e)
                logger.debug("Full traceback:", exc_info=True)
