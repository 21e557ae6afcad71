"""Container watcher turning file system changes into remote change signals.

This module provides:
- ContainerWatcher: Watches the synchronized container using watchdog
- Debouncing: A burst of note file changes yields one signal once the
  container has been quiet for sync_delay_s

Changes are made by the cloud sync daemon outside this process, so the
watcher is the push channel for a folder-backed remote store.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from notesync.client.remote import is_note_file

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

    from notesync.client.sync.notifier import RemoteChangeNotifier

logger = logging.getLogger(__name__)


def _as_path(raw: str | bytes) -> Path:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return Path(raw)


class DebouncedChangeHandler(FileSystemEventHandler):
    """Event handler that coalesces note file changes into one signal."""

    def __init__(self, notifier: RemoteChangeNotifier, sync_delay_s: float = 1.0) -> None:
        """Initialize the debounced handler.

        Args:
            notifier: Receiver of the coalesced signal.
            sync_delay_s: Quiet period after the last change before signalling.
        """
        super().__init__()
        self._notifier = notifier
        self._sync_delay_s = sync_delay_s

        self._pending: set[str] = set()
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    @property
    def pending(self) -> int:
        """Number of distinct note files changed since the last signal."""
        with self._lock:
            return len(self._pending)

    def _schedule_flush(self) -> None:
        """Restart the quiet-period timer. Caller holds the lock."""
        if self._timer:
            self._timer.cancel()

        self._timer = threading.Timer(self._sync_delay_s, self.flush)
        self._timer.daemon = True
        self._timer.start()

    def flush(self) -> None:
        """Signal pending changes, if any."""
        with self._lock:
            if not self._pending:
                return
            count = len(self._pending)
            self._pending.clear()
            self._timer = None

        logger.debug("Container changed (%d note file(s))", count)
        self._notifier.notify()

    def _handle_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        paths = [_as_path(event.src_path)]
        if isinstance(event, FileMovedEvent):
            paths.append(_as_path(event.dest_path))

        changed = [p for p in paths if is_note_file(p)]
        if not changed:
            return

        with self._lock:
            self._pending.update(p.name for p in changed)
            self._schedule_flush()

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle created event."""
        if isinstance(event, FileCreatedEvent):
            self._handle_event(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle modified event."""
        if isinstance(event, FileModifiedEvent):
            self._handle_event(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle deleted event."""
        if isinstance(event, FileDeletedEvent):
            self._handle_event(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle moved event."""
        if isinstance(event, FileMovedEvent):
            self._handle_event(event)

    def stop(self) -> None:
        """Stop any pending timer."""
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None


class ContainerWatcher:
    """Watches the remote container and signals changes to a notifier."""

    def __init__(
        self,
        watch_path: Path,
        notifier: RemoteChangeNotifier,
        sync_delay_s: float = 1.0,
    ) -> None:
        """Initialize the container watcher.

        Args:
            watch_path: Container directory to watch.
            notifier: Receiver of change signals.
            sync_delay_s: Quiet period before a signal fires.
        """
        self._watch_path = Path(watch_path).resolve()
        if not self._watch_path.is_dir():
            raise ValueError(f"Watch path must be a directory: {watch_path}")

        self._handler = DebouncedChangeHandler(notifier, sync_delay_s=sync_delay_s)
        self._observer: BaseObserver = Observer()
        self._running = False

    @property
    def watch_path(self) -> Path:
        """Get the watched directory path."""
        return self._watch_path

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    def start(self) -> None:
        """Start watching for changes."""
        if self._running:
            return

        self._observer.schedule(self._handler, str(self._watch_path), recursive=False)
        self._observer.start()
        self._running = True
        logger.info("Watching %s for remote changes", self._watch_path)

    def stop(self) -> None:
        """Stop watching for changes."""
        if not self._running:
            return

        self._handler.stop()
        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._running = False

    def __enter__(self) -> ContainerWatcher:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()
