"""Note synchronization between the local store and a remote container.

Architecture:
    ContainerWatcher / RemoteChangeListener → RemoteChangeNotifier → SyncEngine

Components:
- **SyncEngine**: push, push-all, pull (coalesced), full sync
- **conflict**: Pure last-writer-wins merge on updated_at
- **RemoteChangeNotifier**: Thread-safe inbound port for change signals
- **ContainerWatcher**: watchdog-based signal source for folder containers
- **RemoteChangeListener**: WebSocket-based signal source for push relays
"""

from notesync.client.sync.conflict import merge_remote_notes, should_replace
from notesync.client.sync.engine import SyncEngine
from notesync.client.sync.notifier import PullTrigger, RemoteChangeNotifier
from notesync.client.sync.remote_listener import RemoteChangeListener
from notesync.client.sync.types import (
    BatchPushResult,
    MergeOutcome,
    PullResult,
    SyncResult,
)
from notesync.client.sync.watcher import ContainerWatcher

__all__ = [
    # Engine
    "SyncEngine",
    # Conflict resolution
    "merge_remote_notes",
    "should_replace",
    # Change notification
    "ContainerWatcher",
    "PullTrigger",
    "RemoteChangeListener",
    "RemoteChangeNotifier",
    # Types
    "BatchPushResult",
    "MergeOutcome",
    "PullResult",
    "SyncResult",
]
